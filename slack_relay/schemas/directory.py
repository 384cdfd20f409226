from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class DestinationOut(BaseModel):
    model_config = {"from_attributes": True, "alias_generator": to_camel, "populate_by_name": True}

    id: str
    display_name: str
    kind: str
    is_private: bool = False
    is_archived: bool = False
    member_count: int | None = None
    secondary_name: str | None = None
