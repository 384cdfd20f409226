from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class DispatchRequest(BaseModel):
    # Both optional so missing fields reach the dispatcher's own 400 check
    message: str | None = None
    destinations: list[str] | None = None


class DispatchResultOut(BaseModel):
    model_config = {"from_attributes": True, "alias_generator": to_camel, "populate_by_name": True}

    destination_id: str
    success: bool
    error: str | None = None


class DispatchSummaryOut(BaseModel):
    successful: int
    failed: int
    total: int


class DispatchReportOut(BaseModel):
    message: str = "Message dispatched"
    results: list[DispatchResultOut]
    summary: DispatchSummaryOut
