from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ErrorOut(BaseModel):
    error: str
    details: dict | str | None = None


class HealthOut(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    status: str = "healthy"
    uptime_seconds: float
    message: str
