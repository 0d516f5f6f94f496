"""Error details domain model."""

from pydantic import BaseModel, ConfigDict


class ErrorDetails(BaseModel):
    """Details about a failed trip query, raw server fault code or HTTP status included."""

    model_config = ConfigDict(frozen=True)

    fault_code: int | None = None
    status_code: int | None = None
    request_url: str | None = None
    reason: str
