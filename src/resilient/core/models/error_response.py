from pydantic import BaseModel
from typing import Any, Optional


class ErrorResponse(BaseModel):
    """Details of a failed request as seen by the caller.

    ``status`` is 0 when no response was received at all (network failure,
    connection refused, DNS error).
    """

    status: int = 0
    title: str = "Request Failed"
    detail: Optional[str] = None
    endpoint: str = ""
    code: str = "UNKNOWN_ERROR"
    data: Optional[Any] = None

    @property
    def received(self) -> bool:
        return self.status > 0
