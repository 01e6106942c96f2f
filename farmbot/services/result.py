from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# error_code values used across the outbound services
SEND_ERROR = "send_error"
INVALID_REQUEST = "invalid_request"
NOT_CONFIGURED = "not_configured"


@dataclass
class Result(Generic[T]):
    """Outcome of an outbound call whose failure is expected, not exceptional."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown") -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default

    def describe(self) -> str:
        if self.ok:
            return "ok"
        return f"{self.error_code}: {self.error}"
