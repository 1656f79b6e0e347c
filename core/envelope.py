from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence


class ParameterError(ValueError):
    """A mandatory query parameter is missing or has an unsupported value."""

    status_code = 400


class SourceError(RuntimeError):
    """The row source failed; carries the endpoint's public message plus detail text."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


@dataclass(frozen=True)
class CachePolicy:
    max_age: int = 3600
    stale_while_revalidate: int = 7200
    public: bool = True

    def __post_init__(self) -> None:
        if self.max_age < 0 or self.stale_while_revalidate < 0:
            raise ValueError("Cache lifetimes must be non-negative.")

    def header(self) -> str:
        scope = "public" if self.public else "private"
        return f"{scope}, s-maxage={self.max_age}, stale-while-revalidate={self.stale_while_revalidate}"

    @classmethod
    def hours(cls, max_age_hours: float) -> "CachePolicy":
        seconds = int(max_age_hours * 3600)
        return cls(max_age=seconds, stale_while_revalidate=seconds * 2)


NO_STORE = "no-store"

ONE_HOUR = CachePolicy.hours(1)
ONE_DAY = CachePolicy.hours(24)


def success_payload(data: Sequence[Any], **extra: Any) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": True, "data": list(data), "count": len(data)}
    for key, value in extra.items():
        if key not in payload:
            payload[key] = value
    return payload


def error_payload(error: str, details: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": False, "error": error}
    if details:
        payload["details"] = details
    return payload


def payload_for_error(exc: Exception) -> Dict[str, Any]:
    if isinstance(exc, SourceError):
        return error_payload(exc.message, exc.details)
    return error_payload(str(exc))


def status_for_error(exc: Exception) -> int:
    return int(getattr(exc, "status_code", 500))
