"""Custom exceptions shared by the synthesis and generation paths."""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Normalized failure classes used to drive fallback policy."""

    RATE_LIMITED = "rate_limited"
    MISCONFIGURED = "misconfigured"
    TRANSIENT = "transient"
    VALIDATION = "validation"
    EXHAUSTED = "exhausted"
    UNKNOWN = "unknown"


class HablarError(Exception):
    """Base exception for hablar errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class ProviderError(HablarError):
    """Exception raised by a single vendor adapter.

    Adapters translate vendor-specific failures (HTTP status codes, SDK
    exceptions, error payloads) into one of the ErrorKind values so the
    orchestrator never needs per-vendor knowledge.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.provider = provider
        self.kind = kind
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"ProviderError(provider={self.provider!r}, kind={self.kind.value!r}, "
            f"status_code={self.status_code!r}, message={str(self)!r})"
        )


class RequestValidationError(HablarError):
    """Exception raised for malformed caller input.

    Raised before any cache access or adapter call.
    """

    kind = ErrorKind.VALIDATION


@dataclass(frozen=True)
class AttemptFailure:
    """One failed adapter attempt recorded by an orchestrator."""

    provider: str
    kind: ErrorKind
    message: str

    def describe(self) -> str:
        return f"{self.provider} [{self.kind.value}]: {self.message}"


class ExhaustedError(HablarError):
    """Exception raised when every configured adapter has failed.

    Attributes:
        attempts: One AttemptFailure per adapter that was tried, in order
    """

    kind = ErrorKind.EXHAUSTED

    def __init__(self, operation: str, attempts: list[AttemptFailure]) -> None:
        if attempts:
            details = "; ".join(attempt.describe() for attempt in attempts)
            message = f"All providers failed for {operation}: {details}"
        else:
            message = f"No configured providers available for {operation}"
        super().__init__(message)
        self.operation = operation
        self.attempts = list(attempts)

    @property
    def rate_limited(self) -> bool:
        """Whether any attempt failed because of a vendor quota."""
        return any(a.kind is ErrorKind.RATE_LIMITED for a in self.attempts)


class CircuitOpenError(HablarError):
    """Exception raised while the generation circuit breaker is cooling down.

    This typically occurs when:
    - A model quota was exhausted recently
    - The cooldown window has not elapsed yet
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: float) -> None:
        super().__init__(
            "The tutor is resting for a moment. Try again in "
            f"{max(1, round(retry_after))} seconds."
        )
        self.retry_after = retry_after


def is_rate_limited(error: BaseException) -> bool:
    """Return True if an error represents an exhausted vendor quota."""
    if isinstance(error, ExhaustedError):
        return error.rate_limited
    if isinstance(error, ProviderError):
        return error.kind is ErrorKind.RATE_LIMITED
    return False


def classify_exception(error: BaseException) -> tuple[ErrorKind, int | None]:
    """Map an arbitrary vendor/SDK exception to an ErrorKind.

    Looks for an HTTP status on the exception (``status_code``, ``code``,
    ``status`` or ``response.status_code``) and falls back to inspecting
    the message text for well-known quota and auth markers.

    Returns:
        Tuple of (kind, status_code or None)
    """
    status = _extract_status(error)
    text = str(error).lower()

    if status == 429 or any(
        marker in text
        for marker in ("429", "quota", "rate limit", "resource_exhausted", "throttl")
    ):
        return ErrorKind.RATE_LIMITED, status
    if status in (401, 403) or "unauthorized" in text or "401" in text:
        return ErrorKind.MISCONFIGURED, status
    if status is not None and status >= 500:
        return ErrorKind.TRANSIENT, status
    if isinstance(error, (TimeoutError, ConnectionError)):
        return ErrorKind.TRANSIENT, status
    return ErrorKind.UNKNOWN, status


def _extract_status(error: BaseException) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None
