"""Operation results shared by every core component."""

from dataclasses import dataclass, field
from typing import Any


class ErrorKind:
    """Failure categories reported in an OperationResult."""

    NOT_FOUND = "not-found"
    INVALID_FORMAT = "invalid-format"
    MANIFEST_MISSING = "manifest-missing"
    PARSE_ERROR = "parse-error"
    TOO_LARGE = "too-large"
    NOT_A_SERVER_PATH = "not-a-server-path"
    SERVER_FILE_NOT_FOUND = "server-file-not-found"
    MAPPING_NOT_FOUND = "mapping-not-found"
    NOTIFICATION_NOT_FOUND = "notification-not-found"
    NO_UPDATE_AVAILABLE = "no-update-available"
    INVALID_STATE = "invalid-state"
    INVALID_INPUT = "invalid-input"
    IO_ERROR = "io-error"


@dataclass
class OperationResult:
    """Outcome of a core operation.

    Expected failures are reported here instead of raised; ``error_kind``
    says which one. ``data`` carries operation-specific payload.
    """

    success: bool
    message: str = ""
    error_kind: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error_kind: str, message: str, **data: Any) -> "OperationResult":
        return cls(success=False, message=message, error_kind=error_kind, data=data)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)
