"""Outcome type for mutating operations."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class OperationResult:
    """
    Success flag plus the failure cause.

    Truthy exactly when the operation succeeded, so callers that only need
    a yes/no answer can keep writing ``if fs.write(path, data):``. Callers
    that need to know why it failed inspect ``error``.

    Attributes:
        ok: Whether the operation succeeded
        error: Exception describing the failure (None on success)
        value: Optional payload (e.g. the version id archived by a write)
    """
    ok: bool
    error: Optional[Exception] = None
    value: Any = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception) -> "OperationResult":
        return cls(ok=False, error=error)

    def raise_for_error(self) -> "OperationResult":
        """Re-raise the carried error, if any. Returns self for chaining."""
        if self.error is not None:
            raise self.error
        return self
