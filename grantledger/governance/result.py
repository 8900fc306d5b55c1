"""Explicit operation results: ``Result(ok=True, value)`` or ``Result(ok=False, ErrorCode)``."""

from dataclasses import dataclass
from typing import Any, Optional

from ..exceptions import ErrorCode, error_for


@dataclass(frozen=True)
class Result:
    ok: bool
    value: Any

    @classmethod
    def success(cls, value: Any = True) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, code: ErrorCode) -> "Result":
        return cls(ok=False, value=ErrorCode(code))

    @property
    def code(self) -> Optional[ErrorCode]:
        """The failure code, or None for a success."""
        return None if self.ok else self.value

    def unwrap(self) -> Any:
        """Return the success value, or raise the LedgerError matching the code."""
        if not self.ok:
            raise error_for(self.value)
        return self.value

    def __bool__(self) -> bool:
        return self.ok

    def to_dict(self) -> dict:
        if self.ok:
            return {"ok": True, "value": self.value}
        return {"ok": False, "value": int(self.value), "error": self.value.name}
