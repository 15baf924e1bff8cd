"""
Result types for decoding serialized summaries.
"""

from dataclasses import dataclass


class DecodeError(ValueError):
    """Raised when a serialized summary cannot be decoded."""


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding a serialized summary.

    Attributes:
        ok: True when decoding succeeded (including the "unset" empty input).
        message: Why decoding failed; empty on success.
    """

    ok: bool
    message: str = ""

    @classmethod
    def success(cls) -> "DecodeResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str) -> "DecodeResult":
        return cls(ok=False, message=message)

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_error(self) -> None:
        """Raise DecodeError if decoding failed."""
        if not self.ok:
            raise DecodeError(self.message)
