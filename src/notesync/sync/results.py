"""Structured outcome of a single mutating engine call."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class OperationResult:
    """``ok=True`` on success; otherwise ``error`` holds the original cause.

    Attributes:
        ok: Whether the operation completed.
        error: The exception that stopped it (None on success).
        message: Optional note for the caller, e.g. "already indexed".
        chunk_count: Chunks written (upserts) or removed (deletes), if known.
    """

    ok: bool
    error: BaseException | None = None
    message: str = ""
    chunk_count: int | None = None

    @classmethod
    def success(cls, message: str = "", chunk_count: int | None = None) -> OperationResult:
        return cls(ok=True, message=message, chunk_count=chunk_count)

    @classmethod
    def failure(cls, error: BaseException) -> OperationResult:
        return cls(ok=False, error=error, message=str(error))

    def __bool__(self) -> bool:
        return self.ok
