from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OperationResult:
    success: bool
    error: str | None = None
    message: str | None = None

    @classmethod
    def ok(cls, message: str | None = None) -> "OperationResult":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class CreateCardResult:
    success: bool
    card_id: str | None = None
    error: str | None = None
    cvv_error: bool = False


@dataclass(frozen=True)
class BinInfo:
    code: str
    description: str
    name: str
