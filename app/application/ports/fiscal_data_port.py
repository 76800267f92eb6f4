from __future__ import annotations

from typing import Protocol

from app.application.dto.operations import OperationResult
from app.domain.entities.fiscal import FiscalRecord


class FiscalDataPort(Protocol):
    def get(self, *, seller_id: int) -> FiscalRecord | None:
        ...

    def save(self, *, store_id: int, record: FiscalRecord) -> OperationResult:
        ...
