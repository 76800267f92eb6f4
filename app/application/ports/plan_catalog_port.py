from __future__ import annotations

from typing import Protocol

from app.domain.entities.plan import Plan


class PlanCatalogPort(Protocol):
    def get_plan(self, *, plan_id: str) -> Plan | None:
        ...
