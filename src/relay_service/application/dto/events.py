from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from relay_service.domain.value_objects.enums import ChangeType


class ChangeEvent(BaseModel):
    """Row mutation reported by the store's change feed."""

    type: ChangeType
    table: str
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None

    model_config = ConfigDict(extra="ignore")
