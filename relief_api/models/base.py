# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and document conversion.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict
from bson import ObjectId


MONEY_QUANTUM = Decimal("0.01")


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def utc_now() -> datetime:
    """Server-assigned timestamp."""
    return datetime.now(timezone.utc)


def to_money(value: Any) -> Decimal:
    """Normalize a monetary amount to two decimal places."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class BaseEntity(BaseModel):
    """Base entity with common fields for all persisted records."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utc_now, description="Last update timestamp")
    schema_version: int = Field(default=1, description="Schema version for migrations")

    def to_document(self) -> Dict[str, Any]:
        """Dump the entity as a persistence document."""
        return self.model_dump(mode="python")

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]]):
        """Build the entity from a persistence document (None passes through)."""
        if document is None:
            return None
        return cls.model_validate(document)
