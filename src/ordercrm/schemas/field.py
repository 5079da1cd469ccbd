"""Field definition schemas for request/response validation."""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ordercrm.models.field import FieldType


class FieldBase(BaseModel):
    """Base schema for field definition."""

    label: str = Field(..., min_length=1, max_length=255, description="Display label")
    field_type: FieldType = Field(..., description="Field type")
    options: Optional[list[str]] = Field(
        None, description="Choices for select fields, or [expression] for formula fields"
    )
    is_required: bool = Field(default=False, description="Whether a value is required")
    is_hidden: bool = Field(default=False, description="Hide from forms and exports")


class FieldCreate(FieldBase):
    """Schema for creating a field definition."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
        description="Data key; immutable once created",
    )
    sort_order: Optional[int] = Field(None, ge=0, description="Position in the catalog")


class FieldUpdate(BaseModel):
    """
    Schema for updating a field definition.

    ``name`` is accepted only so a changed name can be rejected.
    """

    name: Optional[str] = Field(None, description="Must equal the current name")
    label: Optional[str] = Field(None, min_length=1, max_length=255)
    field_type: Optional[FieldType] = None
    options: Optional[list[str]] = None
    is_required: Optional[bool] = None
    sort_order: Optional[int] = Field(None, ge=0)
    is_hidden: Optional[bool] = None


class FieldSortItem(BaseModel):
    """One entry of a bulk reorder request."""

    id: int
    sort_order: int = Field(..., ge=0)


class FieldResponse(FieldBase):
    """Schema for field definition response."""

    id: int
    name: str
    sort_order: int
    created_by_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("options", mode="before")
    @classmethod
    def parse_options(cls, v: Any) -> Optional[list[str]]:
        """Parse the JSON text stored on the model."""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                return None
        return v or None
