"""
Pydantic models for pet data.

``PetCreate`` describes a complete record as accepted by an insert,
``PetUpdate`` a partial payload in which every field is optional but
must still be valid when present, and ``PetRead`` a stored row.  Field
names are the column names of the ``pets`` table so that validated
payloads can be handed straight to the store engine.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationInfo, field_validator

from ..core.contract import MAX_SQLITE_INTEGER, Gender, is_valid_gender


class PetBase(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    @field_validator("gender", mode="before", check_fields=False)
    @classmethod
    def _known_gender(cls, value):
        # None is left to the field type (required on insert, rejected on update).
        if value is not None and not is_valid_gender(value):
            raise ValueError("gender must be 0 (unknown), 1 (male) or 2 (female)")
        return value


class PetCreate(PetBase):
    """Schema for inserting a pet."""

    name: str = Field(..., min_length=1, examples=["Tommy"])
    breed: Optional[str] = Field(None, examples=["Pitbull"])
    gender: Gender = Field(..., examples=[Gender.MALE])
    weight: StrictInt = Field(..., ge=0, le=MAX_SQLITE_INTEGER, examples=[45])


class PetUpdate(PetBase):
    """Schema for updating a pet.

    All fields are optional; only provided fields will be updated.
    ``breed`` may be cleared with ``None``, the other fields may not.
    """

    name: Optional[str] = Field(None, min_length=1)
    breed: Optional[str] = None
    gender: Optional[Gender] = None
    weight: Optional[StrictInt] = Field(None, ge=0, le=MAX_SQLITE_INTEGER)

    @field_validator("name", "gender", "weight")
    @classmethod
    def _not_null(cls, value, info: ValidationInfo):
        # Only runs for explicitly supplied values, never for the defaults.
        if value is None:
            raise ValueError(f"{info.field_name} may not be set to null")
        return value


class PetRead(BaseModel):
    """Schema for a stored pet row."""

    id: int = Field(..., alias="_id", ge=0)
    name: str
    breed: Optional[str] = None
    gender: Gender = Gender.UNKNOWN
    weight: int = 0

    model_config = ConfigDict(populate_by_name=True)
