"""
Field-level validation of pet payloads.

``ValidationService`` checks a payload before anything is written to
the store.  Insert payloads must be complete; update payloads may be
partial, but every field they do carry is held to the same rules.
The checks themselves live in the pydantic models of
``schemas.pet``; this service translates pydantic's errors into the
provider's ``ValidationError``.
"""

from typing import Any, Dict, Mapping, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ValidationError
from ..schemas.pet import PetCreate, PetUpdate


class ValidationService:
    """Validate pet payloads; return the normalised fields on success."""

    @classmethod
    def validate_for_insert(cls, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Check a complete pet record.

        ``name`` must be a non-empty string, ``gender`` one of the
        ``Gender`` values and ``weight`` a non-negative integer.
        ``breed`` is optional.  Unknown keys, including ``_id``, are
        rejected.
        """
        return cls._validate(PetCreate, fields)

    @classmethod
    def validate_for_update(cls, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Check a partial pet record; absent fields are not validated."""
        return cls._validate(PetUpdate, fields)

    @staticmethod
    def _validate(model: Type[BaseModel], fields: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(fields, Mapping):
            raise ValidationError([{"field": "__root__", "message": "payload must be a mapping"}])
        try:
            validated = model.model_validate(dict(fields))
        except PydanticValidationError as e:
            errors = []
            for err in e.errors():
                field = ".".join(str(part) for part in err["loc"]) or "__root__"
                errors.append({"field": field, "message": err["msg"]})
            raise ValidationError(errors) from e
        return validated.model_dump(exclude_unset=True)
