"""Boundary helper: build a pydantic DTO from request data."""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from rest_framework.exceptions import ValidationError

DTO = TypeVar("DTO", bound=BaseModel)


def build_dto(dto_class: Type[DTO], data: Any, **extra: Any) -> DTO:
    """Validate ``data`` (plus ``extra`` fields) into ``dto_class``.

    Failures become a DRF 400 keyed by field.
    """
    if not isinstance(data, Mapping):
        raise ValidationError({"non_field_errors": ["Expected a JSON object."]})
    try:
        return dto_class.model_validate({**data, **extra})
    except PydanticValidationError as exc:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
            errors.setdefault(field, []).append(error["msg"])
        raise ValidationError(errors) from exc
