from __future__ import annotations

from typing import Any, TypeVar

from fastapi import Request, UploadFile
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from wardrobe.core.config import get_settings
from wardrobe.core.errors import ValidationError
from wardrobe.services.media import MediaStore


ModelT = TypeVar("ModelT", bound=BaseModel)


def get_media_store(request: Request) -> MediaStore:
    return request.app.state.media_store


def get_actor() -> str:
    # No authentication: audit rows carry the configured shop actor.
    return get_settings().audit_actor


def uploaded(file: UploadFile | None) -> UploadFile | None:
    """Browsers send an empty part for an untouched file input; treat it as no file."""
    if file is None or not file.filename:
        return None
    return file


def invalid_field_message(err: dict[str, Any], *, skip: int = 0) -> str:
    """`invalid field <dotted loc>: <msg>` for one pydantic error; `skip` drops leading loc parts."""
    field = ".".join(str(p) for p in tuple(err.get("loc", ()))[skip:]) or "body"
    return f"invalid field {field}: {err.get('msg', 'invalid value')}"


def parse_form(model: type[ModelT], **values: Any) -> ModelT:
    """Validate multipart form values into `model`; fields that were not sent stay unset."""
    try:
        return model.model_validate({k: v for k, v in values.items() if v is not None})
    except PydanticValidationError as e:
        raise ValidationError(invalid_field_message(e.errors()[0])) from e
