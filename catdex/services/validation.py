"""
Catdex — Input Validation
===========================

What:  Checks path parameters and required form fields before any resource use.
Why:   A request that fails here never takes a database connection and never
       writes a file.
How:   Plain functions returning typed values or raising ValidationError /
       MissingUploadError. Only known keys are read from the form; anything
       else the client sent is ignored.
"""

import re
from dataclasses import dataclass

from starlette.datastructures import UploadFile

from catdex.exceptions import MissingUploadError, ValidationError
from catdex.services.upload_service import UploadForm

CAT_ID_MIN = 1
CAT_ID_MAX = 150

_DIGITS_RE = re.compile(r"[0-9]+")

# Longer digit strings are out of range; int() is never called on them
_MAX_ID_DIGITS = 8


@dataclass
class CreateCatRequest:
    name: str
    image: UploadFile


def parse_cat_id(raw: str) -> int:
    """
    Parse the `id` path segment of GET /api/cat/{id}.

    Accepts only plain decimal digits whose value lies in [1, 150].
    """
    if not _DIGITS_RE.fullmatch(raw):
        raise ValidationError(
            message=f"Cat ID must be an integer between {CAT_ID_MIN} and {CAT_ID_MAX}",
            field="id",
            context={"value": raw[:32]},
        )
    value = int(raw) if len(raw) <= _MAX_ID_DIGITS else None
    if value is None or not CAT_ID_MIN <= value <= CAT_ID_MAX:
        raise ValidationError(
            message=f"Cat ID must be an integer between {CAT_ID_MIN} and {CAT_ID_MAX}",
            field="id",
            context={"value": raw[:32]},
        )
    return value


def validate_create_form(form: UploadForm) -> CreateCatRequest:
    """
    Extract exactly the fields POST /api/add_cat expects.

    `name` must be present and non-blank (the last value is used when repeated).
    `image` must have at least one file part; the first one is used.
    """
    name = form.texts.get("name", "").strip()
    if not name:
        raise ValidationError(message="Field 'name' is required", field="name")

    images = form.files.get("image")
    if not images:
        raise MissingUploadError(field="image")

    return CreateCatRequest(name=name, image=images[0])
