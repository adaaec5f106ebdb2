"""
Shared schema pieces.
"""

import re
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field

SLUG_PATTERN = re.compile(r"^[a-z0-9_-]+$")
SLUG_MESSAGE = "Slug can only contain lowercase letters, numbers, hyphens, and underscores"


def metadata_field() -> Any:
    """Response field reading the ORM `meta` attribute, serialized as `metadata`."""
    return Field(default=None, validation_alias=AliasChoices("meta", "metadata"))


def validate_slug(value: str) -> str:
    if not SLUG_PATTERN.match(value):
        raise ValueError(SLUG_MESSAGE)
    return value


class MessageResponse(BaseModel):
    message: str


class CsvImportRequest(BaseModel):
    csv: str = Field(..., min_length=1)


class ImportFailure(BaseModel):
    row: int
    error: str
    data: Optional[dict[str, str]] = None


class ImportResult(BaseModel):
    successful: int
    failed: list[ImportFailure]
