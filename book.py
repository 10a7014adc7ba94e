from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# lower-cased JSON key -> field alias
PAYLOAD_KEYS = {
    "id": "id",
    "isbn": "isbn",
    "title": "title",
    "author": "author",
    "publisher": "publisher",
    "createdat": "createdAt",
}


class Book(BaseModel):
    """A single catalog record as stored in the ``books`` table."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    isbn: str
    title: str
    author: str
    publisher: str
    created_at: datetime = Field(alias="createdAt")


class BookPayload(BaseModel):
    """Book-shaped request body.

    Keys match case-insensitively, unknown keys are ignored, and absent or
    null fields fall back to zero values. Values are not coerced between
    types: ``"id": "5"`` or ``"id": 5.0`` is rejected.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True)

    id: int = 0
    isbn: str = ""
    title: str = ""
    author: str = ""
    publisher: str = ""
    created_at: datetime | None = Field(default=None, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def _match_keys(cls, data: Any) -> Any:
        if data is None:
            return {}
        if not isinstance(data, dict):
            return data
        matched = {}
        # later keys win, as with repeated keys in one object
        for key, value in data.items():
            name = PAYLOAD_KEYS.get(key.lower())
            if name is not None and value is not None:
                matched[name] = value
        return matched


class UpdateResult(BaseModel):
    message: str
    rows_updated: int

    @classmethod
    def for_payload(cls, payload: BookPayload, rows_updated: int) -> "UpdateResult":
        # id and title echo the request body, not the stored row
        return cls(
            message=f"Book Id: {payload.id} - {payload.title} updated successfully",
            rows_updated=rows_updated,
        )
