"""Request models for the service-category endpoints."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from household_api.domain.categories import MAX_LEVEL, ROOT_PARENT_ID


def _validate_icon(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Icon must be a valid URL")
    return value


class CategoryCreate(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=50)
    parent_id: int = Field(ROOT_PARENT_ID, ge=0)
    sort_order: int = Field(0, ge=0)
    is_enabled: bool = True
    icon: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("parent_id", "sort_order", mode="before")
    @classmethod
    def _null_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("is_enabled", mode="before")
    @classmethod
    def _null_to_enabled(cls, value: Any) -> Any:
        return True if value is None else value

    @field_validator("icon")
    @classmethod
    def _icon_url(cls, value: Optional[str]) -> Optional[str]:
        return _validate_icon(value)


class CategoryUpdate(BaseModel):
    """Partial update; only the fields present in the payload are applied."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    parent_id: Optional[int] = Field(None, ge=0)
    sort_order: Optional[int] = Field(None, ge=0)
    is_enabled: Optional[bool] = None
    icon: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Category name cannot be empty")
        return value

    @field_validator("icon")
    @classmethod
    def _icon_url(cls, value: Optional[str]) -> Optional[str]:
        return _validate_icon(value)

    def changes(self) -> dict[str, Any]:
        """Provided fields; a null parent/sort/enabled means 'leave unchanged'."""
        data = self.model_dump(include=self.model_fields_set)
        for key in ("parent_id", "sort_order", "is_enabled"):
            if key in data and data[key] is None:
                del data[key]
        return data


class CategoryListFilter(BaseModel):
    include_disabled: bool = False
    only_top_level: bool = False
    level: Optional[int] = Field(None, ge=1, le=MAX_LEVEL)

    @field_validator("level", mode="before")
    @classmethod
    def _zero_means_any(cls, value: Any) -> Any:
        return None if value in (0, "0") else value


class StatusToggle(BaseModel):
    is_enabled: bool


class BatchDeleteRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)
