"""
Database Schemas

Pydantic models for the records VidShare stores and serves.

Each model that is persisted maps to one MongoDB collection named after the
lowercased class name:
- Video -> "video" collection
- Category -> "category" collection
- PageConfig -> "page_config" collection

Records travel as camelCase JSON. Snake_case names and the field names used
by older admin clients are accepted on input.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR.match(value))


class Platform(str, Enum):
    HOSTED_EMBED = "hosted-embed"
    DIRECT_FILE = "direct-file"


# Values written by the first admin UI
LEGACY_PLATFORMS = {
    "wistia": Platform.HOSTED_EMBED,
    "dropbox": Platform.DIRECT_FILE,
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} is required")
    return value


class Video(CamelModel):
    """
    Videos collection schema
    Collection name: "video"

    directUrl only belongs to direct-file records. Hosted-embed records drop it
    on load, so legacy rows that carried both save without the stray URL.
    """
    id: str = Field(..., description="Unique within a page")
    title: str = Field(..., description="Display title")
    category: str = Field(..., description="Key of a Category on the same page")
    tags: List[str] = Field(default_factory=list, description="Audience/filter tags")
    order: int = Field(0, description="Display position, ascending")
    page: Optional[str] = Field(None, description="Page partition")
    platform: Platform = Field(Platform.HOSTED_EMBED, description="Playback strategy")
    source_id: str = Field(
        ...,
        validation_alias=AliasChoices("sourceId", "source_id", "wistiaId", "wistia_id"),
        serialization_alias="sourceId",
        description="Platform media id",
    )
    direct_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("directUrl", "direct_url", "videoUrl", "video_url"),
        serialization_alias="directUrl",
        description="Streamable file URL, direct-file only",
    )
    short_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("shortId", "short_id", "urlString", "url_string"),
        serialization_alias="shortId",
        description="Short id used in direct video links",
    )

    @field_validator("id", "title", "category", "source_id")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return _require_text(value, info.field_name)

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        seen = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @field_validator("order", mode="before")
    @classmethod
    def _default_order(cls, value):
        return 0 if value in (None, "") else value

    @field_validator("platform", mode="before")
    @classmethod
    def _legacy_platform(cls, value):
        if value in (None, ""):
            return Platform.HOSTED_EMBED
        if isinstance(value, str) and value.lower() in LEGACY_PLATFORMS:
            return LEGACY_PLATFORMS[value.lower()]
        return value

    @model_validator(mode="after")
    def _check_direct_url(self):
        if self.platform == Platform.DIRECT_FILE:
            if not self.direct_url:
                raise ValueError("directUrl is required for direct-file videos")
        else:
            self.direct_url = None
        return self

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Category(CamelModel):
    """
    Categories collection schema
    Collection name: "category"

    show_in_dropdown=True puts the category in the dropdown menu,
    False renders it as a filter pill.
    """
    id: str = Field(
        ...,
        validation_alias=AliasChoices("key", "categoryKey", "category_key", "id"),
        serialization_alias="id",
    )
    name: str
    color: Optional[str] = Field(None, description="#RRGGBB")
    order: int = 0
    page: Optional[str] = None
    show_in_dropdown: bool = Field(
        True,
        validation_alias=AliasChoices("showInDropdown", "show_in_dropdown"),
        serialization_alias="showInDropdown",
    )
    icon: Optional[str] = None

    @field_validator("id", "name")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        return _require_text(value, info.field_name)

    @field_validator("color", mode="before")
    @classmethod
    def _hex_color(cls, value):
        if value in (None, ""):
            return None
        if not is_hex_color(value):
            raise ValueError(f"Invalid color format {value!r}. Use hex format like #ff6b6b")
        return value

    @field_validator("order", mode="before")
    @classmethod
    def _default_order(cls, value):
        return 0 if value in (None, "") else value

    @field_validator("show_in_dropdown", mode="before")
    @classmethod
    def _default_dropdown(cls, value):
        return True if value is None else value


class PageConfigFields(CamelModel):
    name: Optional[str] = None
    accent_color: Optional[str] = None
    page_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image_url: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    canonical_url: Optional[str] = None

    @field_validator("accent_color")
    @classmethod
    def _hex_accent(cls, value):
        if value is not None and not is_hex_color(value):
            raise ValueError("Invalid accent color format. Must be hex color (e.g., #008f67)")
        return value


class PageConfig(PageConfigFields):
    """
    Page configuration collection schema
    Collection name: "page_config"
    """
    page: str


class PageConfigUpdate(PageConfigFields):
    page: Optional[str] = None

    def changed_fields(self) -> Dict[str, Any]:
        """Only the fields the client actually sent, keyed by wire name."""
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True, exclude={"page"})


class ImageUpload(CamelModel):
    page: Optional[str] = None
    image: Optional[str] = None
    content_type: Optional[str] = None
