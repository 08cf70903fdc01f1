"""
Catalog, category, page config and image upload operations

Reads degrade to built-in defaults when the store is missing or failing.
Writes validate the whole batch first and surface store failures.
"""

import base64
import binascii
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from database import CATEGORY, VIDEO, Store
from defaults import KNOWN_PAGES, default_categories, default_page_config, default_videos
from dropbox_links import is_dropbox_url, is_supported_video_format, normalize
from errors import DuplicateIdError, StoreError, ValidationError
from hashing import short_id
from schemas import Category, ImageUpload, PageConfigUpdate, Platform, Video

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
PUBLIC_IMAGE_PREFIX = "/assets"
SAFE_PAGE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def describe_errors(error: PydanticValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(messages)


def parse_batch(payload: Any, key: str, default_page: str) -> Tuple[str, List[Any]]:
    """Split a write body into (page, items).

    A bare array is the legacy form and targets the default page.
    """
    if isinstance(payload, list):
        return default_page, payload
    if not isinstance(payload, dict):
        raise ValidationError(f"Request body must be an array or an object with '{key}'")
    items = payload.get(key)
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ValidationError(f"{key.capitalize()} must be an array")
    page = payload.get("page") or default_page
    if not isinstance(page, str):
        raise ValidationError("page must be a string")
    return page, items


class RecordService:
    """Full-replace collection of records partitioned by page."""

    kind = None
    label = None
    model = None

    def __init__(self, store: Optional[Store]):
        self.store = store

    def defaults(self, page: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def list(self, page: str) -> List[Dict[str, Any]]:
        if self.store is None:
            logger.info("Database not configured, returning default %ss for page: %s", self.label, page)
            return self.defaults(page)
        try:
            records = self.store.list_records(self.kind, page)
        except StoreError as e:
            logger.warning("Database query failed, using default %ss for page %s: %s", self.label, page, e)
            return self.defaults(page)

        results = []
        for record in records:
            try:
                results.append(self.model.model_validate(record).to_json())
            except PydanticValidationError as e:
                logger.warning("Skipping stored %s %r: %s", self.label, record.get("id"), describe_errors(e))
        logger.info("Fetched %d %ss for page: %s", len(results), self.label, page)
        return results

    def validate(self, page: str, items: List[Any]) -> List[Any]:
        records = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValidationError(f"Invalid {self.label} data at position {index}: expected an object")
            try:
                record = self.model.model_validate(item)
            except PydanticValidationError as e:
                raise ValidationError(
                    f"Invalid {self.label} data structure at position {index}: {describe_errors(e)}"
                ) from e
            record.page = page
            records.append(self.prepare(record))

        seen = set()
        duplicates = []
        for record in records:
            if record.id in seen and record.id not in duplicates:
                duplicates.append(record.id)
            seen.add(record.id)
        if duplicates:
            raise DuplicateIdError(f"Duplicate {self.label} IDs found: {', '.join(duplicates)}")
        return records

    def prepare(self, record):
        return record

    def replace(self, page: str, items: List[Any]) -> Dict[str, Any]:
        records = self.validate(page, items)
        documents = [record.to_json() for record in records]
        logger.info("Saving %d %ss for page: %s", len(documents), self.label, page)

        if self.store is None:
            logger.info("Database not configured, %ss not persisted", self.label)
            return {
                "success": True,
                "count": len(documents),
                "page": page,
                "message": f"{self.label.capitalize()}s validated but not persisted (database not configured)",
                "temporary": True,
            }

        self.store.replace_all(self.kind, page, documents)
        return {
            "success": True,
            "count": len(documents),
            "page": page,
            "message": f"{self.label.capitalize()}s saved successfully for page: {page}",
        }


class VideoCatalog(RecordService):
    kind = VIDEO
    label = "video"
    model = Video

    def defaults(self, page):
        return default_videos(page)

    def prepare(self, record: Video) -> Video:
        if not record.short_id:
            record.short_id = short_id(record.source_id)
            logger.debug("Generated short id for video %s: %s", record.source_id, record.short_id)
        if record.platform == Platform.DIRECT_FILE and is_dropbox_url(record.direct_url):
            record.direct_url = normalize(record.direct_url).direct_url
        if record.platform == Platform.DIRECT_FILE and not is_supported_video_format(record.direct_url):
            logger.warning("Video %s links to an unrecognised file type: %s", record.id, record.direct_url)
        return record


class CategoryService(RecordService):
    kind = CATEGORY
    label = "category"
    model = Category

    def defaults(self, page):
        return default_categories(page)


class PageConfigService:
    def __init__(self, store: Optional[Store], site_url: str):
        self.store = store
        self.site_url = site_url

    def default(self, page: str) -> Dict[str, Any]:
        return default_page_config(page, self.site_url)

    def get(self, page: Optional[str] = None):
        """One page's config (never missing), or every stored config when page is None."""
        if page:
            return self._get_one(page)
        if self.store is None:
            return [self.default(p) for p in KNOWN_PAGES]
        try:
            return self.store.list_page_configs()
        except StoreError as e:
            logger.warning("Database query failed, using default page configs: %s", e)
            return [self.default(p) for p in KNOWN_PAGES]

    def _get_one(self, page: str) -> Dict[str, Any]:
        default = self.default(page)
        if self.store is None:
            return default
        try:
            config = self.store.get_page_config(page)
        except StoreError as e:
            logger.warning("Database query failed, using default config for page %s: %s", page, e)
            return default
        if config is None:
            return default
        return {**default, **config}

    def require_store(self) -> Store:
        if self.store is None:
            raise StoreError("Database not configured")
        return self.store

    def upsert(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            update = PageConfigUpdate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(describe_errors(e)) from e
        if not update.page:
            raise ValidationError("Page ID is required")

        store = self.require_store()
        fields = update.changed_fields()
        seed = self.default(update.page)
        if fields.get("name"):
            seed["pageTitle"] = fields["name"]
        config = store.upsert_page_config(update.page, fields, seed)
        logger.info("Saved page config for %s (%s)", update.page, ", ".join(sorted(fields)) or "no fields")
        return config


class LocalImageStore:
    """Writes uploaded images to a directory served under /assets."""

    def __init__(self, directory: str):
        self.directory = directory

    def path(self, filename: str) -> str:
        return os.path.join(self.directory, filename)

    def save(self, filename: str, data: bytes) -> str:
        os.makedirs(self.directory, exist_ok=True)
        destination = self.path(filename)
        with open(destination, "wb") as f:
            f.write(data)
        return destination


def decode_image(image: str) -> bytes:
    if image.startswith("data:") and "," in image:
        image = image.split(",", 1)[1]
    try:
        return base64.b64decode(image, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image must be base64 encoded") from e


class ImageUploadService:
    def __init__(self, page_configs: PageConfigService, images: LocalImageStore):
        self.page_configs = page_configs
        self.images = images

    def upload(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            body = ImageUpload.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(describe_errors(e)) from e
        if not body.page or not body.image or not body.content_type:
            raise ValidationError("Missing required fields: page, image, contentType")
        if body.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Invalid image type. Allowed types: {', '.join(ALLOWED_IMAGE_TYPES)}")
        if not SAFE_PAGE_ID.match(body.page):
            raise ValidationError("Invalid page ID")

        data = decode_image(body.image)
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError(f"Image too large. Maximum size: {MAX_IMAGE_BYTES // 1024 // 1024}MB")

        self.page_configs.require_store()
        extension = body.content_type.split("/")[1]
        filename = f"og-image-{body.page}.{extension}"
        image_url = f"{PUBLIC_IMAGE_PREFIX}/{filename}"
        self.images.save(filename, data)
        logger.info("Stored %d byte image for page %s as %s", len(data), body.page, filename)

        config = self.page_configs.upsert({"page": body.page, "ogImageUrl": image_url})
        return {
            "imageUrl": image_url,
            "pageConfig": config,
            "message": "Image uploaded successfully",
        }
