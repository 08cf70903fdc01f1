"""
Dropbox sharing links

Share link:     https://www.dropbox.com/s/XXXXX/filename.mp4?dl=0
Scl link:       https://www.dropbox.com/scl/fi/XXXXX/filename.mp4?rlkey=XXXXX&dl=0
Streamable:     dl=0 becomes raw=1, or the host becomes dl.dropboxusercontent.com
"""

import logging
import re
from typing import Any, Dict, NamedTuple, Optional
from urllib.parse import unquote, urlsplit, urlunsplit

from errors import InvalidInput
from hashing import short_id

logger = logging.getLogger(__name__)

HOST_MARKER = "dropbox.com"
SHARE_HOST = "www.dropbox.com"
DIRECT_HOST = "dl.dropboxusercontent.com"
DEFAULT_FILENAME = "Untitled Video"
SUPPORTED_EXTENSIONS = (".mp4", ".webm", ".mov", ".m4v", ".avi", ".mkv")

_DL_ZERO = re.compile(r"(^|&)dl=0(?=&|$)")
_RAW_ONE = re.compile(r"(^|&)raw=1(?=&|$)")
_EXTENSION = re.compile(r"\.[^/.]+$")


class NormalizedUrl(NamedTuple):
    direct_url: str
    filename: str
    title: str
    original_url: str


def _filename(url: str) -> str:
    try:
        segment = urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]
    except ValueError:
        return DEFAULT_FILENAME
    return unquote(segment) if segment else DEFAULT_FILENAME


def _rewrite(url: str) -> str:
    parts = urlsplit(url)
    netloc, query = parts.netloc, parts.query

    if _DL_ZERO.search(query):
        query = _DL_ZERO.sub(r"\1raw=1", query, count=1)
    elif not _RAW_ONE.search(query) and netloc.lower() == SHARE_HOST:
        netloc = DIRECT_HOST
        query = f"{query}&raw=1" if query else "raw=1"

    scheme = "https" if parts.scheme.lower() == "http" else parts.scheme
    return urlunsplit((scheme, netloc, parts.path, query, parts.fragment))


def normalize(url: Any, host_marker: str = HOST_MARKER) -> NormalizedUrl:
    """Turn a sharing link into a directly streamable URL plus a display title."""
    if not url or not isinstance(url, str):
        raise InvalidInput("Invalid URL provided")
    if host_marker not in url and DIRECT_HOST not in url:
        raise InvalidInput("Not a Dropbox URL")

    try:
        direct_url = _rewrite(url)
    except ValueError as e:
        logger.warning("Could not convert %s: %s", url, e)
        direct_url = url

    filename = _filename(url)
    return NormalizedUrl(
        direct_url=direct_url,
        filename=filename,
        title=_EXTENSION.sub("", filename),
        original_url=url,
    )


def is_dropbox_url(url: Optional[str]) -> bool:
    return isinstance(url, str) and (HOST_MARKER in url or DIRECT_HOST in url)


def is_supported_video_format(url: str) -> bool:
    lowered = url.lower()
    return any(ext in lowered for ext in SUPPORTED_EXTENSIONS)


def video_from_sharing_url(url: str, page: str = None) -> Dict[str, Any]:
    """
    Video record for a Dropbox file, ready to append to a page's list.
    Called by admin tooling before save-videos; the API itself never builds records.
    """
    converted = normalize(url)
    media_id = f"dropbox_{short_id(converted.direct_url)}"
    return {
        "id": media_id,
        "title": converted.title,
        "category": "all",
        "tags": [],
        "order": 0,
        "page": page,
        "platform": "direct-file",
        "sourceId": media_id,
        "directUrl": converted.direct_url,
        "shortId": short_id(media_id),
        "originalUrl": converted.original_url,
        "filename": converted.filename,
    }
