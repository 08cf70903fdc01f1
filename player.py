"""
Video platform abstraction for the showcase pages

Mirrors what the page does when a visitor picks a video: hosted-embed
records get the embed widget's marker markup and wait for the widget script,
direct-file records get a native <video> element. The page containers and
the widget are modelled as small objects so the lifecycle can be driven from
an asyncio loop.
"""

import asyncio
import html
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from schemas import Platform, Video

logger = logging.getLogger(__name__)

EMBED_RETRY_DELAY = 0.5
EMBED_MAX_RETRIES = 20
THUMBNAIL_URL = "https://embed-ssl.wistia.com/deliveries/{}.jpg"
PLACEHOLDER_THUMBNAIL = (
    'data:image/svg+xml,%3Csvg xmlns="http://www.w3.org/2000/svg" width="640" height="360" '
    'viewBox="0 0 640 360"%3E%3Crect width="640" height="360" fill="%232a2a2a"/%3E'
    '%3Ctext x="320" y="180" text-anchor="middle" dy=".3em" fill="%23666" '
    'font-family="system-ui" font-size="24"%3EDropbox Video%3C/text%3E%3C/svg%3E'
)
ERROR_NOTICE = (
    '<div class="video-error">Error loading video. '
    "The link may have expired or the file may not be accessible.</div>"
)
BLOCKED_SCHEMES = ("javascript:", "data:text/html", "vbscript:")


class PlayerState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"


class PlayerError(Exception):
    pass


def escape_html(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return html.escape(value, quote=True)


def sanitize_url(url: Any) -> str:
    """Empty string for javascript:, vbscript: and data:text/html URLs."""
    if not isinstance(url, str):
        return ""
    if url.strip().lower().startswith(BLOCKED_SCHEMES):
        logger.warning("Blocked potentially dangerous URL: %s", url)
        return ""
    return url


def embed_markup(media_id: str) -> str:
    media_id = escape_html(media_id)
    return (
        f'<div id="wistia_{media_id}" class="wistia_embed wistia_async_{media_id}" '
        f'style="height:100%;width:100%">&nbsp;</div>'
    )


def thumbnail_url(video: Union[Video, Dict[str, Any]], stored: Optional[str] = None) -> str:
    record = video if isinstance(video, Video) else Video.model_validate(video)
    if record.platform == Platform.DIRECT_FILE:
        return stored or PLACEHOLDER_THUMBNAIL
    return THUMBNAIL_URL.format(record.source_id)


class PlayerContainer:
    """The page element a player is mounted into."""

    def __init__(self):
        self.content: Union[None, str, "NativeVideoPlayer"] = None
        self.attributes: Dict[str, str] = {}
        self.attached = True

    def clear(self):
        self.content = None

    def set_content(self, content):
        self.content = content

    def set_attribute(self, name: str, value: str):
        self.attributes[name] = value

    def detach(self):
        self.attached = False


class NativeVideoPlayer:
    """HTML5 <video> element for direct-file records."""

    def __init__(self, element_id: str, src: str, mime_type: str = "video/mp4"):
        self.element_id = element_id
        self.src = src
        self.mime_type = mime_type
        self.paused = True
        self.current_time = 0.0
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable):
        self._listeners.setdefault(event, []).append(callback)

    def emit(self, event: str, *args):
        for callback in list(self._listeners.get(event, [])):
            callback(*args)

    def play(self):
        self.paused = False

    def pause(self):
        self.paused = True

    def markup(self) -> str:
        return (
            f'<video id="{escape_html(self.element_id)}" class="dropbox-video-player" controls '
            f'style="width:100%;height:100%">'
            f'<source src="{escape_html(self.src)}" type="{escape_html(self.mime_type)}"></video>'
        )


class EmbeddedVideo:
    def __init__(self, media_id: str):
        self.media_id = media_id
        self.paused = True
        self.position = 0.0

    def pause(self):
        self.paused = True

    def time(self, seconds: float):
        self.position = seconds


class EmbedWidget:
    """The hosted player's page script: a load flag, a ready queue and a lookup."""

    def __init__(self, loaded: bool = False):
        self.loaded = loaded
        self.queue: List[Dict[str, Any]] = []
        self.videos: Dict[str, EmbeddedVideo] = {}

    def is_loaded(self) -> bool:
        return self.loaded

    def push(self, media_id: str, on_ready: Optional[Callable] = None):
        self.queue.append({"id": media_id, "onReady": on_ready})

    def ready(self, media_id: str) -> EmbeddedVideo:
        video = self.videos.setdefault(media_id, EmbeddedVideo(media_id))
        for entry in [e for e in self.queue if e["id"] == media_id]:
            self.queue.remove(entry)
            if entry["onReady"]:
                entry["onReady"](video)
        return video

    def api(self, media_id: str) -> Optional[EmbeddedVideo]:
        return self.videos.get(media_id)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class VideoPlatformManager:
    """One mounted player at a time, idle -> loaded -> idle."""

    def __init__(self, widget: EmbedWidget, retry_delay: float = EMBED_RETRY_DELAY,
                 max_retries: int = EMBED_MAX_RETRIES, loop: asyncio.AbstractEventLoop = None):
        self.widget = widget
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self._loop = loop
        self.state = PlayerState.IDLE
        self.current_platform: Optional[Platform] = None
        self.current_video_id: Optional[str] = None
        self.native_player: Optional[NativeVideoPlayer] = None
        self._retry: Optional[asyncio.TimerHandle] = None

    @property
    def retry_pending(self) -> bool:
        return self._retry is not None

    def mount_player(self, video: Union[Video, Dict[str, Any]], container: PlayerContainer,
                     on_ready: Optional[Callable] = None, on_error: Optional[Callable] = None):
        record = video if isinstance(video, Video) else Video.model_validate(video)
        self._cancel_retry()
        self.native_player = None
        self.current_platform = record.platform
        self.current_video_id = record.source_id
        self.state = PlayerState.LOADED
        container.set_attribute("data-platform", record.platform.value)

        if record.platform == Platform.DIRECT_FILE:
            self._mount_native(record, container, on_ready, on_error)
        else:
            container.set_content(embed_markup(record.source_id))
            self._queue_embed(record, container, on_ready, on_error, 0)

    def _mount_native(self, record: Video, container: PlayerContainer, on_ready, on_error):
        container.clear()

        def failed(error=None):
            logger.error("Error loading video %s: %s", record.title, error)
            container.set_content(ERROR_NOTICE)
            if on_error:
                on_error(error or PlayerError(f"Could not load {record.direct_url}"))

        src = sanitize_url(record.direct_url)
        if not src:
            failed(PlayerError("Blocked unsafe video URL"))
            return

        player = NativeVideoPlayer(f"dropbox_{record.source_id}", src)
        player.on("error", failed)
        if on_ready:
            player.on("loadedmetadata", lambda: on_ready(player))
        container.set_content(player)
        self.native_player = player

    def _queue_embed(self, record: Video, container: PlayerContainer, on_ready, on_error, attempt: int):
        self._retry = None
        if not container.attached:
            logger.info("Container for %s detached, giving up on embed", record.source_id)
            return
        if self.widget.is_loaded():
            self.widget.push(record.source_id, on_ready)
            return
        if attempt >= self.max_retries:
            logger.warning("Embed widget not loaded after %d retries", attempt)
            if on_error:
                on_error(PlayerError("Embed widget did not load"))
            return

        loop = self._loop or _running_loop()
        if loop is None:
            logger.warning("Embed widget not loaded and no event loop to retry on")
            if on_error:
                on_error(PlayerError("Embed widget not loaded"))
            return
        self._retry = loop.call_later(
            self.retry_delay, self._queue_embed, record, container, on_ready, on_error, attempt + 1,
        )

    def _cancel_retry(self):
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None

    def stop(self):
        """Pause and rewind whatever is playing."""
        self._cancel_retry()
        if self.current_platform == Platform.DIRECT_FILE and self.native_player:
            self.native_player.pause()
            self.native_player.current_time = 0.0
        elif self.current_platform == Platform.HOSTED_EMBED and self.current_video_id:
            video = self.widget.api(self.current_video_id)
            if video:
                video.pause()
                video.time(0)

        self.current_platform = None
        self.current_video_id = None
        self.native_player = None
        self.state = PlayerState.IDLE
