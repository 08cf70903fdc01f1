import asyncio

from player import (
    ERROR_NOTICE,
    PLACEHOLDER_THUMBNAIL,
    EmbedWidget,
    NativeVideoPlayer,
    PlayerContainer,
    PlayerError,
    PlayerState,
    VideoPlatformManager,
    embed_markup,
    sanitize_url,
    thumbnail_url,
)

EMBED_VIDEO = {"id": "v1", "title": "Bathroom", "category": "conflict", "sourceId": "vqb0pfo4zw"}
FILE_VIDEO = {
    "id": "v2", "title": "Clip", "category": "all", "sourceId": "dropbox_abc",
    "platform": "direct-file", "directUrl": "https://www.dropbox.com/s/AbC/clip.mp4?raw=1",
}


def test_direct_file_mounts_native_player():
    manager = VideoPlatformManager(EmbedWidget())
    container = PlayerContainer()
    ready, errors = [], []
    manager.mount_player(FILE_VIDEO, container, on_ready=ready.append, on_error=errors.append)

    player = container.content
    assert isinstance(player, NativeVideoPlayer)
    assert player.src == FILE_VIDEO["directUrl"]
    assert container.attributes["data-platform"] == "direct-file"
    assert manager.state == PlayerState.LOADED

    player.emit("loadedmetadata")
    assert ready == [player]
    player.emit("error", PlayerError("expired"))
    assert container.content == ERROR_NOTICE
    assert len(errors) == 1


def test_direct_file_blocks_script_urls():
    errors = []
    container = PlayerContainer()
    video = dict(FILE_VIDEO, directUrl="javascript:alert(1)")
    VideoPlatformManager(EmbedWidget()).mount_player(video, container, on_error=errors.append)
    assert container.content == ERROR_NOTICE
    assert isinstance(errors[0], PlayerError)


def test_embed_with_loaded_widget_queues_immediately():
    widget = EmbedWidget(loaded=True)
    manager = VideoPlatformManager(widget)
    container = PlayerContainer()
    ready = []
    manager.mount_player(EMBED_VIDEO, container, on_ready=ready.append)

    assert container.content == embed_markup("vqb0pfo4zw")
    assert container.attributes["data-platform"] == "hosted-embed"
    assert not manager.retry_pending
    embedded = widget.ready("vqb0pfo4zw")
    assert ready == [embedded]


def test_embed_retries_until_widget_loads():
    async def scenario():
        widget = EmbedWidget()
        manager = VideoPlatformManager(widget, retry_delay=0.01, max_retries=100)
        ready = []
        manager.mount_player(EMBED_VIDEO, PlayerContainer(), on_ready=ready.append)
        assert manager.retry_pending

        await asyncio.sleep(0.03)
        assert widget.queue == []
        widget.loaded = True
        await asyncio.sleep(0.05)

        assert not manager.retry_pending
        assert [entry["id"] for entry in widget.queue] == ["vqb0pfo4zw"]
        widget.ready("vqb0pfo4zw")
        assert len(ready) == 1

    asyncio.run(scenario())


def test_embed_retries_are_bounded():
    async def scenario():
        errors = []
        manager = VideoPlatformManager(EmbedWidget(), retry_delay=0.005, max_retries=3)
        manager.mount_player(EMBED_VIDEO, PlayerContainer(), on_error=errors.append)
        await asyncio.sleep(0.2)
        assert not manager.retry_pending
        assert len(errors) == 1
        assert isinstance(errors[0], PlayerError)

    asyncio.run(scenario())


def test_detached_container_cancels_retry():
    async def scenario():
        widget = EmbedWidget()
        errors = []
        manager = VideoPlatformManager(widget, retry_delay=0.01, max_retries=100)
        container = PlayerContainer()
        manager.mount_player(EMBED_VIDEO, container, on_error=errors.append)
        container.detach()
        await asyncio.sleep(0.05)
        widget.loaded = True
        await asyncio.sleep(0.05)
        assert not manager.retry_pending
        assert widget.queue == []
        assert errors == []

    asyncio.run(scenario())


def test_stop_cancels_pending_retry():
    async def scenario():
        widget = EmbedWidget()
        manager = VideoPlatformManager(widget, retry_delay=0.01)
        manager.mount_player(EMBED_VIDEO, PlayerContainer())
        manager.stop()
        assert manager.state == PlayerState.IDLE
        assert not manager.retry_pending
        widget.loaded = True
        await asyncio.sleep(0.05)
        assert widget.queue == []

    asyncio.run(scenario())


def test_stop_rewinds_native_player():
    manager = VideoPlatformManager(EmbedWidget())
    container = PlayerContainer()
    manager.mount_player(FILE_VIDEO, container)
    player = container.content
    player.play()
    player.current_time = 42.0

    manager.stop()
    assert player.paused
    assert player.current_time == 0.0
    assert manager.state == PlayerState.IDLE
    assert manager.current_platform is None


def test_stop_rewinds_embedded_video():
    widget = EmbedWidget(loaded=True)
    manager = VideoPlatformManager(widget)
    manager.mount_player(EMBED_VIDEO, PlayerContainer())
    embedded = widget.ready("vqb0pfo4zw")
    embedded.paused = False
    embedded.position = 30.0

    manager.stop()
    assert embedded.paused
    assert embedded.position == 0


def test_thumbnails():
    assert thumbnail_url(EMBED_VIDEO) == "https://embed-ssl.wistia.com/deliveries/vqb0pfo4zw.jpg"
    assert thumbnail_url(FILE_VIDEO) == PLACEHOLDER_THUMBNAIL
    assert thumbnail_url(FILE_VIDEO, stored="https://cdn.example.com/t.jpg") == "https://cdn.example.com/t.jpg"


def test_markup_is_escaped():
    assert "<script>" not in embed_markup('"><script>')
    player = NativeVideoPlayer("id", 'https://x/clip.mp4?a=1&b="2"')
    assert "&amp;" in player.markup()
    assert "&quot;" in player.markup()


def test_sanitize_url():
    assert sanitize_url("https://example.com/clip.mp4") == "https://example.com/clip.mp4"
    assert sanitize_url("  JavaScript:alert(1)") == ""
    assert sanitize_url("data:text/html,<b>x</b>") == ""
    assert sanitize_url(None) == ""


def test_embed_without_event_loop_reports_error():
    errors = []
    container = PlayerContainer()
    manager = VideoPlatformManager(EmbedWidget(loaded=False))
    manager.mount_player(EMBED_VIDEO, container, on_error=errors.append)

    assert container.content == embed_markup("vqb0pfo4zw")
    assert not manager.retry_pending
    assert len(errors) == 1
    assert isinstance(errors[0], PlayerError)
