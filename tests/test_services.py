import asyncio
from datetime import date, datetime, timezone

import pytest

from digital_menu.services.analytics import (
    Period,
    average_daily,
    classify_browser,
    classify_device,
    client_ip,
    daily_view_series,
    overview_windows,
    percentage,
    resolve_period,
)
from digital_menu.services.cache import CacheKeys, MockCacheService
from digital_menu.core.config import Settings
from digital_menu.services.images import (
    CloudinaryImageService,
    ImageUploadError,
    extract_public_id,
    transformation_string,
)
from digital_menu.services.realtime import BroadcastEvent, MenuEvent, MockBroadcaster, PusherBroadcaster

NOW = datetime(2024, 3, 14, 15, 30, tzinfo=timezone.utc)  # a Thursday


# =============================================================================
# CACHE
# =============================================================================

def test_cache_get_or_set_only_stores_values():
    cache = MockCacheService()
    calls = []

    async def fetch_menu():
        calls.append("menu")
        return {"slug": "cafe-roma"}

    async def fetch_nothing():
        calls.append("none")
        return None

    async def scenario():
        first = await cache.get_or_set("menu:public:cafe-roma", fetch_menu)
        second = await cache.get_or_set("menu:public:cafe-roma", fetch_menu)
        missing = await cache.get_or_set("menu:public:draft", fetch_nothing)
        again = await cache.get_or_set("menu:public:draft", fetch_nothing)
        return first, second, missing, again

    first, second, missing, again = asyncio.run(scenario())
    assert first == second == {"slug": "cafe-roma"}
    assert missing is None and again is None
    assert calls == ["menu", "none", "none"]
    assert cache.keys() == ["menu:public:cafe-roma"]


def test_cache_invalidate_menu_and_patterns():
    cache = MockCacheService()

    async def scenario():
        await cache.set(CacheKeys.public_menu("cafe-roma"), {"id": "m1"})
        await cache.set(CacheKeys.menu_categories("m1"), [])
        await cache.set(CacheKeys.analytics("m1", "2024-03-14"), {})
        await cache.set(CacheKeys.analytics("m1", "2024-03-15"), {})
        await cache.invalidate_menu("m1", "cafe-roma")
        removed = await cache.delete_pattern("analytics:m1:*")
        return removed

    assert asyncio.run(scenario()) == 2
    assert cache.keys() == []


def test_cache_expiry():
    cache = MockCacheService()
    asyncio.run(cache.set("short", 1, ttl=0))
    assert asyncio.run(cache.get("short")) is None


def test_cache_outage_is_a_miss():
    cache = MockCacheService(failure_rate=1.0)
    assert asyncio.run(cache.set("k", 1)) is False
    assert asyncio.run(cache.get("k")) is None
    assert asyncio.run(cache.health_check()) is False


# =============================================================================
# REALTIME
# =============================================================================

def test_broadcaster_records_menu_events():
    broadcaster = MockBroadcaster()
    ok = asyncio.run(broadcaster.trigger_menu_event("m1", MenuEvent.CATEGORY_CREATED, {"id": "c1"}))
    assert ok is True
    event = broadcaster.sent[-1]
    assert (event.channel, event.event, event.data) == ("menu-m1", "category:created", {"id": "c1"})


def test_broadcaster_failure_never_raises():
    broadcaster = MockBroadcaster(failure_rate=1.0)
    assert asyncio.run(broadcaster.trigger_menu_event("m1", MenuEvent.MENU_UPDATED, {})) is False
    assert asyncio.run(broadcaster.trigger_batch([])) is True
    assert broadcaster.sent == []


class RecordingPusherClient:
    def __init__(self):
        self.calls = []

    def trigger(self, channels, event_name, data):
        self.calls.append(("trigger", channels, event_name, data))

    def trigger_batch(self, batch):
        self.calls.append(("trigger_batch", batch))


def _pusher_settings():
    return Settings(pusher_app_id="1", pusher_key="key", pusher_secret="secret", pusher_cluster="eu")


def test_pusher_requires_credentials():
    with pytest.raises(ValueError):
        PusherBroadcaster(Settings(pusher_app_id=None, pusher_key=None, pusher_secret=None))


def test_pusher_sends_through_sdk_client():
    broadcaster = PusherBroadcaster(_pusher_settings())
    broadcaster._client = RecordingPusherClient()

    assert asyncio.run(broadcaster.trigger_menu_event("m1", MenuEvent.MENU_PUBLISHED, {"id": "m1"}))
    events = [BroadcastEvent("menu-m1", "product:updated", {"id": str(i)}) for i in range(12)]
    assert asyncio.run(broadcaster.trigger_batch(events))

    calls = broadcaster._client.calls
    assert calls[0] == ("trigger", "menu-m1", "menu:published", {"id": "m1"})
    assert [len(call[1]) for call in calls[1:]] == [10, 2]
    assert calls[1][1][0] == {"channel": "menu-m1", "name": "product:updated", "data": {"id": "0"}}


# =============================================================================
# IMAGES
# =============================================================================

def test_transformation_and_public_id():
    assert transformation_string("logo") == "c_limit,f_auto,h_200,q_auto,w_200"
    url = "https://res.cloudinary.com/demo/image/upload/v1712/digital-menu/u1/abc.jpg"
    assert extract_public_id(url) == "digital-menu/u1/abc"
    assert extract_public_id("https://example.com/pic.jpg") is None


def _cloudinary_settings():
    return Settings(
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
    )


def test_cloudinary_upload_applies_preset(monkeypatch):
    import cloudinary.uploader

    received = {}

    def fake_upload(file, **options):
        received.update(options, content=file.read())
        return {
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/digital-menu/u1/abc.png",
            "public_id": "digital-menu/u1/abc",
            "width": 400,
            "height": 400,
            "bytes": 3,
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    service = CloudinaryImageService(_cloudinary_settings())
    result = asyncio.run(service.upload(b"img", folder="digital-menu/u1", preset="logo"))

    assert result.public_id == "digital-menu/u1/abc"
    assert received["content"] == b"img"
    assert received["folder"] == "digital-menu/u1"
    assert received["transformation"][0]["crop"] == "limit"


def test_cloudinary_failures(monkeypatch):
    import cloudinary.uploader
    from cloudinary.exceptions import Error

    def failing(*args, **kwargs):
        raise Error("rejected")

    monkeypatch.setattr(cloudinary.uploader, "upload", failing)
    monkeypatch.setattr(cloudinary.uploader, "destroy", failing)
    service = CloudinaryImageService(_cloudinary_settings())

    with pytest.raises(ImageUploadError):
        asyncio.run(service.upload(b"img"))
    assert asyncio.run(service.delete("digital-menu/u1/abc")) is False

    unconfigured = CloudinaryImageService(
        Settings(cloudinary_cloud_name=None, cloudinary_api_key=None, cloudinary_api_secret=None)
    )
    assert unconfigured.is_configured is False
    with pytest.raises(ImageUploadError):
        asyncio.run(unconfigured.upload(b"img"))


# =============================================================================
# ANALYTICS
# =============================================================================

@pytest.mark.parametrize("user_agent, device", [
    (None, None),
    ("Mozilla/5.0 (Linux; Android 14; Pixel 8) Mobile Safari/537.36", "mobile"),
    ("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)", "tablet"),
    ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0)", "desktop"),
])
def test_classify_device(user_agent, device):
    assert classify_device(user_agent) == device


@pytest.mark.parametrize("user_agent, browser", [
    ("Mozilla/5.0 Chrome/120.0 Safari/537.36", "Chrome"),
    ("Mozilla/5.0 Chrome/120.0 Safari/537.36 Edg/120.0", "Edge"),
    ("Mozilla/5.0 Version/17.0 Safari/604.1", "Safari"),
    ("Mozilla/5.0 Gecko/20100101 Firefox/121.0", "Firefox"),
    ("Opera/9.80 (Windows NT 6.1) Presto/2.12", "Opera"),
    ("curl/8.4.0", "Other"),
])
def test_classify_browser(user_agent, browser):
    assert classify_browser(user_agent) == browser


def test_client_ip():
    assert client_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}) == "203.0.113.7"
    assert client_ip({"x-real-ip": "198.51.100.2"}) == "198.51.100.2"
    assert client_ip({}) is None


def test_resolve_period():
    week = resolve_period("7d", NOW)
    assert week.start == datetime(2024, 3, 8, tzinfo=timezone.utc)
    assert week.end.date() == date(2024, 3, 14)
    assert week.days == 7

    custom = resolve_period("custom", NOW, date(2024, 3, 1), date(2024, 3, 3))
    assert custom.days == 3
    assert resolve_period("custom", NOW).days == 30

    with pytest.raises(ValueError):
        resolve_period("custom", NOW, date(2024, 3, 3), date(2024, 3, 1))
    with pytest.raises(ValueError):
        resolve_period("yearly", NOW)


def test_overview_windows():
    starts = overview_windows(NOW)
    assert starts["today"] == datetime(2024, 3, 14, tzinfo=timezone.utc)
    assert starts["week"] == datetime(2024, 3, 11, tzinfo=timezone.utc)
    assert starts["month"] == datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_daily_view_series_is_zero_filled():
    period = Period(
        start=datetime(2024, 3, 12, tzinfo=timezone.utc),
        end=datetime(2024, 3, 14, 23, 59, tzinfo=timezone.utc),
    )
    stamps = [
        datetime(2024, 3, 12, 9, 0),
        datetime(2024, 3, 14, 8, 0),
        datetime(2024, 3, 14, 20, 0, tzinfo=timezone.utc),
    ]
    series = daily_view_series(stamps, period)
    assert series == [
        {"date": "2024-03-12", "views": 1},
        {"date": "2024-03-13", "views": 0},
        {"date": "2024-03-14", "views": 2},
    ]
    assert average_daily(series) == 1.0
    assert daily_view_series([], period)[1] == {"date": "2024-03-13", "views": 0}


def test_percentage():
    assert percentage(1, 3) == 33.3
    assert percentage(5, 0) == 0.0
