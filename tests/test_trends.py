import asyncio

from noteflow.state import TrendsCache


def test_trends_stored_only_on_success_code(gateway, bus, events) -> None:
    seen = events(TrendsCache.TOPIC)
    gateway.handlers["get_trends"] = lambda args: {
        "code": 200,
        "data": {"weibo": [{"index": 1, "title": "Spring outing", "url": "https://t/1"}]},
    }
    cache = TrendsCache(gateway, bus)

    assert asyncio.run(cache.fetch()) is True
    assert cache.sources() == ["weibo"]
    assert cache.items("weibo")[0].title == "Spring outing"
    assert cache.loading is False
    assert len(seen) == 1

    gateway.handlers["get_trends"] = lambda args: {"code": 500, "msg": "rate limited"}
    assert asyncio.run(cache.fetch()) is False
    assert cache.items("weibo")[0].title == "Spring outing"
    assert cache.items("zhihu") == []


def test_trends_failure_is_logged_not_raised(gateway, bus) -> None:
    gateway.failures["get_trends"] = "upstream timeout"
    cache = TrendsCache(gateway, bus)

    assert asyncio.run(cache.fetch()) is False
    assert cache.data == {}
    assert cache.loading is False
