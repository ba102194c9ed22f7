import asyncio
import logging

from signage.messaging import LocalPushChannel, weather_topic


def test_publish_reaches_sync_and_async_listeners():
    channel = LocalPushChannel()
    received = []

    def sync_listener(detail):
        received.append(("sync", detail["location"]))

    async def async_listener(detail):
        received.append(("async", detail["location"]))

    channel.add_listener("weather-update", sync_listener)
    channel.add_listener("weather-update", async_listener)

    count = asyncio.run(channel.publish("weather-update", {"location": "10001"}))

    assert count == 2
    assert received == [("sync", "10001"), ("async", "10001")]


def test_failing_listener_does_not_block_others(caplog):
    channel = LocalPushChannel()
    received = []

    def broken(detail):
        raise ValueError("bad listener")

    channel.add_listener("evt", broken)
    channel.add_listener("evt", received.append)

    with caplog.at_level(logging.ERROR):
        asyncio.run(channel.publish("evt", {"x": 1}))

    assert received == [{"x": 1}]
    assert "Listener for evt failed" in caplog.text


def test_remove_listener_and_topics():
    channel = LocalPushChannel()
    received = []
    channel.add_listener("evt", received.append)
    channel.remove_listener("evt", received.append)
    channel.remove_listener("other", received.append)

    async def scenario():
        await channel.subscribe(weather_topic("10001"))
        await channel.subscribe("news")
        await channel.unsubscribe("news")
        return await channel.publish("evt", {})

    assert asyncio.run(scenario()) == 0
    assert received == []
    assert channel.topics == {"weather.10001"}
