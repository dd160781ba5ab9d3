"""
Unit tests for core.pubsub module.
Tests topic subscription, unsubscription, and event delivery.
"""
import pytest
from chatconnect.core.pubsub import Channel


class RecordingListener:
    """Async listener recording every payload it receives."""

    def __init__(self):
        self.received = []

    async def __call__(self, payload: dict):
        self.received.append(payload)


class TestChannelSubscription:
    """Tests for subscription and unsubscription."""

    def test_sub_registers_listener(self):
        channel = Channel()
        listener = RecordingListener()
        channel.sub("rooms", listener)
        assert channel.listener_count("rooms") == 1

    def test_unsub_removes_listener_and_empty_topic(self):
        channel = Channel()
        listener = RecordingListener()
        channel.sub("rooms", listener)
        channel.unsub("rooms", listener)
        assert channel.listener_count("rooms") == 0
        assert "rooms" not in channel._topics

    def test_unsub_nonexistent_does_not_error(self):
        """unsub should not error for non-existent subscription."""
        Channel().unsub("nothing", RecordingListener())


class TestChannelPublishing:
    """Tests for event publishing."""

    @pytest.mark.asyncio
    async def test_pub_delivers_to_all_listeners_of_topic(self):
        channel = Channel()
        l1, l2, other = RecordingListener(), RecordingListener(), RecordingListener()
        channel.sub("rooms", l1)
        channel.sub("rooms", l2)
        channel.sub("messages", other)

        await channel.pub("rooms", {"type": "set", "path": "rooms/ABC123"})

        assert l1.received == [{"type": "set", "path": "rooms/ABC123"}]
        assert l2.received == [{"type": "set", "path": "rooms/ABC123"}]
        assert other.received == []

    @pytest.mark.asyncio
    async def test_pub_no_listeners_no_error(self):
        await Channel().pub("empty", {"type": "set"})

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self):
        channel = Channel()
        good = RecordingListener()

        async def failing(payload):
            raise RuntimeError("listener broke")

        channel.sub("rooms", failing)
        channel.sub("rooms", good)
        await channel.pub("rooms", {"type": "delete"})
        assert good.received == [{"type": "delete"}]

    @pytest.mark.asyncio
    async def test_listener_may_unsubscribe_while_receiving(self):
        channel = Channel()
        calls = []

        async def once(payload):
            calls.append(payload)
            channel.unsub("rooms", once)

        channel.sub("rooms", once)
        await channel.pub("rooms", {"n": 1})
        await channel.pub("rooms", {"n": 2})
        assert calls == [{"n": 1}]
