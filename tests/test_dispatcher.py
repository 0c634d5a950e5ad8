"""ConnectionRegistry fan-out and DeliveryDispatcher routing."""

import pytest

from conftest import FakeConnection
from relaychat.services.dispatcher import DeliveryDispatcher


def payload(recipient=None, **extra):
    data = {"id": 1, "sender": 1, "recipient": recipient, "content": "hello", "attachment": None}
    data.update(extra)
    return data


class BrokenRegistry:
    async def broadcast(self, payload):
        raise RuntimeError("registry unavailable")

    async def send_to(self, user_id, payload):
        raise RuntimeError("registry unavailable")


class TestConnectionRegistry:

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_session(self, registry):
        conns = [FakeConnection(), FakeConnection(), FakeConnection()]
        await registry.register(1, conns[0])
        await registry.register(2, conns[1])
        await registry.register(2, conns[2])

        result = await registry.broadcast(payload())

        assert result.delivered == 3
        assert all(c.sent == [payload()] for c in conns)

    @pytest.mark.asyncio
    async def test_send_to_only_targets_one_user(self, registry):
        alice, bob = FakeConnection(), FakeConnection()
        await registry.register(1, alice)
        await registry.register(2, bob)

        result = await registry.send_to(2, payload(recipient=2))

        assert result.delivered == 1
        assert bob.sent == [payload(recipient=2)]
        assert alice.sent == []

    @pytest.mark.asyncio
    async def test_dropped_connection_is_swallowed_and_unregistered(self, registry):
        healthy, dropped = FakeConnection(), FakeConnection(fail=True)
        await registry.register(1, healthy)
        await registry.register(2, dropped)

        result = await registry.broadcast(payload())

        assert result.delivered == 1
        assert result.failed == 1
        assert not registry.is_connected(2)
        assert registry.is_connected(1)

    @pytest.mark.asyncio
    async def test_disconnect_during_broadcast(self, registry):
        late = FakeConnection()

        class Disconnecting(FakeConnection):
            async def send_text(self, data):
                await registry.unregister(2, late)
                await super().send_text(data)

        first = Disconnecting()
        await registry.register(1, first)
        await registry.register(2, late)

        result = await registry.broadcast(payload())

        assert result.failed == 0
        assert len(first.sent) == 1
        assert registry.connection_count() == 1

    @pytest.mark.asyncio
    async def test_unregister_unknown_is_noop(self, registry):
        await registry.unregister(42, FakeConnection())
        assert registry.connection_count() == 0


class TestDeliveryDispatcher:

    @pytest.mark.asyncio
    async def test_global_mode(self, registry, dispatcher, reports):
        conns = [FakeConnection(), FakeConnection()]
        await registry.register(1, conns[0])
        await registry.register(2, conns[1])

        report = await dispatcher.dispatch(payload())

        assert report.mode == "global"
        assert report.delivered == 2
        assert reports == [report]

    @pytest.mark.asyncio
    async def test_direct_mode_offline_recipient_is_not_an_error(self, registry, dispatcher):
        bystander = FakeConnection()
        await registry.register(1, bystander)

        report = await dispatcher.dispatch(payload(recipient=2))

        assert report.mode == "direct"
        assert report.delivered == 0
        assert report.error is None
        assert bystander.sent == []

    @pytest.mark.asyncio
    async def test_registry_fault_is_reported_not_raised(self):
        dispatcher = DeliveryDispatcher(BrokenRegistry())
        seen = []

        async def listener(report):
            seen.append(report)

        dispatcher.add_listener(listener)
        report = await dispatcher.dispatch(payload())

        assert report.error == "RuntimeError: registry unavailable"
        assert seen == [report]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_dispatch(self, registry, dispatcher, reports):
        def broken(report):
            raise ValueError("audit sink down")

        dispatcher.add_listener(broken)
        await registry.register(1, FakeConnection())

        report = await dispatcher.dispatch(payload())

        assert report.delivered == 1
        assert reports == [report]

    @pytest.mark.asyncio
    async def test_removed_listener_is_not_called(self, dispatcher):
        seen = []
        dispatcher.add_listener(seen.append)
        dispatcher.remove_listener(seen.append)

        await dispatcher.dispatch(payload())

        assert seen == []
