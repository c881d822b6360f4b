"""Tests for httpfan.notification."""
from unittest.mock import MagicMock

from aiohttp.test_utils import TestClient, TestServer
import pytest

from httpfan.accessory import HttpFan
from httpfan.bridge import CharacteristicBridge
from httpfan.config import FanConfiguration
from httpfan.exceptions import NotificationRegistrationError
from httpfan.notification import NotificationHandler, NotificationServer


@pytest.fixture
def handler(fan_config, executor):
    yield NotificationHandler(CharacteristicBridge(fan_config, executor))


# #### Handler #######
# execute with `-k handler`
# ###################


def test_handler_applies_value(handler):
    received = []
    handler.bridge.add_listener(lambda name, value: received.append((name, value)))

    handler.handle({"characteristic": "Active", "value": 1})

    assert handler.bridge.state.active == 1
    assert handler.bridge.state.ignore_next_set is True
    assert received == [("Active", 1)]


@pytest.mark.asyncio
async def test_handler_suppresses_echo(handler, executor):
    handler.handle({"characteristic": "Active", "value": 1})
    await handler.bridge.set_active(1)
    assert executor.calls == []

    await handler.bridge.set_active(0)
    assert executor.calls == [("POST", "http://dev/off")]


@pytest.mark.parametrize(
    "payload",
    [
        {"characteristic": "RotationDirection", "value": 1},
        {"value": 1},
        {"characteristic": "Active", "value": "on"},
        {"characteristic": "Active", "value": True},
        {"characteristic": "Active"},
        {"characteristic": "Active", "value": float("nan")},
        {"characteristic": "RotationSpeed", "value": float("inf")},
        {"characteristic": "RotationSpeed", "value": float("-inf")},
    ],
)
def test_handler_ignores_invalid_payload(handler, caplog, payload):
    listener = MagicMock()
    handler.bridge.add_listener(listener)

    handler.handle(payload)

    assert handler.bridge.state.active == 0
    assert handler.bridge.state.ignore_next_set is False
    listener.assert_not_called()
    assert caplog.records


def test_handler_ignores_rotation_speed_when_disabled(executor, caplog):
    handler = NotificationHandler(
        CharacteristicBridge(FanConfiguration("Fan", notification_id="fan"), executor)
    )
    handler.handle({"characteristic": "RotationSpeed", "value": 10})
    assert handler.bridge.state.rotation_speed == 0
    assert handler.bridge.state.ignore_next_set is False
    assert "unknown characteristic" in caplog.text


def test_handler_logs_listener_errors(handler, caplog):
    handler.bridge.add_listener(MagicMock(side_effect=ValueError("invalid")))
    handler.handle({"characteristic": "Active", "value": 1})
    assert "Error while applying notification" in caplog.text
    assert handler.bridge.state.active == 0
    assert handler.bridge.state.ignore_next_set is False


def test_handler_registers_when_server_ready(handler):
    server = NotificationServer(port=0)
    handler.attach(server)
    assert "fan" not in server._handlers  # pylint: disable=protected-access

    server.ready = True
    server._ready_listeners.pop()()  # pylint: disable=protected-access
    assert "fan" in server._handlers  # pylint: disable=protected-access

    handler.detach()
    assert "fan" not in server._handlers  # pylint: disable=protected-access


def test_handler_registration_failure_is_not_fatal(handler, caplog):
    server = NotificationServer(port=0)
    server.ready = True
    server.register("fan", MagicMock())

    handler.attach(server)

    assert "already taken" in caplog.text
    assert handler.server is None


def test_handler_without_notification_id(executor):
    handler = NotificationHandler(
        CharacteristicBridge(FanConfiguration("Fan"), executor)
    )
    server = MagicMock()
    handler.attach(server)
    server.add_ready_listener.assert_not_called()


# #### Server #######
# execute with `-k server`
# ##################


def test_server_duplicate_registration():
    server = NotificationServer()
    server.register("fan", MagicMock())
    with pytest.raises(NotificationRegistrationError):
        server.register("fan", MagicMock())
    server.unregister("fan")
    server.register("fan", MagicMock())


def test_server_ready_listener_called_immediately_when_ready():
    server = NotificationServer()
    server.ready = True
    listener = MagicMock()
    server.add_ready_listener(listener)
    listener.assert_called_once_with()


@pytest.mark.asyncio
async def test_server_start_notifies_ready_listeners():
    server = NotificationServer("127.0.0.1", 0)
    listener = MagicMock()
    server.add_ready_listener(listener)

    await server.async_start()
    try:
        assert server.ready is True
        assert server.port != 0
        listener.assert_called_once_with()
    finally:
        await server.async_stop()
    assert server.ready is False


@pytest.mark.asyncio
async def test_server_dispatches_notifications():
    server = NotificationServer()
    handler = MagicMock()
    protected = MagicMock()
    server.register("fan", handler)
    server.register("locked", protected, "secret")

    async with TestClient(TestServer(server.app)) as client:
        resp = await client.post("/fan", json={"characteristic": "Active", "value": 1})
        assert resp.status == 200
        handler.assert_called_once_with({"characteristic": "Active", "value": 1})

        resp = await client.post("/unknown", json={"characteristic": "Active", "value": 1})
        assert resp.status == 404

        resp = await client.post("/fan", data="not json")
        assert resp.status == 400

        resp = await client.post("/fan", json=[1, 2])
        assert resp.status == 400

        resp = await client.post("/locked", json={"characteristic": "Active", "value": 0})
        assert resp.status == 401
        resp = await client.post(
            "/locked",
            json={"characteristic": "Active", "value": 0, "password": "wrong"},
        )
        assert resp.status == 401
        protected.assert_not_called()

        resp = await client.post(
            "/locked",
            json={"characteristic": "Active", "value": 0, "password": "secret"},
        )
        assert resp.status == 200
        protected.assert_called_once_with({"characteristic": "Active", "value": 0})

    assert handler.call_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", "1e999"])
async def test_server_ignores_values_that_are_not_finite(
    driver, fan_config, executor, value
):
    fan = HttpFan(driver, fan_config, executor=executor)
    server = NotificationServer()
    server.register("fan", fan.notifications.handle, "secret")
    body = '{"characteristic": "Active", "value": %s, "password": "secret"}' % value

    async with TestClient(TestServer(server.app)) as client:
        resp = await client.post("/fan", data=body)
        assert resp.status == 200

    assert fan.bridge.state.active == 0
    assert fan.bridge.state.ignore_next_set is False
    assert fan.char_active.value == 0

    # The next client command is still sent to the device.
    fan.char_active.client_update_value(1)
    await driver.wait_for_jobs()
    assert executor.calls == [("POST", "http://dev/on")]
