"""Receive state changes pushed by the fan.

A device reports a new value by POSTing json to the notification server at
``/<notificationID>``:

.. code-block:: json

   {
       "characteristic": "Active",
       "value": 1,
       "password": "secret"
   }

``password`` is only needed if ``notificationPassword`` is configured.
"""
import hmac
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

from aiohttp import web

from .bridge import CharacteristicBridge
from .const import (
    CHAR_ACTIVE,
    CHAR_ROTATION_SPEED,
    DEFAULT_NOTIFICATION_HOST,
    DEFAULT_NOTIFICATION_PORT,
    NOTIFICATION_CHARACTERISTIC,
    NOTIFICATION_PASSWORD,
    NOTIFICATION_VALUE,
)
from .exceptions import NotificationRegistrationError

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[Dict[str, Any]], None]


class NotificationServer:
    """Dispatches POSTed notifications to the handler registered for their id.

    Handlers can only be registered once the server is ready, see
    :meth:`add_ready_listener`.
    """

    def __init__(
        self, host=DEFAULT_NOTIFICATION_HOST, port=DEFAULT_NOTIFICATION_PORT
    ):
        """Initialise the server. Nothing is bound until :meth:`async_start`.

        :param host: The address to listen on.
        :type host: str

        :param port: The port to listen on. 0 picks a free port.
        :type port: int
        """
        self.host = host
        self.port = port
        self.ready = False
        self._handlers: Dict[str, Tuple[NotificationCallback, Optional[str]]] = {}
        self._ready_listeners: List[Callable[[], None]] = []
        self._runner: Optional[web.AppRunner] = None

        self.app = web.Application()
        self.app.router.add_post("/{notification_id}", self._handle_post)

    def __repr__(self):
        return "<notification server {}:{} ids={}>".format(
            self.host, self.port, list(self._handlers)
        )

    def add_ready_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` once the server accepts notifications.

        If the server is already ready, ``listener`` is called right away.
        """
        if self.ready:
            listener()
        else:
            self._ready_listeners.append(listener)

    def register(
        self,
        notification_id: str,
        handler: NotificationCallback,
        password: Optional[str] = None,
    ) -> None:
        """Send notifications posted to ``/notification_id`` to ``handler``.

        :raise NotificationRegistrationError: If ``notification_id`` is taken.
        """
        if notification_id in self._handlers:
            raise NotificationRegistrationError(
                "ID '{}' is already taken".format(notification_id)
            )
        self._handlers[notification_id] = (handler, password)
        logger.debug("Registered notification handler for '%s'", notification_id)

    def unregister(self, notification_id: str) -> None:
        self._handlers.pop(notification_id, None)

    async def async_start(self) -> None:
        """Start listening and notify the ready listeners."""
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        if self.port == 0:
            self.port = self._runner.addresses[0][1]
        logger.info("Notification server listening on %s:%s", self.host, self.port)

        self.ready = True
        listeners, self._ready_listeners = self._ready_listeners, []
        for listener in listeners:
            listener()

    async def async_stop(self) -> None:
        self.ready = False
        if self._runner is not None:
            logger.debug("Stopping notification server.")
            await self._runner.cleanup()
            self._runner = None

    async def _handle_post(self, request: web.Request) -> web.Response:
        notification_id = request.match_info["notification_id"]
        registered = self._handlers.get(notification_id)
        if registered is None:
            logger.warning("Notification for unknown id '%s'", notification_id)
            return web.Response(status=404)
        handler, password = registered

        try:
            body = await request.json()
        except ValueError as err:
            logger.error("Bad notification request; Error was: %s", err)
            return web.Response(status=400)
        if not isinstance(body, dict):
            logger.error("Bad notification request; body is not an object")
            return web.Response(status=400)

        given_password = body.pop(NOTIFICATION_PASSWORD, None)
        if password is not None and not hmac.compare_digest(
            str(given_password or ""), password
        ):
            logger.warning("Wrong password for notification id '%s'", notification_id)
            return web.Response(status=401)

        handler(body)
        return web.Response(status=200)


class NotificationHandler:
    """Applies notifications to a bridge and marks the echo to be ignored."""

    def __init__(self, bridge: CharacteristicBridge) -> None:
        self.bridge = bridge
        self.config = bridge.config
        self.server: Optional[NotificationServer] = None

    @property
    def characteristics(self):
        """Names of the characteristics this fan accepts notifications for."""
        names = [CHAR_ACTIVE]
        if self.config.rotation_speed.enabled:
            names.append(CHAR_ROTATION_SPEED)
        return names

    def attach(self, server: NotificationServer) -> None:
        """Register with ``server`` as soon as it is ready.

        Does nothing if no notification id is configured.
        """
        if not self.config.notification_id:
            return
        self.server = server
        server.add_ready_listener(self._register)

    def detach(self) -> None:
        if self.server is not None and self.config.notification_id:
            self.server.unregister(self.config.notification_id)
        self.server = None

    def _register(self) -> None:
        try:
            self.server.register(
                self.config.notification_id,
                self.handle,
                self.config.notification_password,
            )
        except NotificationRegistrationError:
            logger.warning(
                "Could not register notification handler. ID '%s' is already taken!",
                self.config.notification_id,
            )
            self.server = None
        else:
            logger.info(
                "Detected running notification server. Registered successfully!"
            )

    def handle(self, payload: Dict[str, Any]) -> None:
        """Apply ``{"characteristic": ..., "value": ...}`` to the bridge.

        Unknown characteristics and values that are not finite numbers are
        logged and ignored.
        """
        characteristic = payload.get(NOTIFICATION_CHARACTERISTIC)
        if characteristic not in self.characteristics:
            logger.warning(
                "Encountered unknown characteristic handling notification: %s",
                characteristic,
            )
            return

        value = payload.get(NOTIFICATION_VALUE)
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or (isinstance(value, float) and not math.isfinite(value))
        ):
            logger.warning(
                "Ignoring notification for '%s' with invalid value: %s",
                characteristic,
                value,
            )
            return

        logger.info("Updating '%s' to new value: %s", characteristic, value)
        try:
            self.bridge.push_notification(characteristic, value)
        except (ValueError, OverflowError):
            logger.exception(
                "%s: Error while applying notification for %s",
                self.config.name,
                characteristic,
            )
