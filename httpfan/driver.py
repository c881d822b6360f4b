"""AccessoryDriver that also runs the notification server."""
import logging

from pyhap.accessory_driver import AccessoryDriver

logger = logging.getLogger(__name__)


class HttpFanDriver(AccessoryDriver):
    """Starts the notification server before the accessory runs.

    The server is stopped before the driver shuts down the event loop.
    """

    def __init__(self, *, notification_server=None, **kwargs):
        super().__init__(**kwargs)
        self.notification_server = notification_server

    async def async_start(self):
        if self.notification_server is not None:
            await self.notification_server.async_start()
        await super().async_start()

    async def async_stop(self):
        if self.notification_server is not None:
            await self.notification_server.async_stop()
        await super().async_stop()
