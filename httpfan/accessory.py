"""The HttpFan accessory, a Fanv2 service backed by HTTP requests."""
import logging

from pyhap.accessory import Accessory
from pyhap.const import CATEGORY_FAN

from .bridge import CharacteristicBridge, require_url
from .const import (
    CHAR_ACTIVE,
    CHAR_ROTATION_SPEED,
    MANUFACTURER,
    MODEL,
    SERIAL_NUMBER,
    SERV_FANV2,
    __version__,
)
from .exceptions import HttpFanError
from .notification import NotificationHandler

logger = logging.getLogger(__name__)


class HttpFan(Accessory):
    """A fan that is switched and queried through user configured URLs.

    Reading a characteristic answers with the last known value and requests
    a fresh one from the device, which is sent to clients when it arrives. If
    the status URL is missing, or the previous request for the value failed,
    the read raises instead, so clients show the fan as not responding.
    Writing a characteristic requests the matching URL. If that fails, the
    characteristic goes back to the last known value.
    """

    category = CATEGORY_FAN

    def __init__(
        self, driver, config, aid=None, executor=None, notification_server=None
    ):
        """Initialise the accessory.

        :param config: The fan to expose.
        :type config: httpfan.config.FanConfiguration

        :param executor: Sends the requests. Defaults to a new RequestExecutor.
        :type executor: httpfan.http_client.RequestExecutor

        :param notification_server: Server to receive pushed updates from. Only
            used if the configuration has a notification id.
        :type notification_server: httpfan.notification.NotificationServer
        """
        super().__init__(driver, config.name, aid=aid)
        self.config = config
        self.bridge = CharacteristicBridge(config, executor)
        self.notifications = NotificationHandler(self.bridge)
        self.notification_server = notification_server
        self._refreshing = set()
        self._refresh_errors = {}
        self._report_errors = True

        self.set_info_service(
            firmware_revision=__version__,
            manufacturer=MANUFACTURER,
            model=MODEL,
            serial_number=SERIAL_NUMBER,
        )
        self.get_service("AccessoryInformation").configure_char(
            "Identify", setter_callback=self.identify
        )

        # RotationSpeed is only added when configured.
        chars = [CHAR_ROTATION_SPEED] if config.rotation_speed.enabled else None
        serv_fan = self.add_preload_service(SERV_FANV2, chars=chars)
        self.char_active = serv_fan.configure_char(
            CHAR_ACTIVE, getter_callback=self.get_active, setter_callback=self.set_active
        )
        self.char_rotation_speed = None
        if config.rotation_speed.enabled:
            self.char_rotation_speed = serv_fan.configure_char(
                CHAR_ROTATION_SPEED,
                getter_callback=self.get_rotation_speed,
                setter_callback=self.set_rotation_speed,
            )

        self.bridge.add_listener(self._on_notification)

    def identify(self, _value=None):
        logger.info("%s: Identify requested!", self.display_name)

    def _characteristic(self, name):
        if name == CHAR_ACTIVE:
            return self.char_active
        return self.char_rotation_speed

    def _on_notification(self, name, value):
        """Forward a pushed value to clients as if it was set by one of them.

        The resulting setter call is the echo the bridge ignores.
        """
        self._characteristic(name).client_update_value(value)

    def to_HAP(self, *args, **kwargs):
        """Serialise with the last known values, without raising read errors."""
        self._report_errors = False
        try:
            return super().to_HAP(*args, **kwargs)
        finally:
            self._report_errors = True

    # Getters, called from the event loop

    def get_active(self):
        return self._get(
            CHAR_ACTIVE, self.config.active.status_endpoint, self.bridge.state.active
        )

    def get_rotation_speed(self):
        return self._get(
            CHAR_ROTATION_SPEED,
            self.config.rotation_speed.status_endpoint,
            self.bridge.state.rotation_speed,
        )

    def _get(self, name, endpoint, last_known):
        """Return ``last_known`` and refresh ``name`` in the background.

        :raise HttpFanError: If the status URL is not defined or the last
            refresh failed.
        """
        if not endpoint.url:
            if self._report_errors:
                require_url(endpoint)
            return last_known

        self._schedule_refresh(name)
        error = self._refresh_errors.get(name)
        if error is not None and self._report_errors:
            raise error.with_traceback(None)
        return last_known

    def _schedule_refresh(self, name):
        if name in self._refreshing:
            return
        self._refreshing.add(name)
        self.driver.async_add_job(self.async_refresh, name)

    async def async_refresh(self, name):
        """Request the current value of ``name`` and send it to clients."""
        if name == CHAR_ACTIVE:
            request = self.bridge.get_active
        else:
            request = self.bridge.get_rotation_speed
        try:
            value = await request()
        except HttpFanError as err:
            logger.warning(
                "%s: Could not get %s: %s", self.display_name, name, err
            )
            self._refresh_errors[name] = err
            return
        finally:
            self._refreshing.discard(name)
        self._refresh_errors.pop(name, None)
        self._characteristic(name).set_value(value)

    # Setters

    def set_active(self, value):
        self._check_set(
            CHAR_ACTIVE, self.config.active.set_endpoint(value), self.bridge.state.active
        )
        self.driver.async_add_job(self.async_set, CHAR_ACTIVE, value)

    def set_rotation_speed(self, value):
        self._check_set(
            CHAR_ROTATION_SPEED,
            self.config.rotation_speed.set_endpoint,
            self.bridge.state.rotation_speed,
        )
        self.driver.async_add_job(self.async_set, CHAR_ROTATION_SPEED, int(value))

    def _check_set(self, name, endpoint, last_known):
        """Fail a set that can not be sent, unless it is an echo.

        :raise ConfigurationError: If the URL for the value is not defined.
        """
        if self.bridge.state.ignore_next_set or endpoint.url:
            return
        self._characteristic(name).set_value(last_known, should_notify=False)
        require_url(endpoint)

    async def async_set(self, name, value):
        """Send ``value`` to the device, reverting the characteristic on failure."""
        if name == CHAR_ACTIVE:
            request = self.bridge.set_active
            last_known = self.bridge.state.active
        else:
            request = self.bridge.set_rotation_speed
            last_known = self.bridge.state.rotation_speed
        try:
            await request(value)
        except HttpFanError as err:
            logger.warning(
                "%s: Error while setting %s to %s: %s",
                self.display_name,
                name,
                value,
                err,
            )
            self._characteristic(name).set_value(last_known)

    async def run(self):
        if self.notification_server is not None:
            self.notifications.attach(self.notification_server)

    async def stop(self):
        self.notifications.detach()
        await self.bridge.close()
