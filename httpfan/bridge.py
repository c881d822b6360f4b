"""Synchronises the characteristics of a fan with the fan's HTTP endpoints.

Getting a characteristic requests its status URL and parses the body. Setting
a characteristic requests the URL that corresponds to the new value.

Notifications pushed by the device write the new value directly into the
state and mark the next set as an echo of that write, so that the platform
does not send the value back to the device that reported it. The mark is a
single flag shared by all characteristics: a notification for Active also
swallows the next RotationSpeed set, and the other way round.
"""
import logging
import re
from typing import Callable, List, Optional

from .config import CharacteristicEndpoint, FanConfiguration
from .const import CHAR_ACTIVE, CHAR_ROTATION_SPEED, URL_VALUE_PLACEHOLDER
from .exceptions import ConfigurationError, ProtocolError
from .http_client import RequestExecutor

logger = logging.getLogger(__name__)

LEADING_INT_REGEX = re.compile(r"^\s*([+-]?\d+)")

StateListener = Callable[[str, int], None]


def parse_int(body: str) -> Optional[int]:
    """Parse the leading integer of ``body``.

    Trailing characters are ignored, so ``"1\\n"`` and ``"42%"`` are accepted.

    :return: The integer, or None if ``body`` does not start with one.
    """
    match = LEADING_INT_REGEX.match(body)
    if match is None:
        return None
    return int(match.group(1))


def _format_parsed(value: Optional[int]) -> str:
    return "NaN" if value is None else str(value)


def require_url(endpoint: CharacteristicEndpoint) -> None:
    """:raise ConfigurationError: If ``endpoint`` has no URL."""
    if not endpoint.url:
        raise ConfigurationError("{} not defined".format(endpoint.url_name))


class BridgeState:
    """Last known values of the characteristics and the echo flag."""

    __slots__ = ("active", "rotation_speed", "ignore_next_set")

    def __init__(self) -> None:
        self.active = 0
        self.rotation_speed = 0
        self.ignore_next_set = False

    def __repr__(self) -> str:
        return "<bridge state active={} rotation_speed={} ignore_next_set={}>".format(
            self.active, self.rotation_speed, self.ignore_next_set
        )


class CharacteristicBridge:
    """Maps the Active and RotationSpeed characteristics to HTTP requests.

    All operations are coroutines that must run on one event loop. State
    checks and writes never span an ``await``, which keeps the echo flag and
    the values consistent with each other.
    """

    def __init__(
        self, config: FanConfiguration, executor: Optional[RequestExecutor] = None
    ) -> None:
        self.config = config
        self.executor = executor or RequestExecutor()
        self.state = BridgeState()
        self._listeners: List[StateListener] = []

    def __repr__(self) -> str:
        return "<characteristic bridge name={} state={}>".format(
            self.config.name, self.state
        )

    # Listeners

    def add_listener(self, listener: StateListener) -> None:
        """Call ``listener(characteristic, value)`` on every pushed change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        self._listeners.remove(listener)

    def push_notification(self, characteristic: str, value: int) -> None:
        """Apply a value reported by the device and emit it to the listeners.

        The next set of any characteristic is treated as already applied. If a
        listener raises, the state and the flag are restored and the error is
        raised again.
        """
        if characteristic == CHAR_ACTIVE:
            attr = "active"
        elif characteristic == CHAR_ROTATION_SPEED:
            attr = "rotation_speed"
        else:
            raise ValueError("Unknown characteristic: {}".format(characteristic))

        previous = getattr(self.state, attr), self.state.ignore_next_set
        setattr(self.state, attr, value)
        self.state.ignore_next_set = True
        try:
            for listener in list(self._listeners):
                listener(characteristic, value)
        except Exception:
            # A rejected value must not stay in the state or swallow a set.
            setattr(self.state, attr, previous[0])
            self.state.ignore_next_set = previous[1]
            raise

    def _consume_ignore_next_set(self) -> bool:
        if self.state.ignore_next_set:
            self.state.ignore_next_set = False
            return True
        return False

    async def _request(
        self, method_name: str, endpoint: CharacteristicEndpoint, url=None
    ) -> str:
        if not endpoint.url:
            logger.debug(
                "Ignoring %s() request, '%s' is not defined!",
                method_name,
                endpoint.url_name,
            )
            require_url(endpoint)

        return await self.executor.perform(url or endpoint.url, endpoint.http_method)

    # Active

    async def get_active(self) -> int:
        """Request the status URL and return 0 or 1.

        :raise ConfigurationError: If ``active.statusUrl`` is not defined.
        :raise ProtocolError: If the body is neither 0 nor 1.
        """
        body = await self._request("get_active", self.config.active.status_endpoint)
        active = parse_int(body)
        if active not in (0, 1):
            logger.debug(
                "active.statusUrl responded with an invalid value: %s",
                _format_parsed(active),
            )
            raise ProtocolError(
                "invalid active value: {}".format(_format_parsed(active))
            )

        logger.info(
            "%s: fan is currently %s",
            self.config.name,
            "ACTIVE" if active == 1 else "INACTIVE",
        )
        self.state.active = active
        return active

    async def set_active(self, value: int) -> None:
        """Switch the fan on (1) or off (0).

        :raise ConfigurationError: If the URL for ``value`` is not defined.
        """
        if self._consume_ignore_next_set():
            logger.debug("%s: set_active(%s) already applied", self.config.name, value)
            return

        await self._request("set_active", self.config.active.set_endpoint(value))
        logger.info(
            "%s: fan successfully set to %s",
            self.config.name,
            "ACTIVE" if value == 1 else "INACTIVE",
        )
        self.state.active = value

    # RotationSpeed

    async def get_rotation_speed(self) -> int:
        """Request the status URL and return the speed as reported.

        The value is not checked against the 0-100 range.

        :raise ConfigurationError: If ``rotationSpeed.statusUrl`` is not defined.
        :raise ProtocolError: If the body does not start with an integer.
        """
        body = await self._request(
            "get_rotation_speed", self.config.rotation_speed.status_endpoint
        )
        rotation_speed = parse_int(body)
        if rotation_speed is None:
            logger.debug(
                "rotationSpeed.statusUrl responded with an invalid value: %s", body
            )
            raise ProtocolError("invalid rotation speed value: NaN")

        logger.info(
            "%s: rotationSpeed is currently at %s %%", self.config.name, rotation_speed
        )
        self.state.rotation_speed = rotation_speed
        return rotation_speed

    async def set_rotation_speed(self, value: int) -> None:
        """Request ``rotationSpeed.setUrl`` with ``%s`` replaced by ``value``.

        :raise ConfigurationError: If ``rotationSpeed.setUrl`` is not defined.
        """
        if self._consume_ignore_next_set():
            logger.debug(
                "%s: set_rotation_speed(%s) already applied", self.config.name, value
            )
            return

        endpoint = self.config.rotation_speed.set_endpoint
        url = None
        if endpoint.url:
            url = endpoint.url.replace(URL_VALUE_PLACEHOLDER, str(value), 1)
        await self._request("set_rotation_speed", endpoint, url)
        logger.info(
            "%s: rotationSpeed successfully set to %s %%", self.config.name, value
        )
        self.state.rotation_speed = value

    async def close(self) -> None:
        await self.executor.close()
