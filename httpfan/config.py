"""Module for the fan configuration.

A configuration entry uses the same keys as the homebridge-http-fanv2 plugin:

.. code-block:: json

   {
       "name": "Fan",
       "active": {
           "httpMethod": "GET",
           "onUrl": "http://fan.local/on",
           "offUrl": "http://fan.local/off",
           "statusUrl": "http://fan.local/active"
       },
       "rotationSpeed": {
           "setUrl": "http://fan.local/speed?value=%s",
           "statusUrl": "http://fan.local/speed"
       },
       "notificationID": "living-room-fan",
       "notificationPassword": "secret"
   }

The presence of ``rotationSpeed`` enables the RotationSpeed characteristic.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from .const import (
    CONF_ACCESSORIES,
    CONF_ACTIVE,
    CONF_HOST,
    CONF_HTTP_METHOD,
    CONF_NAME,
    CONF_NOTIFICATION_ID,
    CONF_NOTIFICATION_PASSWORD,
    CONF_NOTIFICATION_SERVER,
    CONF_OFF_URL,
    CONF_ON_URL,
    CONF_PERSIST_FILE,
    CONF_PORT,
    CONF_ROTATION_SPEED,
    CONF_SET_URL,
    CONF_STATUS_URL,
    DEFAULT_HTTP_METHOD,
    DEFAULT_NOTIFICATION_HOST,
    DEFAULT_NOTIFICATION_PORT,
    DEFAULT_PERSIST_FILE,
    DEFAULT_PORT,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _optional_str(conf: Dict[str, Any], key: str, prefix: str = "") -> Optional[str]:
    """Return ``conf[key]`` if it is a non empty string, else None."""
    value = conf.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"'{prefix}{key}' must be a string")
    return value


def _section(conf: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    section = conf.get(key)
    if section is None:
        return None
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{key}' must be an object")
    return section


class CharacteristicEndpoint:
    """One direction (get or set) of one characteristic.

    ``url`` may be None, in which case the operation is not supported.
    """

    __slots__ = ("url", "http_method", "url_name")

    def __init__(self, url: Optional[str], http_method: str, url_name: str) -> None:
        self.url = url
        self.http_method = http_method
        self.url_name = url_name

    def __repr__(self) -> str:
        return (
            f"<endpoint {self.url_name} method={self.http_method} url={self.url}>"
        )


class ActiveConfig:
    """URLs for the Active characteristic."""

    __slots__ = ("http_method", "on_url", "off_url", "status_url")

    def __init__(
        self,
        http_method: str = DEFAULT_HTTP_METHOD,
        on_url: Optional[str] = None,
        off_url: Optional[str] = None,
        status_url: Optional[str] = None,
    ) -> None:
        self.http_method = http_method
        self.on_url = on_url
        self.off_url = off_url
        self.status_url = status_url

    def set_endpoint(self, value: int) -> CharacteristicEndpoint:
        """Return the endpoint that switches the fan to ``value``."""
        if value == 1:
            return CharacteristicEndpoint(
                self.on_url, self.http_method, "active.onUrl"
            )
        return CharacteristicEndpoint(self.off_url, self.http_method, "active.offUrl")

    @property
    def status_endpoint(self) -> CharacteristicEndpoint:
        return CharacteristicEndpoint(
            self.status_url, DEFAULT_HTTP_METHOD, "active.statusUrl"
        )

    @classmethod
    def from_dict(cls, conf: Dict[str, Any]) -> "ActiveConfig":
        prefix = CONF_ACTIVE + "."
        return cls(
            http_method=_optional_str(conf, CONF_HTTP_METHOD, prefix)
            or DEFAULT_HTTP_METHOD,
            on_url=_optional_str(conf, CONF_ON_URL, prefix),
            off_url=_optional_str(conf, CONF_OFF_URL, prefix),
            status_url=_optional_str(conf, CONF_STATUS_URL, prefix),
        )


class RotationSpeedConfig:
    """URLs for the RotationSpeed characteristic."""

    __slots__ = ("enabled", "http_method", "set_url", "status_url")

    def __init__(
        self,
        enabled: bool = True,
        http_method: str = DEFAULT_HTTP_METHOD,
        set_url: Optional[str] = None,
        status_url: Optional[str] = None,
    ) -> None:
        self.enabled = enabled
        self.http_method = http_method
        self.set_url = set_url
        self.status_url = status_url

    @property
    def set_endpoint(self) -> CharacteristicEndpoint:
        return CharacteristicEndpoint(
            self.set_url, self.http_method, "rotationSpeed.setUrl"
        )

    @property
    def status_endpoint(self) -> CharacteristicEndpoint:
        return CharacteristicEndpoint(
            self.status_url, DEFAULT_HTTP_METHOD, "rotationSpeed.statusUrl"
        )

    @classmethod
    def from_dict(cls, conf: Dict[str, Any]) -> "RotationSpeedConfig":
        prefix = CONF_ROTATION_SPEED + "."
        return cls(
            enabled=True,
            http_method=_optional_str(conf, CONF_HTTP_METHOD, prefix)
            or DEFAULT_HTTP_METHOD,
            set_url=_optional_str(conf, CONF_SET_URL, prefix),
            status_url=_optional_str(conf, CONF_STATUS_URL, prefix),
        )


class FanConfiguration:
    """Static configuration of one fan, created once at startup."""

    __slots__ = (
        "name",
        "active",
        "rotation_speed",
        "notification_id",
        "notification_password",
    )

    def __init__(
        self,
        name: str,
        active: Optional[ActiveConfig] = None,
        rotation_speed: Optional[RotationSpeedConfig] = None,
        notification_id: Optional[str] = None,
        notification_password: Optional[str] = None,
    ) -> None:
        self.name = name
        # An absent section behaves like a section without any URL.
        self.active = active or ActiveConfig()
        self.rotation_speed = rotation_speed or RotationSpeedConfig(enabled=False)
        self.notification_id = notification_id
        self.notification_password = notification_password

    def __repr__(self) -> str:
        return "<fan configuration name={} rotation_speed={} notification_id={}>".format(
            self.name, self.rotation_speed.enabled, self.notification_id
        )

    @classmethod
    def from_dict(cls, conf: Dict[str, Any]) -> "FanConfiguration":
        """Create a configuration from a homebridge style accessory entry.

        :raise ConfigurationError: If ``name`` is missing or a value has the
            wrong type.
        """
        if not isinstance(conf, dict):
            raise ConfigurationError("Accessory configuration must be an object")
        name = _optional_str(conf, CONF_NAME)
        if name is None:
            raise ConfigurationError(f"'{CONF_NAME}' is required")

        active = _section(conf, CONF_ACTIVE)
        rotation_speed = _section(conf, CONF_ROTATION_SPEED)
        return cls(
            name,
            active=ActiveConfig.from_dict(active) if active is not None else None,
            rotation_speed=RotationSpeedConfig.from_dict(rotation_speed)
            if rotation_speed is not None
            else None,
            notification_id=_optional_str(conf, CONF_NOTIFICATION_ID),
            notification_password=_optional_str(conf, CONF_NOTIFICATION_PASSWORD),
        )


class Config:
    """Everything needed to start the driver, the notification server and fans."""

    def __init__(
        self,
        fans: List[FanConfiguration],
        port: int = DEFAULT_PORT,
        persist_file: str = DEFAULT_PERSIST_FILE,
        notification_host: str = DEFAULT_NOTIFICATION_HOST,
        notification_port: int = DEFAULT_NOTIFICATION_PORT,
    ):
        self.fans = fans
        self.port = port
        self.persist_file = persist_file
        self.notification_host = notification_host
        self.notification_port = notification_port

    @property
    def uses_notifications(self) -> bool:
        """Return True if any fan wants pushed notifications."""
        return any(fan.notification_id for fan in self.fans)

    @classmethod
    def from_dict(cls, conf: Dict[str, Any]) -> "Config":
        """Create from a single accessory entry or a file with ``accessories``."""
        if not isinstance(conf, dict):
            raise ConfigurationError("Configuration must be an object")
        if CONF_ACCESSORIES not in conf:
            return cls([FanConfiguration.from_dict(conf)])

        entries = conf[CONF_ACCESSORIES]
        if not isinstance(entries, list) or not entries:
            raise ConfigurationError(
                f"'{CONF_ACCESSORIES}' must be a non empty list"
            )
        server = _section(conf, CONF_NOTIFICATION_SERVER) or {}
        try:
            return cls(
                [FanConfiguration.from_dict(entry) for entry in entries],
                port=int(conf.get(CONF_PORT, DEFAULT_PORT)),
                persist_file=conf.get(CONF_PERSIST_FILE, DEFAULT_PERSIST_FILE),
                notification_host=server.get(CONF_HOST, DEFAULT_NOTIFICATION_HOST),
                notification_port=int(server.get(CONF_PORT, DEFAULT_NOTIFICATION_PORT)),
            )
        except (TypeError, ValueError) as err:
            raise ConfigurationError(f"Invalid port: {err}") from err


def load_config(path: str) -> Config:
    """Read the json file at ``path`` and return a Config."""
    logger.debug("Loading configuration from %s", path)
    try:
        with open(path, "r", encoding="utf8") as file:
            conf = json.load(file)
    except (OSError, ValueError) as err:
        raise ConfigurationError(f"Could not read {path}: {err}") from err
    return Config.from_dict(conf)
