"""Exceptions raised while talking to the fan or its configuration."""


class HttpFanError(Exception):
    """Base class for all errors of an http fan."""


class ConfigurationError(HttpFanError):
    """A required setting is missing or malformed. No request was sent."""


class TransportError(HttpFanError):
    """The device could not be reached."""


class HttpStatusError(HttpFanError):
    """The device answered with a status code other than 200."""

    def __init__(self, code):
        super().__init__("Got http error code {}".format(code))
        self.code = code


class ProtocolError(HttpFanError):
    """The response body could not be turned into a characteristic value."""


class NotificationRegistrationError(HttpFanError):
    """A notification handler could not be registered."""
