"""This module contains constants used by other modules."""
MAJOR_VERSION = 1
MINOR_VERSION = 1
PATCH_VERSION = 0
__short_version__ = "{}.{}".format(MAJOR_VERSION, MINOR_VERSION)
__version__ = "{}.{}".format(__short_version__, PATCH_VERSION)
REQUIRED_PYTHON_VER = (3, 8)

# ### Accessory information ###
MANUFACTURER = "Andreas Bauer"
MODEL = "HTTP Fan"
SERIAL_NUMBER = "FAN02"

# ### Characteristics ###
CHAR_ACTIVE = "Active"
CHAR_ROTATION_SPEED = "RotationSpeed"
SERV_FANV2 = "Fanv2"

# ### Configuration keys ###
CONF_NAME = "name"
CONF_ACTIVE = "active"
CONF_ROTATION_SPEED = "rotationSpeed"
CONF_HTTP_METHOD = "httpMethod"
CONF_ON_URL = "onUrl"
CONF_OFF_URL = "offUrl"
CONF_SET_URL = "setUrl"
CONF_STATUS_URL = "statusUrl"
CONF_NOTIFICATION_ID = "notificationID"
CONF_NOTIFICATION_PASSWORD = "notificationPassword"
CONF_ACCESSORIES = "accessories"
CONF_PORT = "port"
CONF_PERSIST_FILE = "persist_file"
CONF_NOTIFICATION_SERVER = "notification_server"
CONF_HOST = "host"

DEFAULT_HTTP_METHOD = "GET"
DEFAULT_PORT = 51826
DEFAULT_PERSIST_FILE = "httpfan.state"
DEFAULT_NOTIFICATION_HOST = "0.0.0.0"
DEFAULT_NOTIFICATION_PORT = 8080

# Placeholder substituted with the value in rotationSpeed.setUrl
URL_VALUE_PLACEHOLDER = "%s"

# ### Notification payload ###
NOTIFICATION_CHARACTERISTIC = "characteristic"
NOTIFICATION_VALUE = "value"
NOTIFICATION_PASSWORD = "password"
