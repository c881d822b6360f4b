"""Run the configured fans.

Usage:
    python -m httpfan config.json

A single fan is advertised as a standalone accessory, several fans are
advertised behind a Bridge.
"""
import logging
import signal
import sys

from pyhap.accessory import Bridge

from .accessory import HttpFan
from .config import load_config
from .driver import HttpFanDriver
from .notification import NotificationServer

logger = logging.getLogger(__name__)


def get_accessory(driver, config, notification_server=None):
    """Return the accessory to add to ``driver``."""
    if len(config.fans) == 1:
        return HttpFan(
            driver, config.fans[0], notification_server=notification_server
        )

    bridge = Bridge(driver, "HTTP Fan Bridge")
    for fan_config in config.fans:
        bridge.add_accessory(
            HttpFan(driver, fan_config, notification_server=notification_server)
        )
    return bridge


def get_driver(config):
    notification_server = None
    if config.uses_notifications:
        notification_server = NotificationServer(
            config.notification_host, config.notification_port
        )
    driver = HttpFanDriver(
        port=config.port,
        persist_file=config.persist_file,
        notification_server=notification_server,
    )
    driver.add_accessory(
        accessory=get_accessory(driver, config, notification_server)
    )
    return driver


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python -m httpfan config.json", file=sys.stderr)
        return 2

    logging.basicConfig(level=logging.INFO)
    driver = get_driver(load_config(argv[0]))

    # We want SIGTERM (kill) to be handled by the driver itself,
    # so that it can gracefully stop the accessory, server and advertising.
    signal.signal(signal.SIGTERM, driver.signal_handler)
    driver.start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
