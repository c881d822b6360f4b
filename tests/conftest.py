"""Test fixtures and mocks."""
import asyncio

import pytest

from pyhap.loader import Loader

from httpfan.config import ActiveConfig, FanConfiguration, RotationSpeedConfig


@pytest.fixture(scope="session")
def mock_driver():
    yield MockDriver()


@pytest.fixture
def driver():
    yield MockDriver()


@pytest.fixture
def executor():
    yield FakeExecutor()


@pytest.fixture
def fan_config():
    yield FanConfiguration(
        "Test Fan",
        active=ActiveConfig(
            http_method="POST",
            on_url="http://dev/on",
            off_url="http://dev/off",
            status_url="http://dev/active",
        ),
        rotation_speed=RotationSpeedConfig(
            http_method="PUT",
            set_url="http://dev/speed?v=%s",
            status_url="http://dev/speed",
        ),
        notification_id="fan",
        notification_password="secret",
    )


class MockDriver:
    def __init__(self):
        self.loader = Loader()
        self.jobs = []

    def publish(self, data, client_addr=None, immediate=False):
        pass

    def async_add_job(self, target, *args):
        task = asyncio.get_running_loop().create_task(target(*args))
        self.jobs.append(task)
        return task

    async def wait_for_jobs(self):
        while self.jobs:
            jobs, self.jobs = self.jobs, []
            await asyncio.gather(*jobs)


class FakeExecutor:
    """Records requests and answers them from a queue of responses.

    A response is either a body or an exception to raise.
    """

    def __init__(self):
        self.calls = []
        self.responses = []
        self.closed = False

    def respond(self, *responses):
        self.responses.extend(responses)

    async def perform(self, url, method):
        self.calls.append((method, url))
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True
