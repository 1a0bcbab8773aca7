import json
from urllib.parse import unquote

import pytest

from utils.config import ThingsConfig


class FakeExecutor:
    """Stands in for ChannelExecutor: records scripts and URLs, replays outputs.

    Each queued response is returned by the next ``run_script`` call; an
    exception instance is raised instead. An empty queue returns ``""``.
    ``events`` keeps scripts and URLs in the order they were sent.
    """

    def __init__(self, responses=None, config=None):
        self.config = config or fast_config()
        self.responses = list(responses or [])
        self.scripts = []
        self.urls = []
        self.events = []

    def run_script(self, script):
        self.scripts.append(script)
        self.events.append(("script", script))
        if not self.responses:
            return ""
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def activate(self, url):
        self.urls.append(url)
        self.events.append(("url", url))

    def ensure_running(self):
        pass

    def version(self):
        return "3.20.1"


def fast_config(**overrides):
    values = dict(auto_launch=False, auth_token=None)
    values.update(overrides)
    return ThingsConfig(**values)


def decode_json_url(url):
    """Return the list of documents carried by a things:///json URL."""
    assert url.startswith("things:///json?data=")
    data = url[len("things:///json?data="):].split("&auth-token=")[0]
    return json.loads(unquote(data))


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def sleeps():
    """A list that records every delay passed to the fake sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append
