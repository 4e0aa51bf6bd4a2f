"""Shared fakes: HTTP sessions and file-backed stores in tmp_path."""

import json

import pytest

from storage import FileStorage
from tracking import TrackingStore


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None, cookies=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else (json.dumps(payload) if payload is not None else "")
        self.cookies = cookies or {}

    def json(self):
        if self._payload is not None:
            return self._payload
        return json.loads(self.text)


class FakeSession:
    """Replays queued responses, or delegates to handler(method, url, kwargs)."""

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.handler is not None:
            result = self.handler(method, url, kwargs)
        else:
            result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def storage(tmp_path):
    return FileStorage(tmp_path)


@pytest.fixture
def tracking(storage):
    return TrackingStore(storage)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append
