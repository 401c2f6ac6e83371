"""FabMo HTTP client against a stubbed requests session."""

from __future__ import annotations

import pytest
import requests

from probescan.config import HostSettings
from probescan.errors import HostError
from probescan.host import FabMoClient


class FakeResponse:
    def __init__(self, body=None, status_code=200, invalid=False):
        self.body = body
        self.status_code = status_code
        self.invalid = invalid

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.invalid:
            raise ValueError("No JSON object could be decoded")
        return self.body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


def _client(session) -> FabMoClient:
    return FabMoClient(HostSettings(base_url="http://fabmo.local/", timeout_s=2.5), session=session)


def test_submit_program_posts_sbp() -> None:
    session = FakeSession(FakeResponse({"status": "success", "data": None}))
    _client(session).submit_program("ZZ\nMZ, 0.5000")
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "http://fabmo.local/code"
    assert kwargs["json"] == {"cmd": "ZZ\nMZ, 0.5000", "runtime": "sbp"}
    assert kwargs["timeout"] == 2.5


def test_get_config_unwraps_envelope() -> None:
    config = {"opensbp": {"tempVariables": {"COMPLETE": 1}}}
    session = FakeSession(FakeResponse({"status": "success", "data": {"config": config}}))
    assert _client(session).get_config() == config
    assert session.calls[0][:2] == ("GET", "http://fabmo.local/config")


def test_get_config_without_envelope() -> None:
    config = {"opensbp": {"variables": {}}}
    assert _client(FakeSession(FakeResponse(config))).get_config() == config


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse({"status": "error", "message": "Cannot run while paused"})),
        FakeSession(FakeResponse({}, status_code=500)),
        FakeSession(FakeResponse(invalid=True)),
        FakeSession(FakeResponse(["not", "a", "dict"])),
        FakeSession(error=requests.ConnectionError("connection refused")),
    ],
)
def test_failures_raise_host_error(session) -> None:
    with pytest.raises(HostError):
        _client(session).submit_program("ZZ")


def test_close() -> None:
    session = FakeSession()
    _client(session).close()
    assert session.closed
