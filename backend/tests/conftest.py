import httpx
import pytest
from sitegrade.checks.base import BaseCheck
from sitegrade.core.config import Settings
from sitegrade.core.engine import Orchestrator, default_checks


class StaticCheck(BaseCheck):
    """Returns a fixed result and counts calls."""

    def __init__(self, key, result, credential=None):
        self.key = key
        self.title = key
        self.result = result
        self.credential = credential
        self.calls = 0
        self._real = default_checks()[key]

    def unconfigured(self):
        return self._real.unconfigured()

    def unavailable(self):
        return self._real.unavailable()

    async def run(self, client, target, settings):
        self.calls += 1
        return self.result


class RaisingCheck(StaticCheck):
    def __init__(self, key, credential=None):
        super().__init__(key, None, credential)

    async def run(self, client, target, settings):
        self.calls += 1
        raise RuntimeError(f"boom from {self.key}")


def offline_transport():
    def handler(request):
        raise AssertionError(f"unexpected request to {request.url}")
    return httpx.MockTransport(handler)


@pytest.fixture
def settings():
    return Settings(observatory_poll_interval=0)


@pytest.fixture
def keyed_settings():
    return Settings(
        virustotal_api_key="vt-key",
        safebrowsing_api_key="sb-key",
        observatory_poll_interval=0,
    )


@pytest.fixture
def make_orchestrator():
    def make(settings, *checks):
        return Orchestrator(settings, checks={c.key: c for c in checks}, transport=offline_transport())
    return make
