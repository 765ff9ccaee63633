"""
Shared pytest fixtures
"""

from datetime import datetime, timedelta

import pytest

from portaria.services.access_control import AccessControlService
from portaria.workers.store_worker.local_store import LocalStore


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 10, 0, 0))


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "portaria.json"


@pytest.fixture
def service(store_path, clock):
    return AccessControlService(LocalStore(str(store_path)), clock=clock)
