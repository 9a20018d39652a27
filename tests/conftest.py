from datetime import datetime, timedelta

import pytest

from database import Database
from minigames import MinigameManager
from models import Pet
from service import PetService

START = datetime(2026, 3, 2, 9, 0, 0)


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_pet(clock):
    def _make(**fields):
        pet = Pet.new(clock())
        for key, value in fields.items():
            setattr(pet, key, value)
        return pet
    return _make


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "pets.db"))


@pytest.fixture
def service(db, clock):
    return PetService(db, clock=clock, minigames=MinigameManager(clock=clock))


@pytest.fixture
def start(clock):
    return clock()
