import random

import pytest

from models import Vehicle


class ScriptedRandom:
    """Stand-in random source with fixed draws.

    uniform(a, b) returns a + fraction * (b - a), random() returns `coin`,
    sample keeps input order, randrange cycles through 0..n-1, shuffle is a no-op.
    """

    def __init__(self, fraction=1.0, coin=0.0):
        self.fraction = fraction
        self.coin = coin
        self._counter = 0

    def uniform(self, a, b):
        return a + self.fraction * (b - a)

    def random(self):
        return self.coin

    def sample(self, population, k):
        return list(population)[:k]

    def randrange(self, n):
        value = self._counter % n
        self._counter += 1
        return value

    def shuffle(self, items):
        return None


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def seeded():
    def make(seed=42):
        return random.Random(seed)
    return make


@pytest.fixture
def fleet():
    return [
        Vehicle(plate="ABC1D23", tank_capacity=50, fuel_type="gasoline"),
        Vehicle(plate="XYZ9K87", tank_capacity=60, fuel_type="ethanol"),
        Vehicle(plate="TRK4E56", tank_capacity=200, fuel_type="diesel_s10"),
        Vehicle(plate="BUS7F01", tank_capacity=150, fuel_type="common_diesel"),
    ]
