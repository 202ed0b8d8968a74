"""
Shared fixtures: a fresh store per test, a clock the tests move by hand, and
an AuctionHouse wired to both.
"""
from datetime import datetime, timedelta, timezone

import pytest

from auction_server.market import AuctionHouse
from auction_server.storage import Storage

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return Storage()


@pytest.fixture
def house(store, clock):
    return AuctionHouse(store=store, clock=clock, hash_iterations=1000)


@pytest.fixture
def seller(house):
    user, _ = house.register("Sally Seller", "sally@example.com", "pw-sally")
    return user


@pytest.fixture
def bidder1(house):
    user, _ = house.register("Bob", "bob@example.com", "pw-bob")
    return user


@pytest.fixture
def bidder2(house):
    user, _ = house.register("Carol", "carol@example.com", "pw-carol", profile_picture="carol.png")
    return user


@pytest.fixture
def auction(house, seller, clock):
    """Starting bid 100, ends one hour from T0."""
    return house.create_auction(
        seller_id=seller.id,
        name="Vintage camera",
        description="Rangefinder, works",
        starting_bid=100,
        end_time=clock.now + timedelta(hours=1),
    )
