"""
API tests for the auction server over FastAPI's TestClient.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from auction_server.main import create_app


@pytest.fixture
def api(house):
    return TestClient(create_app(house))


def signup(api, name):
    r = api.post("/api/users", json={
        "name": name,
        "email": f"{name.lower()}@example.com",
        "password": f"pw-{name}",
    })
    assert r.status_code == 201
    return r.json()


def auth(user):
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def sally(api):
    return signup(api, "Sally")


@pytest.fixture
def bob(api):
    return signup(api, "Bob")


@pytest.fixture
def carol(api):
    return signup(api, "Carol")


@pytest.fixture
def listing(api, sally, clock):
    r = api.post("/api/auctions", headers=auth(sally), json={
        "name": "Vintage camera",
        "description": "Rangefinder, works",
        "starting_bid": 100,
        "end_time": (clock.now + timedelta(hours=1)).isoformat(),
    })
    assert r.status_code == 201
    return r.json()


class TestUsers:

    def test_register_and_login(self, api, bob):
        assert bob["user"]["name"] == "Bob"
        assert bob["token"]

        r = api.post("/api/users/login", json={"email": "bob@example.com", "password": "pw-Bob"})
        assert r.status_code == 200
        assert r.json()["user"]["id"] == bob["user"]["id"]

    def test_duplicate_registration(self, api, bob):
        r = api.post("/api/users", json={"name": "Bob", "email": "bob@example.com", "password": "x"})
        assert r.status_code == 409
        assert r.json() == {"kind": "conflict", "message": "User already exists"}

    def test_bad_login(self, api, bob):
        r = api.post("/api/users/login", json={"email": "bob@example.com", "password": "nope"})
        assert r.status_code == 401
        assert r.json()["kind"] == "unauthorized"

    def test_password_hash_is_never_returned(self, api, bob):
        r = api.post("/api/users/login", json={"email": "bob@example.com", "password": "pw-Bob"})
        assert "password" not in r.text


class TestAuctions:

    def test_create_requires_token(self, api, clock):
        r = api.post("/api/auctions", json={
            "name": "x", "description": "", "starting_bid": 1,
            "end_time": (clock.now + timedelta(hours=1)).isoformat(),
        })
        assert r.status_code == 401
        assert r.json() == {"kind": "unauthorized", "message": "Not authorized, no token"}

    def test_create_and_fetch(self, api, listing, sally):
        assert listing["current_bid"] == 100
        assert listing["seller"]["name"] == "Sally"
        assert listing["winner"] is None
        assert listing["winner_status"] == "none"

        r = api.get(f"/api/auctions/{listing['id']}")
        assert r.status_code == 200
        assert r.json()["id"] == listing["id"]

        assert [a["id"] for a in api.get("/api/auctions").json()] == [listing["id"]]

    def test_create_in_the_past(self, api, sally, clock):
        r = api.post("/api/auctions", headers=auth(sally), json={
            "name": "x", "description": "", "starting_bid": 1,
            "end_time": (clock.now - timedelta(minutes=1)).isoformat(),
        })
        assert r.status_code == 400
        assert r.json()["kind"] == "invalid_request"

    def test_invalid_body(self, api, sally, clock):
        r = api.post("/api/auctions", headers=auth(sally), json={
            "name": "x", "description": "", "starting_bid": -5,
            "end_time": (clock.now + timedelta(hours=1)).isoformat(),
        })
        assert r.status_code == 422

    def test_unknown_auction(self, api):
        r = api.get("/api/auctions/missing")
        assert r.status_code == 404
        assert r.json() == {"kind": "not_found", "message": "Auction not found"}

    def test_store_down(self, api, store, listing):
        store.close()
        r = api.get(f"/api/auctions/{listing['id']}")
        assert r.status_code == 503
        assert r.json()["kind"] == "transient"


class TestBidding:

    def bid(self, api, user, auction_id, amount):
        return api.post(f"/api/auctions/{auction_id}/bids", headers=auth(user), json={"amount": amount})

    def test_full_scenario(self, api, listing, bob, carol, clock):
        aid = listing["id"]

        clock.advance(minutes=1)
        r = self.bid(api, bob, aid, 150)
        assert r.status_code == 201
        assert r.json()["message"] == "Bid placed successfully"

        clock.advance(minutes=1)
        r = self.bid(api, carol, aid, 120)
        assert r.status_code == 400
        assert r.json()["kind"] == "bid_too_low"

        clock.advance(minutes=1)
        assert self.bid(api, carol, aid, 200).status_code == 201

        auction = api.get(f"/api/auctions/{aid}").json()
        assert auction["current_bid"] == 200
        assert auction["winner"]["name"] == "Carol"
        assert auction["winner_status"] == "tentative"

        clock.advance(hours=1)
        auction = api.get(f"/api/auctions/{aid}").json()
        assert auction["is_active"] is False
        assert auction["winner_status"] == "final"
        assert auction["winner"]["id"] == carol["user"]["id"]

        r = self.bid(api, bob, aid, 1000)
        assert r.status_code == 400
        assert r.json() == {"kind": "auction_ended", "message": "Auction has ended"}

        purchases = api.get("/api/users/me/purchases", headers=auth(carol)).json()
        assert [a["id"] for a in purchases] == [aid]
        assert api.get("/api/users/me/purchases", headers=auth(bob)).json() == []

    def test_seller_cannot_bid(self, api, listing, sally):
        r = self.bid(api, sally, listing["id"], 500)
        assert r.status_code == 400
        assert r.json()["kind"] == "self_bid_forbidden"

    def test_bid_requires_token(self, api, listing):
        r = api.post(f"/api/auctions/{listing['id']}/bids", json={"amount": 500},
                     headers={"Authorization": "Bearer forged"})
        assert r.status_code == 401

    def test_non_positive_amount(self, api, listing, bob):
        assert self.bid(api, bob, listing["id"], 0).status_code == 422

    def test_leaderboard(self, api, listing, bob, carol, clock):
        aid = listing["id"]
        for user, amount in ((bob, 110), (carol, 120), (bob, 130), (bob, 160)):
            clock.advance(seconds=10)
            assert self.bid(api, user, aid, amount).status_code == 201

        entries = api.get(f"/api/auctions/{aid}/bids").json()
        assert [(e["rank"], e["bidder"]["name"], e["bid"]["amount"]) for e in entries] == [
            (1, "Bob", 160),
            (2, "Carol", 120),
        ]
        assert [e["is_leader"] for e in entries] == [True, False]

        limited = api.get(f"/api/auctions/{aid}/bids", params={"limit": 1}).json()
        assert len(limited) == 1

    def test_empty_leaderboard(self, api, listing):
        assert api.get(f"/api/auctions/{listing['id']}/bids").json() == []

    def test_leaderboard_unknown_auction(self, api):
        assert api.get("/api/auctions/missing/bids").status_code == 404


def test_health(api):
    assert api.get("/health").json() == {"status": "alive"}


class TestNonFiniteAmounts:
    """Infinity and NaN never reach an auction record"""

    @pytest.mark.parametrize("raw", ["Infinity", "NaN", "-Infinity"])
    def test_bid_amount_must_be_finite(self, api, listing, bob, raw):
        r = api.post(f"/api/auctions/{listing['id']}/bids",
                     content='{"amount": %s}' % raw,
                     headers=dict(auth(bob), **{"Content-Type": "application/json"}))
        assert r.status_code == 422

        auction = api.get(f"/api/auctions/{listing['id']}").json()
        assert auction["current_bid"] == 100
        assert auction["winner"] is None
        assert leaderboard_size(api, listing) == 0

    @pytest.mark.parametrize("raw", ["Infinity", "NaN"])
    def test_starting_bid_must_be_finite(self, api, sally, clock, raw):
        end_time = (clock.now + timedelta(hours=1)).isoformat()
        body = '{"name": "x", "description": "", "starting_bid": %s, "end_time": "%s"}' % (raw, end_time)
        r = api.post("/api/auctions", content=body,
                     headers=dict(auth(sally), **{"Content-Type": "application/json"}))
        assert r.status_code == 422
        assert api.get("/api/auctions").json() == []


def leaderboard_size(api, listing):
    return len(api.get(f"/api/auctions/{listing['id']}/bids").json())
