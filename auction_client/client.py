import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests

SERVER_URL = os.getenv("AUCTION_SERVER_URL", "http://localhost:8001")


class ApiError(Exception):
    def __init__(self, kind: str, message: str, status_code: int = 0):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


class ApiClient:
    """Thin wrapper over the auction server's REST API.

    Keeps the bearer token from the last register/login and sends it with
    every request. Failed requests raise ``ApiError`` carrying the server's
    error kind and message; nothing is retried, least of all bids.
    """

    def __init__(self, base_url: str = SERVER_URL, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.token: Optional[str] = None
        self.user: Optional[dict] = None

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            r = self.session.request(method, f"{self.base_url}{path}",
                                     headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError("transient", f"Could not reach the auction server: {e}") from e

        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            if "kind" in body:
                raise ApiError(body["kind"], body.get("message", ""), r.status_code)
            raise ApiError("invalid_request", str(body.get("detail", r.text)), r.status_code)
        return r.json()

    def health(self) -> bool:
        try:
            return self._request("GET", "/health").get("status") == "alive"
        except ApiError:
            return False

    def register(self, name: str, email: str, password: str, profile_picture: Optional[str] = None):
        data = self._request("POST", "/api/users", json={
            "name": name,
            "email": email,
            "password": password,
            "profile_picture": profile_picture,
        })
        self.token, self.user = data["token"], data["user"]
        return data

    def login(self, email: str, password: str):
        data = self._request("POST", "/api/users/login", json={"email": email, "password": password})
        self.token, self.user = data["token"], data["user"]
        return data

    def list_auctions(self, active_only: bool = False):
        params = {"active": "true"} if active_only else None
        return self._request("GET", "/api/auctions", params=params)

    def create_auction(self, name: str, description: str, starting_bid: float,
                       end_time: datetime, image_url: Optional[str] = None):
        return self._request("POST", "/api/auctions", json={
            "name": name,
            "description": description,
            "starting_bid": starting_bid,
            "end_time": end_time.isoformat(),
            "image_url": image_url,
        })

    def get_auction(self, auction_id: str):
        return self._request("GET", f"/api/auctions/{auction_id}")

    def place_bid(self, auction_id: str, amount: float):
        return self._request("POST", f"/api/auctions/{auction_id}/bids", json={"amount": amount})

    def leaderboard(self, auction_id: str, limit: Optional[int] = None):
        params = {"limit": limit} if limit is not None else None
        return self._request("GET", f"/api/auctions/{auction_id}/bids", params=params)

    def purchases(self):
        return self._request("GET", "/api/users/me/purchases")


def describe_auction(a: dict) -> str:
    winner = a.get("winner") or {}
    if a["winner_status"] == "final":
        status = f"SOLD to {winner.get('name')} for {a['current_bid']}"
    elif not a["is_active"]:
        status = "ended with no bids"
    elif a["winner_status"] == "tentative":
        status = f"leading: {winner.get('name')}"
    else:
        status = "no bids yet"
    seller = (a.get("seller") or {}).get("name")
    return (f"{a['id']} | {a['name']} | seller: {seller} | current bid: {a['current_bid']}"
            f" | ends: {a['end_time']} | {status}")


def describe_entry(e: dict) -> str:
    bidder = (e.get("bidder") or {}).get("name", e["bid"]["bidder"])
    leader = "  <- current leader" if e["is_leader"] else ""
    return f"#{e['rank']} {bidder}: {e['bid']['amount']}{leader}"


# ===== MENU =====

def main(api: Optional[ApiClient] = None):
    api = api or ApiClient()

    while True:
        print("\n1. Register")
        print("2. Login")
        print("3. List active auctions")
        print("4. Create auction")
        print("5. Place bid")
        print("6. Show auction and leaderboard")
        print("7. List my purchases")
        print("8. Exit")

        c = input("> ")

        try:
            if c == "1":
                api.register(input("Name: "), input("Email: "), input("Password: "))
                print(f"Registered as {api.user['name']}")
            elif c == "2":
                api.login(input("Email: "), input("Password: "))
                print(f"Logged in as {api.user['name']}")
            elif c == "3":
                auctions = api.list_auctions(active_only=True)
                if not auctions:
                    print("No active auctions.")
                for a in auctions:
                    print(describe_auction(a))
            elif c == "4":
                name = input("Name: ")
                description = input("Description: ")
                starting_bid = float(input("Start price: "))
                minutes = float(input("Duration (minutes): "))
                end_time = datetime.now(timezone.utc) + timedelta(minutes=minutes)
                a = api.create_auction(name, description, starting_bid, end_time)
                print(f"Created auction {a['id']}")
            elif c == "5":
                auction_id = input("Auction ID: ")
                amount = float(input("Bid amount: "))
                r = api.place_bid(auction_id, amount)
                print(f"{r['message']}: {r['bid']['amount']}")
            elif c == "6":
                auction_id = input("Auction ID: ")
                print(describe_auction(api.get_auction(auction_id)))
                entries = api.leaderboard(auction_id)
                if not entries:
                    print("No bids placed yet.")
                for e in entries:
                    print(describe_entry(e))
            elif c == "7":
                purchases = api.purchases()
                if not purchases:
                    print("No purchases yet.")
                for a in purchases:
                    print(describe_auction(a))
            else:
                break
        except ApiError as e:
            print(f"Error: {e.message}")
        except ValueError:
            print("Please enter a number.")


if __name__ == "__main__":
    main()
