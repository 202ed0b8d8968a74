"""
In-memory persistence store.

Holds users, sessions, auction records and the append-only bid ledger behind a
single lock. Every read hands out a copy, so callers can never mutate stored
state behind the store's back; writes that race with each other go through
compare-and-swap methods (``commit_bid``, ``finalize_auction``).
"""
import logging
import threading
from typing import Dict, List, Optional

from auction_server.errors import Transient
from auction_server.models import Auction, Bid, Session, User

logger = logging.getLogger(__name__)


class StoreUnavailable(Transient):
    def __init__(self, message: str = "Service temporarily unavailable, please try again"):
        super().__init__(message)


class Storage:
    def __init__(self):
        self.users: Dict[str, User] = {}
        self.sessions: Dict[str, Session] = {}
        self.auctions: Dict[str, Auction] = {}
        self.bids: Dict[str, List[Bid]] = {}
        self._lock = threading.RLock()
        self._open = True

    def _check(self):
        if not self._open:
            raise StoreUnavailable()

    def close(self):
        with self._lock:
            self._open = False
        logger.info("Store closed")

    # ===== USERS & SESSIONS =====

    def add_user(self, user: User) -> User:
        with self._lock:
            self._check()
            self.users[user.id] = user.model_copy()
            return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            self._check()
            user = self.users.get(user_id)
            return user.model_copy() if user else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        with self._lock:
            self._check()
            for user in self.users.values():
                if user.email.lower() == email:
                    return user.model_copy()
            return None

    def add_session(self, session: Session):
        with self._lock:
            self._check()
            self.sessions[session.token] = session.model_copy()

    def get_session(self, token: str) -> Optional[Session]:
        with self._lock:
            self._check()
            session = self.sessions.get(token)
            return session.model_copy() if session else None

    def delete_session(self, token: str):
        with self._lock:
            self._check()
            self.sessions.pop(token, None)

    # ===== AUCTIONS =====

    def add_auction(self, auction: Auction) -> Auction:
        with self._lock:
            self._check()
            self.auctions[auction.id] = auction.model_copy()
            self.bids.setdefault(auction.id, [])
            return auction

    def get_auctions(self) -> List[Auction]:
        with self._lock:
            self._check()
            return [a.model_copy() for a in self.auctions.values()]

    def get_auction(self, auction_id: str) -> Optional[Auction]:
        with self._lock:
            self._check()
            auction = self.auctions.get(auction_id)
            return auction.model_copy() if auction else None

    def finalize_auction(self, auction_id: str, winner: Optional[str]) -> Optional[Auction]:
        """Close an active auction, recording its winner.

        Only applies while the stored record is still active; an auction
        somebody else already finalized is returned as stored.
        """
        with self._lock:
            self._check()
            auction = self.auctions.get(auction_id)
            if auction is None:
                return None
            if auction.is_active:
                auction.winner = winner
                auction.is_active = False
            return auction.model_copy()

    # ===== BID LEDGER =====

    def commit_bid(self, bid: Bid, expected_current_bid: float) -> bool:
        """Append ``bid`` and raise the auction's price in one step.

        Nothing is written unless the auction is still open and its
        ``current_bid`` still equals ``expected_current_bid``.
        """
        with self._lock:
            self._check()
            auction = self.auctions.get(bid.auction)
            if auction is None or auction.current_bid != expected_current_bid:
                return False
            if not auction.is_active or bid.created_at >= auction.end_time:
                return False
            self.bids.setdefault(bid.auction, []).append(bid.model_copy())
            auction.current_bid = bid.amount
            auction.winner = bid.bidder
            return True

    def bids_for_auction(self, auction_id: str) -> List[Bid]:
        """All bids on an auction, highest amount first, oldest first on ties."""
        with self._lock:
            self._check()
            ledger = [b.model_copy() for b in self.bids.get(auction_id, [])]
        # sorted() is stable, so equal (amount, created_at) keep ledger order
        return sorted(ledger, key=lambda b: (-b.amount, b.created_at))


storage = Storage()
