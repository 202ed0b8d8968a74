import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from auction_server import config
from auction_server.auth import Authenticator
from auction_server.bidding import BidAcceptanceEngine
from auction_server.errors import InvalidRequest, NotFound
from auction_server.leaderboard import top_bidders
from auction_server.models import Auction, Bid, User, UserSummary, utcnow
from auction_server.resolution import WinnerResolver
from auction_server.storage import storage as default_storage

logger = logging.getLogger(__name__)


class AuctionHouse:
    """One store, one clock and the engines that work on them."""

    def __init__(self, store=None, clock=utcnow, leaderboard_limit: int = config.LEADERBOARD_LIMIT,
                 **auth_options):
        self.store = store if store is not None else default_storage
        self.clock = clock
        self.leaderboard_limit = leaderboard_limit
        self.auth = Authenticator(self.store, clock=clock, **auth_options)
        self.bidding = BidAcceptanceEngine(self.store, clock=clock)
        self.resolver = WinnerResolver(self.store, clock=clock)

    # ===== USERS =====

    def register(self, name: str, email: str, password: str,
                 profile_picture: Optional[str] = None) -> Tuple[User, str]:
        return self.auth.register(name, email, password, profile_picture)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        return self.auth.login(email, password)

    def authenticate(self, token: Optional[str]) -> User:
        return self.auth.verify(token)

    def user_summary(self, user_id: Optional[str]) -> Optional[UserSummary]:
        if user_id is None:
            return None
        user = self.store.get_user(user_id)
        if user is None:
            return None
        return UserSummary(id=user.id, name=user.name, profile_picture=user.profile_picture)

    # ===== AUCTIONS =====

    def create_auction(self, seller_id: str, name: str, description: str,
                       starting_bid: float, end_time: datetime,
                       image_url: Optional[str] = None) -> Auction:
        if end_time.tzinfo is None:
            end_time = end_time.replace(tzinfo=timezone.utc)
        if end_time <= self.clock():
            raise InvalidRequest("End time must be in the future")
        if starting_bid < 0:
            raise InvalidRequest("Starting bid cannot be negative")

        auction = Auction(
            name=name,
            description=description,
            starting_bid=starting_bid,
            current_bid=starting_bid,
            end_time=end_time,
            seller=seller_id,
            image_url=image_url,
            created_at=self.clock(),
        )
        self.store.add_auction(auction)
        logger.info("Auction %s created by %s", auction.id, seller_id)
        return auction

    def list_auctions(self, active_only: bool = False) -> List[Auction]:
        auctions = [self.resolver.resolve_record(a) for a in self.store.get_auctions()]
        if active_only:
            auctions = [a for a in auctions if a.is_active and not a.has_ended(self.clock())]
        return sorted(auctions, key=lambda a: a.created_at)

    def get_auction(self, auction_id: str) -> Auction:
        return self.resolver.resolve(auction_id)

    def auction_record(self, auction_id: str) -> Auction:
        """The stored record as is, without finalizing it."""
        auction = self.store.get_auction(auction_id)
        if auction is None:
            raise NotFound("Auction not found")
        return auction

    def purchases(self, user_id: str) -> List[Auction]:
        return [a for a in self.list_auctions() if not a.is_active and a.winner == user_id]

    # ===== BIDS =====

    def place_bid(self, auction_id: str, bidder_id: str, amount: float) -> Bid:
        return self.bidding.place_bid(auction_id, bidder_id, amount)

    def leaderboard(self, auction_id: str, limit: Optional[int] = None) -> List[Tuple[Bid, int]]:
        self.auction_record(auction_id)
        limit = self.leaderboard_limit if limit is None else limit
        return list(top_bidders(self.store.bids_for_auction(auction_id), limit))
