import logging
import threading
from collections import defaultdict

from auction_server import config
from auction_server.errors import (AuctionEnded, BidTooLow, Conflict, NotFound,
                                   SelfBidForbidden)
from auction_server.models import Bid, utcnow

logger = logging.getLogger(__name__)


class BidAcceptanceEngine:
    """Validates a single bid against an auction and commits it.

    Bids on the same auction are accepted one at a time: each auction has its
    own lock, and the commit itself is a compare-and-swap on the price the bid
    was validated against, so a bid that lost a race is re-checked against the
    new price instead of overwriting it.
    """

    def __init__(self, store, clock=utcnow, attempts: int = config.BID_COMMIT_ATTEMPTS):
        self.store = store
        self.clock = clock
        self.attempts = attempts
        self._locks = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, auction_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[auction_id]

    def place_bid(self, auction_id: str, bidder_id: str, amount: float) -> Bid:
        with self._lock_for(auction_id):
            for _ in range(self.attempts):
                now = self.clock()
                auction = self.store.get_auction(auction_id)

                if auction is None:
                    raise NotFound("Auction not found")
                if not auction.is_active or auction.has_ended(now):
                    logger.info("Bid on %s rejected: auction ended", auction_id)
                    raise AuctionEnded("Auction has ended")
                if amount <= auction.current_bid:
                    logger.info("Bid on %s rejected: %s <= %s", auction_id, amount, auction.current_bid)
                    raise BidTooLow("Bid must be higher than the current bid")
                if bidder_id == auction.seller:
                    logger.info("Bid on %s rejected: seller bidding", auction_id)
                    raise SelfBidForbidden("You cannot bid on your own auction")

                bid = Bid(auction=auction_id, bidder=bidder_id, amount=amount, created_at=now)
                if self.store.commit_bid(bid, expected_current_bid=auction.current_bid):
                    logger.info("Bid accepted on %s (%s by %s)", auction_id, amount, bidder_id)
                    return bid

                logger.debug("Price on %s moved during commit, re-checking", auction_id)

        raise Conflict("The auction changed while your bid was processed, please try again")
