import logging
from typing import Iterable, Optional

from auction_server.errors import NotFound
from auction_server.models import Auction, Bid, utcnow

logger = logging.getLogger(__name__)


def highest_bid(bids: Iterable[Bid]) -> Optional[Bid]:
    """The winning bid: largest amount, earliest ``created_at`` on ties.

    Bids that tie on both keep the order they were given in, first one wins.
    """
    best = None
    for bid in bids:
        if best is None or bid.amount > best.amount or (
                bid.amount == best.amount and bid.created_at < best.created_at):
            best = bid
    return best


class WinnerResolver:
    """Finalizes an ended auction the first time somebody reads it.

    Finalizing is a pure function of the bid ledger, which stops changing once
    the auction has ended, so any number of concurrent readers compute the
    same winner; the store only lets the first one write it.
    """

    def __init__(self, store, clock=utcnow):
        self.store = store
        self.clock = clock

    def resolve(self, auction_id: str) -> Auction:
        auction = self.store.get_auction(auction_id)
        if auction is None:
            raise NotFound("Auction not found")
        return self.resolve_record(auction)

    def resolve_record(self, auction: Auction) -> Auction:
        if self.clock() <= auction.end_time or not auction.is_active:
            return auction

        winning = highest_bid(self.store.bids_for_auction(auction.id))
        winner = winning.bidder if winning else None
        finalized = self.store.finalize_auction(auction.id, winner)
        if finalized is None:
            raise NotFound("Auction not found")

        if winner:
            logger.info("Auction %s finalized, winner %s at %s", auction.id, winner, winning.amount)
        else:
            logger.info("Auction %s finalized with no bids", auction.id)
        return finalized
