from typing import Iterable, Iterator, Tuple

from auction_server.models import Bid


def top_bidders(bids: Iterable[Bid], limit: int = 5) -> Iterator[Tuple[Bid, int]]:
    """Yield ``(bid, rank)`` for the best bid of each distinct bidder.

    ``bids`` must already be in leaderboard order (amount descending, oldest
    first on ties); the first bid seen for a bidder represents them. Stops
    after ``limit`` bidders.
    """
    if limit <= 0:
        return

    seen = set()
    for bid in bids:
        if bid.bidder in seen:
            continue
        seen.add(bid.bidder)
        yield bid, len(seen)
        if len(seen) >= limit:
            break
