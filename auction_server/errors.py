"""
Error taxonomy for the auction core.

Every failure carries a machine-readable ``kind`` and a message meant for end
users; the HTTP layer renders both verbatim, so messages must never include
internal details.
"""


class AuctionError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"kind": self.kind, "message": self.message}


class NotFound(AuctionError):
    kind = "not_found"
    status_code = 404


class AuctionEnded(AuctionError):
    kind = "auction_ended"
    status_code = 400


class BidTooLow(AuctionError):
    kind = "bid_too_low"
    status_code = 400


class SelfBidForbidden(AuctionError):
    kind = "self_bid_forbidden"
    status_code = 400


class Unauthorized(AuctionError):
    kind = "unauthorized"
    status_code = 401


class Conflict(AuctionError):
    kind = "conflict"
    status_code = 409


class InvalidRequest(AuctionError):
    kind = "invalid_request"
    status_code = 400


class Transient(AuctionError):
    """The store could not be reached; the caller may retry reads."""
    kind = "transient"
    status_code = 503
