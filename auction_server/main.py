import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from auction_server import config
from auction_server.errors import AuctionError
from auction_server.market import AuctionHouse
from auction_server.models import (Auction, AuctionCreate, AuctionView, AuthResponse,
                                   BidCreate, BidPlaced, LeaderboardEntry, Login, User,
                                   UserCreate, UserSummary)

logger = logging.getLogger(__name__)


def get_house(request: Request) -> AuctionHouse:
    return request.app.state.house


def current_user(authorization: Optional[str] = Header(None),
                 house: AuctionHouse = Depends(get_house)) -> User:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    return house.authenticate(token)


def auction_view(house: AuctionHouse, auction: Auction) -> AuctionView:
    return AuctionView(
        id=auction.id,
        name=auction.name,
        description=auction.description,
        image_url=auction.image_url,
        starting_bid=auction.starting_bid,
        current_bid=auction.current_bid,
        end_time=auction.end_time,
        is_active=auction.is_active,
        seller=house.user_summary(auction.seller),
        winner=house.user_summary(auction.winner),
        winner_status=auction.winner_status(),
    )


def auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(
        user=UserSummary(id=user.id, name=user.name, profile_picture=user.profile_picture),
        email=user.email,
        token=token,
    )


def create_app(house: Optional[AuctionHouse] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Auction server ready")
        yield
        logger.info("Auction server stopping")

    app = FastAPI(title="Auction Server", lifespan=lifespan)
    app.state.house = house if house is not None else AuctionHouse()

    @app.exception_handler(AuctionError)
    async def auction_error_handler(request: Request, exc: AuctionError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # ===== USERS =====

    @app.post("/api/users", response_model=AuthResponse, status_code=201)
    def register(body: UserCreate, house: AuctionHouse = Depends(get_house)):
        user, token = house.register(body.name, body.email, body.password, body.profile_picture)
        return auth_response(user, token)

    @app.post("/api/users/login", response_model=AuthResponse)
    def login(body: Login, house: AuctionHouse = Depends(get_house)):
        user, token = house.login(body.email, body.password)
        return auth_response(user, token)

    @app.get("/api/users/me/purchases", response_model=List[AuctionView])
    def my_purchases(user: User = Depends(current_user), house: AuctionHouse = Depends(get_house)):
        return [auction_view(house, a) for a in house.purchases(user.id)]

    # ===== AUCTIONS =====

    @app.get("/api/auctions", response_model=List[AuctionView])
    def list_auctions(active: bool = False, house: AuctionHouse = Depends(get_house)):
        return [auction_view(house, a) for a in house.list_auctions(active_only=active)]

    @app.post("/api/auctions", response_model=AuctionView, status_code=201)
    def create_auction(body: AuctionCreate, user: User = Depends(current_user),
                       house: AuctionHouse = Depends(get_house)):
        auction = house.create_auction(
            seller_id=user.id,
            name=body.name,
            description=body.description,
            starting_bid=body.starting_bid,
            end_time=body.end_time,
            image_url=body.image_url,
        )
        return auction_view(house, auction)

    @app.get("/api/auctions/{auction_id}", response_model=AuctionView)
    def get_auction(auction_id: str, house: AuctionHouse = Depends(get_house)):
        return auction_view(house, house.get_auction(auction_id))

    # ===== BIDS =====

    @app.post("/api/auctions/{auction_id}/bids", response_model=BidPlaced, status_code=201)
    def place_bid(auction_id: str, body: BidCreate, user: User = Depends(current_user),
                  house: AuctionHouse = Depends(get_house)):
        bid = house.place_bid(auction_id, user.id, body.amount)
        return BidPlaced(message="Bid placed successfully", bid=bid)

    @app.get("/api/auctions/{auction_id}/bids", response_model=List[LeaderboardEntry])
    def leaderboard(auction_id: str, limit: Optional[int] = None,
                    house: AuctionHouse = Depends(get_house)):
        auction = house.auction_record(auction_id)
        return [
            LeaderboardEntry(
                rank=rank,
                bid=bid,
                bidder=house.user_summary(bid.bidder),
                is_leader=rank == 1 and bid.amount >= auction.current_bid,
            )
            for bid, rank in house.leaderboard(auction_id, limit)
        ]

    # ===== HEALTH =====

    @app.get("/health")
    def health():
        return {"status": "alive"}

    return app


app = create_app()


def run():
    config.configure_logging()
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
