import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===== ENTITIES =====

class User(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    email: str
    password_hash: str
    profile_picture: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    token: str
    user_id: str
    expires_at: datetime


class Auction(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str
    starting_bid: float
    current_bid: float
    end_time: datetime
    seller: str
    image_url: Optional[str] = None
    winner: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)

    def has_ended(self, now: datetime) -> bool:
        return now >= self.end_time

    def winner_status(self) -> str:
        if self.winner is None:
            return "none"
        return "tentative" if self.is_active else "final"


class Bid(BaseModel):
    id: str = Field(default_factory=new_id)
    auction: str
    bidder: str
    amount: float
    created_at: datetime


# ===== REQUEST BODIES =====

class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    profile_picture: Optional[str] = None


class Login(BaseModel):
    email: str
    password: str


class AuctionCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str
    starting_bid: float = Field(ge=0, allow_inf_nan=False)
    end_time: datetime
    image_url: Optional[str] = None


class BidCreate(BaseModel):
    amount: float = Field(gt=0, allow_inf_nan=False)


# ===== RESPONSES =====

class UserSummary(BaseModel):
    id: str
    name: str
    profile_picture: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserSummary
    email: str
    token: str


class AuctionView(BaseModel):
    id: str
    name: str
    description: str
    image_url: Optional[str] = None
    starting_bid: float
    current_bid: float
    end_time: datetime
    is_active: bool
    seller: Optional[UserSummary] = None
    winner: Optional[UserSummary] = None
    winner_status: str


class BidPlaced(BaseModel):
    message: str
    bid: Bid


class LeaderboardEntry(BaseModel):
    rank: int
    bid: Bid
    bidder: Optional[UserSummary] = None
    is_leader: bool = False
