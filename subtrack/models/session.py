"""
Session Models

A Session is resolved once when the app starts and is passed
explicitly into every store call. Nothing reads the mode from
ambient storage after bootstrap.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from subtrack.models.entry import GUEST_OWNER_ID, utcnow


class SessionMode(str, Enum):
    """Which store this session talks to."""
    UNKNOWN = "unknown"                # Not resolved / signed out
    GUEST = "guest"                    # Local store only
    AUTHENTICATED = "authenticated"    # Remote store, scoped to identity


class Identity(BaseModel):
    """An account (or the guest pseudo-account)."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: str
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def is_guest(self) -> bool:
        return self.id == GUEST_OWNER_ID


GUEST_IDENTITY = Identity(id=GUEST_OWNER_ID, email="ゲストユーザー")


class Session(BaseModel):
    """Mode plus the identity store calls are made for."""
    model_config = ConfigDict(frozen=True)

    mode: SessionMode = SessionMode.UNKNOWN
    identity: Optional[Identity] = None

    @classmethod
    def unknown(cls) -> 'Session':
        return cls(mode=SessionMode.UNKNOWN)

    @classmethod
    def guest(cls) -> 'Session':
        return cls(mode=SessionMode.GUEST, identity=GUEST_IDENTITY)

    @classmethod
    def authenticated(cls, identity: Identity) -> 'Session':
        return cls(mode=SessionMode.AUTHENTICATED, identity=identity)

    @property
    def is_guest(self) -> bool:
        return self.mode == SessionMode.GUEST

    @property
    def is_authenticated(self) -> bool:
        return self.mode == SessionMode.AUTHENTICATED and self.identity is not None
