"""
Session Models

The session is a tagged variant with exactly three shapes:

- Unauthenticated: nobody is using the app yet
- Authenticated:   a signed-in user (remote account or local login)
- Guest:           demo/offline mode, no identity at all

DESIGN DECISION: Admin mode is NOT a session variant. It is a capability
flag held by the dashboard flow and granted by the admin gate, so every
piece of code that needs an owner asks the session, and every piece of code
that needs the privilege asks the flow.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class Unauthenticated(BaseModel):
    """No active session."""

    kind: Literal["unauthenticated"] = "unauthenticated"

    @property
    def is_active(self) -> bool:
        return False

    @property
    def owner_id(self) -> Optional[str]:
        return None

    @property
    def owner_email(self) -> Optional[str]:
        return None


class Authenticated(BaseModel):
    """A signed-in user."""

    kind: Literal["authenticated"] = "authenticated"
    user_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)

    @property
    def is_active(self) -> bool:
        return True

    @property
    def owner_id(self) -> Optional[str]:
        return self.user_id

    @property
    def owner_email(self) -> Optional[str]:
        return self.email


class Guest(BaseModel):
    """Demo/offline mode."""

    kind: Literal["guest"] = "guest"

    @property
    def is_active(self) -> bool:
        return True

    @property
    def owner_id(self) -> Optional[str]:
        return None

    @property
    def owner_email(self) -> Optional[str]:
        return None


Session = Annotated[
    Union[Unauthenticated, Authenticated, Guest],
    Field(discriminator="kind"),
]
