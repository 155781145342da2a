"""Game members, the users behind them and game master invitations."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

_DEFAULT_SCHEME = "https"
_ANONYMOUS_PICTURE_PATH = "/img/anon.png"


@dataclass
class User:
    """An authenticated user account."""

    id: str = ""
    email: str = ""
    name: str = ""
    given_name: str = ""
    family_name: str = ""
    gender: str = ""
    hd: str = ""
    link: str = ""
    locale: str = ""
    picture: str = ""
    verified_email: bool = False
    valid_until: datetime.datetime | None = None


@dataclass
class GameMasterInvitation:
    """An invitation issued by a game master, optionally preallocating a nation."""

    email: str = ""
    nation: str = ""


@dataclass
class Member:
    """A player's seat in a game."""

    user: User = field(default_factory=User)
    nation: str = ""
    game_alias: str = ""
    nation_preferences: str = ""
    newest_phase_state: dict[str, Any] = field(default_factory=dict)
    unread_messages: int = 0
    replaceable: bool = False

    def preferences(self) -> list[str]:
        """Return the comma separated nation preferences, each trimmed."""
        return [preference.strip() for preference in self.nation_preferences.split(",")]

    def anonymize(self, host: str) -> None:
        """Replace every identifying detail with placeholder values."""
        self.game_alias = ""
        self.nation_preferences = ""
        self.unread_messages = 0
        self.newest_phase_state = {}
        self.user = User(
            family_name="Doe",
            given_name="John",
            name="Anonymous",
            picture=f"{_DEFAULT_SCHEME}://{host}{_ANONYMOUS_PICTURE_PATH}",
        )

    def redact(self, viewer: User, mustered: bool) -> None:
        """Hide what the viewer may not see of this member."""
        is_self = viewer.id == self.user.id
        if not mustered:
            self.nation = ""
            if "nation" in self.newest_phase_state:
                self.newest_phase_state["nation"] = ""
        if not is_self:
            self.user.email = ""
            self.game_alias = ""
            self.newest_phase_state = {}
            self.unread_messages = 0
        if not mustered and not is_self:
            self.nation_preferences = ""