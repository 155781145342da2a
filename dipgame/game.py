"""The game model: membership, joinability, merging, redaction and allocation."""

from __future__ import annotations

import datetime
import enum
import random
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from dipgame.allocation import AllocationError
from dipgame.allocation import allocate_nations as _allocate_by_preference
from dipgame.member import GameMasterInvitation, Member, User
from dipgame.textutil import normalize_email

MAX_PHASE_DEADLINE = 30 * 24 * 60
EVERYONE = "Everyone"
FAR_FUTURE = datetime.datetime(2525, 1, 1, tzinfo=datetime.timezone.utc)


class GameError(Exception):
    """A game operation was refused; carries the HTTP status it maps to."""

    def __init__(self, message: str, status: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status = int(status)


class AllocationMethod(enum.IntEnum):
    """How nations are handed out when a game starts."""

    RANDOM = 0
    PREFERENCE = 1


class FilterReason(enum.Enum):
    """Why a viewer's statistics are checked against a game's requirements."""

    TO_CREATE = 0
    TO_JOIN = 1


@dataclass
class ViewerStats:
    """The statistics of a user that game requirements are checked against."""

    user: User = field(default_factory=User)
    hated: float = 0.0
    hater: float = 0.0
    rating: float = 0.0
    reliability: float = 0.0
    quickness: float = 0.0


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class Game:
    """A game of Diplomacy, from staging through to its end."""

    id: str | None = None

    started: bool = False
    mustered: bool = False
    closed: bool = False
    finished: bool = False

    desc: str = ""
    variant: str = ""
    phase_length_minutes: int = 0
    non_movement_phase_length_minutes: int = 0
    max_hated: float = 0.0
    max_hater: float = 0.0
    min_rating: float = 0.0
    max_rating: float = 0.0
    min_reliability: float = 0.0
    min_quickness: float = 0.0
    private: bool = False
    no_merge: bool = False
    disable_conference_chat: bool = False
    disable_group_chat: bool = False
    disable_private_chat: bool = False
    nation_allocation: int = AllocationMethod.RANDOM
    anonymous: bool = False
    last_year: int = 0
    skip_muster: bool = False
    chat_language_iso639_1: str = ""
    game_master_enabled: bool = False
    require_game_master_invitation: bool = False

    game_master_invitations: list[GameMasterInvitation] = field(default_factory=list)
    game_master: User = field(default_factory=User)

    n_members: int = 0
    members: list[Member] = field(default_factory=list)
    start_eta: datetime.datetime | None = None

    newest_phase_meta: list[dict[str, Any]] = field(default_factory=list)

    active_bans: list[Any] = field(default_factory=list)
    failed_requirements: list[str] = field(default_factory=list)
    first_member: Member | None = None

    created_at: datetime.datetime | None = None
    created_ago: datetime.timedelta | None = None
    started_at: datetime.datetime | None = None
    started_ago: datetime.timedelta | None = None
    finished_at: datetime.datetime | None = None
    finished_ago: datetime.timedelta | None = None

    def can_merge_into(self, other: Game, avoid: User, nation_count: int) -> bool:
        """Whether this unsaved game may be folded into the other staging game."""
        if self.no_merge or other.no_merge:
            return False
        if self.started or other.started:
            return False
        if self.closed or other.closed:
            return False
        if self.finished or other.finished:
            return False
        if self.private or other.private:
            return False
        if self.game_master_enabled or other.game_master_enabled:
            return False
        same_fields = (
            "variant",
            "phase_length_minutes",
            "non_movement_phase_length_minutes",
            "max_hated",
            "max_hater",
            "min_rating",
            "max_rating",
            "min_reliability",
            "min_quickness",
            "disable_conference_chat",
            "disable_group_chat",
            "disable_private_chat",
            "nation_allocation",
            "anonymous",
            "last_year",
            "skip_muster",
            "chat_language_iso639_1",
        )
        if any(getattr(self, name) != getattr(other, name) for name in same_fields):
            return False
        if self.n_members + other.n_members > nation_count:
            return False
        return all(member.user.id != avoid.id for member in other.members)

    def refresh(self, now: datetime.datetime | None = None) -> None:
        """Recompute the relative ages of the game's timestamps."""
        moment = now if now is not None else _now()
        if self.created_at is not None:
            self.created_ago = self.created_at - moment
        if self.started_at is not None:
            self.started_ago = self.started_at - moment
        if self.finished_at is not None:
            self.finished_ago = self.finished_at - moment

    def _abbr_matches(self, abbr: str) -> int:
        return sum(1 for member in self.members if member.nation.startswith(abbr))

    def abbr_nat(self, nat: str) -> str:
        """Shortest prefix of the nation that identifies exactly one member."""
        if len(nat) < 2:
            return nat
        for length in range(1, len(nat)):
            prefix = nat[:length]
            if self._abbr_matches(prefix) == 1:
                return prefix
        return nat

    def abbr_nats(self, nats: Sequence[str], nation_count: int) -> list[str]:
        """Abbreviate each nation, or name them all 'Everyone' when complete."""
        if len(nats) == nation_count:
            return [EVERYONE]
        return [self.abbr_nat(nat) for nat in nats]

    def desc_for(self, nat: str) -> str:
        """The game's description as seen by a nation, honouring its alias."""
        for member in self.members:
            if member.nation == nat and member.game_alias:
                return member.game_alias
        return self.desc

    def get_member_by_nation(self, nation: str) -> Member | None:
        return next((m for m in self.members if m.nation == nation), None)

    def get_member_by_user_id(self, user_id: str) -> Member | None:
        return next((m for m in self.members if m.user.id == user_id), None)

    def leavable(self) -> bool:
        return not self.started

    def is_invited_by_game_master(self, email: str) -> bool:
        wanted = normalize_email(email)
        return any(
            normalize_email(invitation.email) == wanted
            for invitation in self.game_master_invitations
        )

    def has_replaceable_member(self) -> bool:
        return any(member.replaceable for member in self.members)

    def joinable(self, user: User, nation_count: int) -> bool:
        """Whether the user may join the game right now."""
        if self.active_bans or self.failed_requirements:
            return False
        invited_or_free = (
            not self.require_game_master_invitation
            or self.is_invited_by_game_master(user.email)
        )
        if self.closed or self.n_members >= nation_count:
            return (
                self.game_master_enabled
                and self.has_replaceable_member()
                and invited_or_free
            )
        if self.game_master_enabled and not invited_or_free:
            return False
        return True

    def redact(self, viewer: User, host: str) -> None:
        """Hide everything the viewer is not allowed to see."""
        if viewer.id == self.game_master.id:
            return
        viewer_email = normalize_email(viewer.email)
        for invitation in self.game_master_invitations:
            if normalize_email(invitation.email) != viewer_email:
                invitation.email = ""
        fully_anonymous = (self.private and self.anonymous) or (
            not self.private
            and self.disable_private_chat
            and self.disable_group_chat
            and self.disable_conference_chat
        )
        visible_nations = self.mustered and self.started
        for member in self.members:
            if not self.finished and fully_anonymous and member.user.id != viewer.id:
                member.anonymize(host)
            else:
                member.redact(viewer, visible_nations)

    def valid_nation(self, nation: str, variant_nations: Iterable[str]) -> bool:
        return nation in variant_nations

    def allocate_nations(
        self,
        variant_nations: Sequence[str],
        rng: random.Random | None = None,
    ) -> None:
        """Give every member a nation, honouring game master preallocations."""
        generator = rng if rng is not None else random.Random()
        variant_nations = list(variant_nations)

        preallocated = {
            normalize_email(invitation.email): invitation.nation
            for invitation in self.game_master_invitations
            if invitation.nation and self.valid_nation(invitation.nation, variant_nations)
        }

        taken: set[str] = set()
        needing: list[Member] = []
        for member in self.members:
            prealloc = preallocated.get(normalize_email(member.user.email))
            if prealloc is not None:
                member.nation = prealloc
                taken.add(prealloc)
            else:
                needing.append(member)

        free_nations = [nation for nation in variant_nations if nation not in taken]
        if len(free_nations) != len(needing):
            raise GameError(
                f"{len(free_nations)} free nations for {len(needing)} unallocated members",
                HTTPStatus.INTERNAL_SERVER_ERROR,
            )
        if not free_nations:
            return

        if self.nation_allocation == AllocationMethod.RANDOM:
            order = generator.sample(range(len(free_nations)), len(free_nations))
            for member, nation_idx in zip(needing, order):
                member.nation = free_nations[nation_idx]
        elif self.nation_allocation == AllocationMethod.PREFERENCE:
            try:
                allocation = _allocate_by_preference(needing, free_nations, generator)
            except AllocationError as exc:
                raise GameError(
                    f"allocating {free_nations}: {exc}", HTTPStatus.INTERNAL_SERVER_ERROR
                ) from exc
            for member, nation in zip(needing, allocation):
                member.nation = nation
        else:
            raise GameError(
                f"unknown allocation method {self.nation_allocation}, pick "
                f"{int(AllocationMethod.RANDOM)} or {int(AllocationMethod.PREFERENCE)}",
                HTTPStatus.BAD_REQUEST,
            )

    def update_start_eta(
        self, nation_count: int, now: datetime.datetime | None = None
    ) -> None:
        """Recount members and estimate when the game will start."""
        moment = now if now is not None else _now()
        self.n_members = len(self.members)
        if self.started:
            self.start_eta = self.started_at
        elif len(self.members) > 1:
            empty_spots = nation_count - len(self.members)
            created = self.created_at if self.created_at is not None else moment
            elapsed = (moment - created).total_seconds()
            seconds_left = empty_spots * elapsed / (len(self.members) - 1)
            self.start_eta = moment + datetime.timedelta(seconds=seconds_left)
        else:
            self.start_eta = FAR_FUTURE


def sort_games(games: Iterable[Game]) -> list[Game]:
    """Fullest games first, then oldest first."""

    def key(game: Game) -> tuple[int, bool, datetime.datetime | None]:
        return (-game.n_members, game.created_at is not None, game.created_at)

    return sorted(games, key=key)


def remove_custom_filtered(
    games: Iterable[Game], filters: Sequence[Callable[[Game], bool]]
) -> list[Game]:
    """Keep only the games every filter accepts."""
    return [game for game in games if all(check(game) for check in filters)]


def remove_filtered(
    games: list[Game],
    reason: FilterReason,
    stats: ViewerStats,
    actually_remove: bool,
) -> list[list[str]]:
    """Record which requirements the viewer fails for each game.

    Returns the failed requirements per game. When ``actually_remove`` is
    set, games with failures are removed from ``games`` in place.
    """
    failures: list[list[str]] = []
    for game in games:
        failed: list[str] = []
        if game.max_hated and stats.hated > game.max_hated:
            failed.append("Hated")
        if game.max_hater and stats.hater > game.max_hater:
            failed.append("Hater")
        if game.max_rating and stats.rating > game.max_rating:
            failed.append("MaxRating")
        if game.min_rating and stats.rating < game.min_rating:
            failed.append("MinRating")
        if game.min_reliability and stats.reliability < game.min_reliability:
            failed.append("MinReliability")
        if game.min_quickness and stats.quickness < game.min_quickness:
            failed.append("MinQuickness")
        if (
            game.game_master_enabled
            and game.require_game_master_invitation
            and reason is FilterReason.TO_JOIN
            and not game.is_invited_by_game_master(stats.user.email)
        ):
            failed.append("InvitationNeeded")
        game.failed_requirements = list(failed)
        failures.append(failed)
    if actually_remove:
        games[:] = [game for game, failed in zip(games, failures) if not failed]
    return failures


def validate_new_game(
    game: Game, known_variants: Iterable[str], creator: User
) -> Game:
    """Check a freshly submitted game and fill in creation defaults."""
    if game.first_member is None:
        game.first_member = Member()
    if game.variant not in set(known_variants):
        raise GameError("unknown variant", HTTPStatus.BAD_REQUEST)
    if game.phase_length_minutes < 1:
        raise GameError(
            "no games with zero or negative phase deadline allowed", HTTPStatus.BAD_REQUEST
        )
    if game.phase_length_minutes > MAX_PHASE_DEADLINE:
        raise GameError(
            "no games with more than 30 day deadlines allowed", HTTPStatus.BAD_REQUEST
        )
    if game.game_master_enabled:
        if not game.private:
            raise GameError(
                "only private games can have game master", HTTPStatus.BAD_REQUEST
            )
        game.game_master = creator
    game.created_at = _now()
    return game