"""Per-member game scoped configuration, such as muted nations."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

GAME_STATE_KIND = "GameState"


class GameStateError(ValueError):
    """Raised when a game state cannot be identified."""


@dataclass
class GameState:
    """The game scoped settings of one member nation."""

    game_id: str | None = None
    nation: str = ""
    muted: list[str] = field(default_factory=list)

    def has_muted(self, nat: str) -> bool:
        """Whether press from the given nation is hidden for this member."""
        return nat in self.muted


def game_state_key(game_id: str | None, nation: str) -> tuple[str, str, str]:
    """Return the storage key of a game state as ``(kind, nation, game_id)``."""
    if game_id is None or not nation:
        raise GameStateError("game states must have games and nations")
    return (GAME_STATE_KIND, nation, game_id)


def complete_game_states(
    states: Iterable[GameState],
    game_id: str | None,
    variant_nations: Sequence[str],
    mustered: bool,
) -> list[GameState]:
    """Add a default state for every variant nation lacking one.

    Until the game is mustered the nations are hidden from the result.
    The given states are copied, not modified.
    """
    result = [dataclasses.replace(state, muted=list(state.muted)) for state in states]
    present = {state.nation for state in result}
    result.extend(
        GameState(game_id=game_id, nation=nation)
        for nation in variant_nations
        if nation not in present
    )
    if not mustered:
        for state in result:
            state.nation = ""
    return result