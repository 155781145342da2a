# dipgame

Game rules for online Diplomacy. The package covers creating and joining
games, allocating nations to players, and redacting what each viewer may see.
It also holds per-member game state and the flagging of chat messages.

Functions that need facts about a variant take those facts as arguments.
Examples are a variant's list of nations or its number of nations.

## Installation

```
pip install dipgame
```

To run the tests:

```
pip install "dipgame[test]"
pytest
```

## Modules

- `dipgame.textutil`
  - `trim_space(s)` strips surrounding whitespace and removes Unicode format
    characters.
  - `normalize_email(s)` trims and lower-cases an address so that addresses
    can be compared.
  - `pretty(value)` renders a value as indented JSON. If the value cannot be
    serialised, it falls back to `pprint`.
- `dipgame.member`: `User`, `GameMasterInvitation` and `Member`.
  - `Member.preferences()` splits the comma separated nation preferences.
  - `Member.anonymize(host)` replaces identifying details with placeholders.
  - `Member.redact(viewer, mustered)` hides what the viewer may not see.
- `dipgame.allocation`: `allocate_nations(preferers, nations, rng)` gives one
  nation to each preferer.
  - It minimises the total preference cost with a linear sum assignment.
  - Nations a player did not list are ranked in random order.
  - It raises `AllocationError` when the counts of players and nations differ.
- `dipgame.game`: the `Game` dataclass and its rules.
  - Joinability, leavability and merge eligibility (`can_merge_into`).
  - Nation abbreviation (`abbr_nat`, `abbr_nats`).
  - Redaction for a viewer.
  - Nation allocation at game start, honouring game master preallocations.
  - Start-ETA estimation (`update_start_eta`).
  - Module-level helpers:
    - `sort_games` puts the fullest games first, then the oldest.
    - `remove_custom_filtered` keeps the games that pass every filter.
    - `remove_filtered` checks a `ViewerStats` against each game's
      requirements.
    - `validate_new_game` checks a new game and fills in its creation
      defaults.
  - Refusals raise `GameError`, which carries an HTTP status.
- `dipgame.game_state`: `GameState` with `has_muted`.
  - `game_state_key(game_id, nation)` builds the storage key of a game state.
  - `complete_game_states(...)` adds a default state for every nation that
    lacks one. It hides the nations until the game is mustered.
- `dipgame.message_flag`: `MessageFlag`, `ChannelMessage`, `FlaggedMessage`
  and `FlaggedMessages`.
  - `flagged_messages_id(game_int_id, user_id)` builds the storage name of a
    user's flagged messages in a game.
  - `flag_messages(...)` collects the messages created within a flag's time
    span, inclusive, and attributes each to its author.

## Example

```python
from dipgame.game import Game
from dipgame.member import User

game = Game(variant="Classical", n_members=3)
print(game.joinable(User(id="u1", email="player@example.com"), 7))  # True
```

```python
import random

from dipgame.allocation import allocate_nations
from dipgame.member import Member

members = [
    Member(nation_preferences="France, England"),
    Member(nation_preferences="England"),
]
print(allocate_nations(members, ["England", "France"], random.Random(1)))
# ['France', 'England']
```

## What it does not do

- It stores nothing.
- It serves no HTTP API.
- It does not adjudicate orders or phases.
- It does not score finished games.
- It has no command-line program.

Loading and saving games, handling requests and resolving turns belong to
the application that uses these rules.