"""Game, membership, nation allocation, game state and message-flagging rules for online Diplomacy games."""

__version__ = "0.1.0"
__all__ = ["allocation", "game", "game_state", "member", "message_flag", "textutil"]