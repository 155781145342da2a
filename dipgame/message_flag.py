"""Flagging of chat messages as examples of unwanted behaviour."""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus

from dipgame.member import User


class MessageFlagError(ValueError):
    """A flagging request was refused; carries the HTTP status it maps to."""

    def __init__(self, message: str, status: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(message)
        self.status = int(status)


@dataclass
class ChannelMessage:
    """A message posted in a chat channel."""

    channel_members: list[str] = field(default_factory=list)
    sender: str = ""
    body: str = ""
    created_at: datetime.datetime | None = None


@dataclass
class MessageFlag:
    """A request to flag the messages of a channel within a time span."""

    game_id: str | None = None
    channel_members: list[str] = field(default_factory=list)
    from_time: datetime.datetime | None = None
    to_time: datetime.datetime | None = None


@dataclass
class FlaggedMessage:
    """A copy of a flagged message, attributed to its author."""

    game_id: str | None = None
    channel_members: str = ""
    sender: str = ""
    body: str = ""
    created_at: datetime.datetime | None = None
    author_id: str = ""


@dataclass
class FlaggedMessages:
    """All messages one user flagged in one game."""

    game_id: str | None = None
    user_id: str = ""
    messages: list[FlaggedMessage] = field(default_factory=list)
    created_at: datetime.datetime | None = None


def flagged_messages_id(game_int_id: int, user_id: str) -> str:
    """The storage name of a user's flagged messages in a game."""
    if not game_int_id or not user_id:
        raise MessageFlagError(
            "flagged messages must have non zero game IDs and users",
            HTTPStatus.INTERNAL_SERVER_ERROR,
        )
    return f"{game_int_id},{user_id}"


def _in_span(message: ChannelMessage, flag: MessageFlag) -> bool:
    if message.created_at is None:
        return False
    if flag.from_time is not None and message.created_at < flag.from_time:
        return False
    if flag.to_time is not None and message.created_at > flag.to_time:
        return False
    return True


def flag_messages(
    flag: MessageFlag,
    messages: Iterable[ChannelMessage],
    user_by_nation: Mapping[str, User],
    game_id: str | None,
    user_id: str,
    now: datetime.datetime | None = None,
) -> FlaggedMessages:
    """Collect the messages created within the flag's time span, inclusive."""
    matched = [message for message in messages if _in_span(message, flag)]
    if not matched:
        raise MessageFlagError("timestamps matched no messages", HTTPStatus.BAD_REQUEST)
    flagged = [
        FlaggedMessage(
            game_id=game_id,
            channel_members=",".join(message.channel_members),
            sender=message.sender,
            body=message.body,
            created_at=message.created_at,
            author_id=user_by_nation[message.sender].id
            if message.sender in user_by_nation
            else "",
        )
        for message in matched
    ]
    return FlaggedMessages(
        game_id=game_id,
        user_id=user_id,
        messages=flagged,
        created_at=now if now is not None else datetime.datetime.now(datetime.timezone.utc),
    )