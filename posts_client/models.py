from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Post:
    id: int
    user_id: int
    title: str
    body: str


@dataclass(frozen=True)
class Session:
    username: str
    token: str


@dataclass(frozen=True)
class AuthState:
    is_signed_in: bool
    username: str | None = None


class MessageKind(str, Enum):
    ERROR = "error"
    SUCCESS = "success"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class StatusMessage:
    kind: MessageKind
    text: str


class StorePhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SEARCH_MODE = "search_mode"


@dataclass(frozen=True)
class ClientState:
    """Immutable snapshot of everything a posts view renders.

    ``posts`` mirrors server order after a fetch; local creates are
    prepended. ``message`` is a single slot that the next operation clears.
    """

    posts: tuple[Post, ...] = ()
    searched_post: Post | None = None
    is_loading: bool = False
    is_searching_by_id: bool = False
    message: StatusMessage | None = None
    is_authenticated: bool = False

    @property
    def phase(self) -> StorePhase:
        if self.is_loading:
            return StorePhase.LOADING
        if self.is_searching_by_id:
            return StorePhase.SEARCH_MODE
        return StorePhase.IDLE

    @property
    def error_message(self) -> str | None:
        if self.message is None or self.message.kind == MessageKind.SUCCESS:
            return None
        return self.message.text

    @property
    def success_message(self) -> str | None:
        if self.message is None or self.message.kind != MessageKind.SUCCESS:
            return None
        return self.message.text
