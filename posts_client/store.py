from __future__ import annotations

import asyncio
from dataclasses import replace
import logging
from typing import Any, Callable

from posts_client.apis import PostsApi
from posts_client.auth import AuthManager
from posts_client.errors import ApiError
from posts_client.models import AuthState, ClientState, MessageKind, StatusMessage

logger = logging.getLogger(__name__)

StateListener = Callable[[ClientState], None]


class StoreBusyError(RuntimeError):
    pass


class PostsStore:
    """Holds the posts collection and mediates between callers and the API.

    Every operation enters a loading phase, talks to the API once and then
    settles; subscribers get a snapshot after each of those transitions.
    Only one operation may be outstanding per store. Starting another raises
    StoreBusyError instead of interleaving with the first.

    The store follows the auth manager: a transition's message is surfaced
    once, and a change in the signed-in flag schedules a refresh on the
    running event loop.
    """

    def __init__(self, posts_api: PostsApi, auth_manager: AuthManager, default_user_id: int = 1):
        self._posts_api = posts_api
        self._auth_manager = auth_manager
        self._default_user_id = default_user_id
        self._state = ClientState(is_authenticated=auth_manager.is_authenticated)
        self._listeners: list[StateListener] = []
        self._busy = False
        self._refresh_pending = False
        self._background: set[asyncio.Task[None]] = set()
        self._unsubscribe_auth = auth_manager.subscribe(self._on_auth_changed)

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._busy

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def close(self) -> None:
        self._unsubscribe_auth()
        self._listeners.clear()
        self._posts_api.close()

    async def settle(self) -> None:
        """Wait for refreshes scheduled by auth transitions to finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def refresh_all(self) -> None:
        await self._refresh(clear_message=True)

    async def search_by_id(self, post_id: int) -> None:
        self._begin(message=None, searched_post=None, is_searching_by_id=True)
        outcome: dict[str, Any] = {}
        try:
            post = await self._posts_api.fetch_by_id(post_id)
            if post is None:
                outcome["message"] = StatusMessage(
                    MessageKind.NOT_FOUND,
                    f"No post found with this ID ({post_id}).",
                )
            else:
                outcome["searched_post"] = post
        except ApiError as error:
            logger.warning("Searching for post %d failed: %s", post_id, error)
            outcome["message"] = _error_message(error)
        finally:
            self._finish(**outcome)

    async def clear_search(self) -> None:
        self._ensure_idle()
        self._state = replace(self._state, is_searching_by_id=False, searched_post=None, message=None)
        await self._refresh(clear_message=True)

    async def create(self, title: str, body: str) -> None:
        self._begin(message=None)
        outcome: dict[str, Any] = {}
        try:
            post = await self._posts_api.create(title, body, self._default_user_id)
            others = tuple(existing for existing in self._state.posts if existing.id != post.id)
            outcome["posts"] = (post, *others)
            outcome["message"] = StatusMessage(
                MessageKind.SUCCESS,
                f'Post "{post.title}" created successfully (ID: {post.id})!',
            )
        except ApiError as error:
            logger.warning("Creating post failed: %s", error)
            outcome["message"] = _error_message(error)
        finally:
            self._finish(**outcome)

    async def update(self, post_id: int, title: str, body: str, user_id: int) -> None:
        self._begin(message=None)
        outcome: dict[str, Any] = {}
        try:
            updated = await self._posts_api.update(post_id, title, body, user_id)
            outcome["posts"] = tuple(
                updated if existing.id == post_id else existing for existing in self._state.posts
            )
            searched = self._state.searched_post
            if searched is not None and searched.id == post_id:
                outcome["searched_post"] = updated
            outcome["message"] = StatusMessage(
                MessageKind.SUCCESS,
                f"Post ID {post_id} updated successfully!",
            )
        except ApiError as error:
            logger.warning("Updating post %d failed: %s", post_id, error)
            outcome["message"] = _error_message(error)
        finally:
            self._finish(**outcome)

    async def remove(self, post_id: int) -> None:
        self._begin(message=None)
        outcome: dict[str, Any] = {}
        try:
            await self._posts_api.remove(post_id)
            outcome["posts"] = tuple(
                existing for existing in self._state.posts if existing.id != post_id
            )
            searched = self._state.searched_post
            if searched is not None and searched.id == post_id:
                outcome["searched_post"] = None
                outcome["is_searching_by_id"] = False
            outcome["message"] = StatusMessage(
                MessageKind.SUCCESS,
                f"Post ID {post_id} deleted successfully!",
            )
        except ApiError as error:
            logger.warning("Deleting post %d failed: %s", post_id, error)
            outcome["message"] = _error_message(error)
        finally:
            self._finish(**outcome)

    async def _refresh(self, clear_message: bool) -> None:
        if clear_message:
            self._begin(message=None)
        else:
            self._begin()
        self._refresh_pending = False

        outcome: dict[str, Any] = {}
        try:
            posts = await self._posts_api.fetch_all()
            outcome["posts"] = tuple(posts)
        except ApiError as error:
            logger.warning("Refreshing posts failed: %s", error)
            outcome["message"] = _error_message(error)
        finally:
            self._finish(**outcome)

    async def _refresh_in_background(self) -> None:
        if self._busy:
            self._refresh_pending = True
            return
        await self._refresh(clear_message=False)

    def _schedule_refresh(self) -> None:
        if self._busy:
            self._refresh_pending = True
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; refresh deferred to the next operation")
            self._refresh_pending = True
            return

        task = loop.create_task(self._refresh_in_background())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        task.add_done_callback(_log_background_failure)

    def _on_auth_changed(self, auth_state: AuthState) -> None:
        was_authenticated = self._state.is_authenticated
        changes: dict[str, Any] = {"is_authenticated": auth_state.is_signed_in}

        message = self._auth_manager.take_message()
        if message is not None:
            changes["message"] = message

        self._state = replace(self._state, **changes)
        self._notify()

        if auth_state.is_signed_in != was_authenticated:
            self._schedule_refresh()

    def _ensure_idle(self) -> None:
        if self._busy:
            raise StoreBusyError("Another posts operation is still in progress")

    def _begin(self, **changes: Any) -> None:
        self._ensure_idle()
        self._busy = True
        self._state = replace(self._state, is_loading=True, **changes)
        self._notify()

    def _finish(self, **changes: Any) -> None:
        self._state = replace(self._state, is_loading=False, **changes)
        self._busy = False
        self._notify()

        if self._refresh_pending:
            self._refresh_pending = False
            self._schedule_refresh()

    def _notify(self) -> None:
        snapshot = self._state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("State listener %r failed", listener)


def _error_message(error: ApiError) -> StatusMessage:
    return StatusMessage(MessageKind.ERROR, str(error))


def _log_background_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Background refresh failed", exc_info=error)
