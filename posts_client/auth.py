from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping, Protocol

from posts_client.models import AuthState, MessageKind, Session, StatusMessage

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthState], None]


class AuthenticationError(RuntimeError):
    pass


class CredentialVerifier(Protocol):
    async def verify(self, username: str, password: str) -> str:
        """Return a bearer token or raise AuthenticationError."""
        ...


class StaticCredentialVerifier:
    """Demo policy: accept a fixed set of username/password pairs."""

    def __init__(self, credentials: Mapping[str, str], delay_seconds: float = 0.5):
        self._credentials = dict(credentials)
        self._delay_seconds = delay_seconds

    async def verify(self, username: str, password: str) -> str:
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        if username not in self._credentials or self._credentials[username] != password:
            raise AuthenticationError("Incorrect username or password.")
        return f"simulated_jwt_for_{username}"


class AuthManager:
    def __init__(self, verifier: CredentialVerifier):
        self._verifier = verifier
        self._session: Session | None = None
        self._message: StatusMessage | None = None
        self._listeners: list[AuthListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def current_token(self) -> str | None:
        if self._session is None:
            return None
        return self._session.token

    def get_auth_state(self) -> AuthState:
        if self._session is None:
            return AuthState(is_signed_in=False)
        return AuthState(is_signed_in=True, username=self._session.username)

    async def login(self, username: str, password: str) -> AuthState:
        self._message = None
        try:
            token = await self._verifier.verify(username, password)
        except AuthenticationError as error:
            logger.info("Login rejected for user %r", username)
            self._message = StatusMessage(MessageKind.ERROR, str(error))
        else:
            self._session = Session(username=username, token=token)
            self._message = StatusMessage(
                MessageKind.SUCCESS,
                f"Login successful for user: {username}",
            )
            logger.info("User %r logged in", username)

        self._notify()
        return self.get_auth_state()

    def logout(self) -> None:
        if self._session is not None:
            logger.info("User %r logged out", self._session.username)
        self._session = None
        self._message = StatusMessage(MessageKind.SUCCESS, "Logout successful!")
        self._notify()

    def take_message(self) -> StatusMessage | None:
        message, self._message = self._message, None
        return message

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        state = self.get_auth_state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Auth listener %r failed", listener)
