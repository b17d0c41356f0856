"""Shared fixtures: a scripted requests session and fast settings."""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

import pytest
import requests

from posts_client.apis import PostsApi
from posts_client.auth import AuthManager, StaticCredentialVerifier
from posts_client.config import AppSettings
from posts_client.http import HttpClient
from posts_client.interceptors import AuthInjector, RetryHandler
from posts_client.store import PostsStore

BASE_URL = "https://example.test/posts"


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: dict[str, str]
    payload: Any
    timeout: Any


def make_response(status_code: int, body: Any = None, raw: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = b""
    return response


def post_record(post_id: int, title: str = "title", body: str = "body", user_id: int = 1) -> dict[str, Any]:
    return {"userId": user_id, "id": post_id, "title": title, "body": body}


class FakeSession(requests.Session):
    """Replays queued responses or exceptions instead of touching the network."""

    def __init__(self, *outcomes: Any):
        super().__init__()
        self.outcomes = list(outcomes)
        self.calls: list[RecordedCall] = []
        self.closed = False

    def queue(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    def request(self, method, url, **kwargs):
        self.calls.append(
            RecordedCall(
                method=method,
                url=url,
                headers=dict(kwargs.get("headers") or {}),
                payload=kwargs.get("json"),
                timeout=kwargs.get("timeout"),
            )
        )
        if not self.outcomes:
            raise AssertionError(f"Unexpected request: {method} {url}")

        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self):
        self.closed = True
        super().close()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        base_url=BASE_URL,
        retry_limit=2,
        retry_delay_seconds=0.0,
        login_delay_seconds=0.0,
    )


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def auth_manager() -> AuthManager:
    return AuthManager(StaticCredentialVerifier({"admin": "admin"}, delay_seconds=0.0))


@pytest.fixture
def http_client(settings, fake_session, auth_manager) -> HttpClient:
    return HttpClient(
        settings,
        interceptors=[
            RetryHandler(settings.retry_limit, settings.retry_delay_seconds),
            AuthInjector(auth_manager.current_token),
        ],
        session=fake_session,
    )


@pytest.fixture
def posts_api(settings, http_client) -> PostsApi:
    return PostsApi(settings, http_client)


@pytest.fixture
def store(posts_api, auth_manager) -> PostsStore:
    return PostsStore(posts_api, auth_manager, default_user_id=1)
