from __future__ import annotations

import logging
from typing import Any

import requests

from posts_client import codec
from posts_client.config import AppSettings
from posts_client.errors import DecodeError, ServerError
from posts_client.http import ApiRequest, CancelToken, HttpClient
from posts_client.models import Post

logger = logging.getLogger(__name__)


class PostsApi:
    def __init__(self, settings: AppSettings, http_client: HttpClient):
        self._settings = settings
        self._http_client = http_client

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    def close(self) -> None:
        self._http_client.close()

    async def fetch_all(self, cancel_token: CancelToken | None = None) -> list[Post]:
        response = await self._http_client.send(ApiRequest("GET"), cancel_token)
        self._expect(response, (200,), "load posts list")

        data = self._json(response)
        if not isinstance(data, list):
            raise DecodeError(f"Expected a list of posts, got {type(data).__name__}")

        posts = [codec.decode(record) for record in data]
        logger.info("Fetched %d posts", len(posts))
        return posts

    async def fetch_by_id(self, post_id: int, cancel_token: CancelToken | None = None) -> Post | None:
        response = await self._http_client.send(ApiRequest("GET", f"/{post_id}"), cancel_token)
        if response.status_code == 404:
            logger.info("Post %d not found", post_id)
            return None

        self._expect(response, (200,), f"load post ID {post_id}")
        return codec.decode(self._json(response))

    async def create(
        self,
        title: str,
        body: str,
        user_id: int,
        cancel_token: CancelToken | None = None,
    ) -> Post:
        payload = {"title": title, "body": body, "userId": user_id}
        response = await self._http_client.send(ApiRequest("POST", payload=payload), cancel_token)
        self._expect(response, (201,), "create post")

        post = codec.decode(self._json(response))
        logger.info("Created post %d", post.id)
        return post

    async def update(
        self,
        post_id: int,
        title: str,
        body: str,
        user_id: int,
        cancel_token: CancelToken | None = None,
    ) -> Post:
        payload = {"id": post_id, "title": title, "body": body, "userId": user_id}
        response = await self._http_client.send(
            ApiRequest("PUT", f"/{post_id}", payload=payload),
            cancel_token,
        )
        self._expect(response, (200,), f"update post ID {post_id}")
        return codec.decode(self._json(response))

    async def remove(self, post_id: int, cancel_token: CancelToken | None = None) -> None:
        response = await self._http_client.send(ApiRequest("DELETE", f"/{post_id}"), cancel_token)
        self._expect(response, (200, 204), f"delete post ID {post_id}")

    @staticmethod
    def _expect(response: requests.Response, expected: tuple[int, ...], operation: str) -> None:
        if response.status_code in expected:
            return

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None
        raise ServerError.from_body(
            response.status_code,
            body,
            fallback=f"Failed to {operation}",
        )

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as error:
            raise DecodeError(f"Response body is not valid JSON: {error}") from error
