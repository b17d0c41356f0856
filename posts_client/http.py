from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
import logging
import threading
from typing import Any, Sequence

import requests
from urllib3.exceptions import ReadTimeoutError

from posts_client.config import AppSettings
from posts_client.errors import RequestCancelledError, RequestTimeoutError, TransientError
from posts_client.interceptors import Interceptor, compose

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiRequest:
    method: str
    path: str = ""
    payload: Any = None
    headers: tuple[tuple[str, str], ...] = ()

    def with_header(self, name: str, value: str) -> "ApiRequest":
        kept = tuple((key, val) for key, val in self.headers if key.lower() != name.lower())
        return replace(self, headers=kept + ((name, value),))

    def header(self, name: str) -> str | None:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


class CancelToken:
    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()


@dataclass
class RequestContext:
    retry_count: int = 0
    attempts: int = 0
    cancel_token: CancelToken | None = field(default=None, repr=False)

    def raise_if_cancelled(self) -> None:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            raise RequestCancelledError()


class HttpClient:
    def __init__(
        self,
        settings: AppSettings,
        interceptors: Sequence[Interceptor] = (),
        session: requests.Session | None = None,
    ):
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json; charset=UTF-8",
            }
        )
        self._handler = compose(list(interceptors), self._attempt)

    async def send(
        self,
        request: ApiRequest,
        cancel_token: CancelToken | None = None,
    ) -> requests.Response:
        context = RequestContext(cancel_token=cancel_token)
        return await self._handler(request, context)

    def close(self) -> None:
        self._session.close()

    async def _attempt(self, request: ApiRequest, context: RequestContext) -> requests.Response:
        context.raise_if_cancelled()
        context.attempts += 1

        url = f"{self._settings.base_url}{request.path}"
        logger.debug("%s %s (attempt %d)", request.method, url, context.attempts)

        try:
            return await asyncio.to_thread(
                self._session.request,
                request.method,
                url,
                headers=dict(request.headers),
                json=request.payload,
                timeout=self._settings.timeout,
            )
        except requests.exceptions.Timeout as error:
            raise RequestTimeoutError() from error
        except requests.exceptions.ConnectionError as error:
            # a stalled body read surfaces as ConnectionError wrapping ReadTimeoutError
            if any(isinstance(arg, ReadTimeoutError) for arg in error.args):
                raise RequestTimeoutError() from error
            logger.debug("Connection failure for %s %s: %s", request.method, url, error)
            raise TransientError() from error
        except requests.exceptions.RequestException as error:
            logger.debug("Network failure for %s %s: %s", request.method, url, error)
            raise TransientError() from error
