"""Request middleware composed around a single physical attempt.

An interceptor is an async callable ``(request, context, call_next)``. It
either proceeds by awaiting ``call_next`` with a (possibly modified) request,
or short-circuits by returning a response or raising. Requests are immutable,
so an interceptor that changes headers passes a new copy down the chain.
"""

from __future__ import annotations

import asyncio
from functools import partial
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol, Sequence

import requests

from posts_client.errors import RequestTimeoutError, TransientError

if TYPE_CHECKING:
    from posts_client.http import ApiRequest, RequestContext

logger = logging.getLogger(__name__)

CallNext = Callable[["ApiRequest", "RequestContext"], Awaitable[requests.Response]]
TokenGetter = Callable[[], "str | None"]


class Interceptor(Protocol):
    async def __call__(
        self,
        request: ApiRequest,
        context: RequestContext,
        call_next: CallNext,
    ) -> requests.Response: ...


def compose(interceptors: Sequence[Interceptor], attempt: CallNext) -> CallNext:
    """Fold ``interceptors`` around ``attempt``; the first one is outermost."""
    handler = attempt
    for interceptor in reversed(interceptors):
        handler = partial(interceptor, call_next=handler)
    return handler


class AuthInjector:
    def __init__(self, token_getter: TokenGetter):
        self._token_getter = token_getter

    async def __call__(
        self,
        request: ApiRequest,
        context: RequestContext,
        call_next: CallNext,
    ) -> requests.Response:
        token = self._token_getter()
        if token:
            request = request.with_header("Authorization", f"Bearer {token}")
            logger.debug("Added Authorization header to %s %s", request.method, request.path or "/")
        else:
            logger.debug("No authentication token available for %s %s", request.method, request.path or "/")

        response = await call_next(request, context)
        if response.status_code in (401, 403):
            logger.warning(
                "Authentication error %d for %s %s",
                response.status_code,
                request.method,
                request.path or "/",
            )
        return response


class RetryHandler:
    """Resubmit a request after timeouts and transient network failures.

    The retry counter lives on the request context, so the inner chain
    may run again for every resubmission while the total stays bounded
    by ``retry_limit``. HTTP error responses are returned, not raised,
    and therefore never retried.
    """

    def __init__(self, retry_limit: int = 2, retry_delay_seconds: float = 1.0):
        self._retry_limit = retry_limit
        self._retry_delay_seconds = retry_delay_seconds

    async def __call__(
        self,
        request: ApiRequest,
        context: RequestContext,
        call_next: CallNext,
    ) -> requests.Response:
        while True:
            try:
                return await call_next(request, context)
            except (RequestTimeoutError, TransientError) as error:
                if context.retry_count >= self._retry_limit:
                    if self._retry_limit:
                        logger.warning(
                            "Giving up on %s %s after %d retries: %s",
                            request.method,
                            request.path or "/",
                            context.retry_count,
                            error,
                        )
                    raise

                context.retry_count += 1
                logger.info(
                    "Retrying %s %s (attempt %d/%d): %s",
                    request.method,
                    request.path or "/",
                    context.retry_count,
                    self._retry_limit,
                    error,
                )
                await asyncio.sleep(self._retry_delay_seconds)
                context.raise_if_cancelled()
