from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from posts_client.apis import PostsApi
from posts_client.auth import AuthManager, StaticCredentialVerifier
from posts_client.config import AppSettings, ConfigurationError
from posts_client.http import HttpClient
from posts_client.interceptors import AuthInjector, RetryHandler
from posts_client.logging_utils import configure_logging
from posts_client.models import MessageKind
from posts_client.store import PostsStore

logger = logging.getLogger(__name__)


def build_auth_manager(settings: AppSettings) -> AuthManager:
    verifier = StaticCredentialVerifier(
        {settings.login_username: settings.login_password},
        delay_seconds=settings.login_delay_seconds,
    )
    return AuthManager(verifier)


def build_http_client(settings: AppSettings, auth_manager: AuthManager) -> HttpClient:
    # Retry wraps auth so every resubmitted attempt carries the header
    return HttpClient(
        settings,
        interceptors=[
            RetryHandler(settings.retry_limit, settings.retry_delay_seconds),
            AuthInjector(auth_manager.current_token),
        ],
    )


def build_store(settings: AppSettings, auth_manager: AuthManager | None = None) -> PostsStore:
    auth_manager = auth_manager or build_auth_manager(settings)
    http_client = build_http_client(settings, auth_manager)
    return PostsStore(
        posts_api=PostsApi(settings, http_client),
        auth_manager=auth_manager,
        default_user_id=settings.default_user_id,
    )


async def run_app(settings: AppSettings, username: str | None, password: str | None) -> int:
    auth_manager = build_auth_manager(settings)
    store = build_store(settings, auth_manager)
    try:
        if username is not None:
            await auth_manager.login(username, password or "")
            await store.settle()
            message = store.state.message
            if message is not None and message.kind == MessageKind.SUCCESS:
                print(message.text)
            elif message is not None and not auth_manager.is_authenticated:
                # rejected login; the anonymous refresh below clears the slot
                print(message.text, file=sys.stderr)

        if username is None or not auth_manager.is_authenticated:
            await store.refresh_all()

        state = store.state
        if state.error_message:
            print(state.error_message, file=sys.stderr)
            return 1

        for post in state.posts:
            print(f"{post.id}: {post.title}")
        return 0
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="posts-client", description="List remote posts.")
    parser.add_argument("--username", help="log in before listing posts")
    parser.add_argument("--password", help="password for --username")
    args = parser.parse_args(argv)

    try:
        settings = AppSettings.from_env()
    except ConfigurationError as exc:
        print(
            "Configuration error. Fix the POSTS_* environment variables and retry:\n\n"
            f"{exc}",
            file=sys.stderr,
        )
        return 2

    configure_logging(settings.log_level)
    logger.debug("Using posts endpoint %s", settings.base_url)
    return asyncio.run(run_app(settings, args.username, args.password))


if __name__ == "__main__":
    sys.exit(main())
