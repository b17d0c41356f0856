from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from urllib.parse import urlparse


class ConfigurationError(ValueError):
    pass


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class AppSettings:
    base_url: str = "https://jsonplaceholder.typicode.com/posts"
    connect_timeout_seconds: float = 5.0
    receive_timeout_seconds: float = 3.0
    retry_limit: int = 2
    retry_delay_seconds: float = 1.0
    default_user_id: int = 1
    login_username: str = "admin"
    login_password: str = "admin"
    login_delay_seconds: float = 0.5
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "AppSettings":
        _load_dotenv_if_present()

        base_url = os.getenv("POSTS_BASE_URL", AppSettings.base_url).strip().rstrip("/")

        try:
            connect_timeout_seconds = float(os.getenv("POSTS_CONNECT_TIMEOUT_SECONDS", "5"))
            receive_timeout_seconds = float(os.getenv("POSTS_RECEIVE_TIMEOUT_SECONDS", "3"))
            retry_limit = int(os.getenv("POSTS_RETRY_LIMIT", "2"))
            retry_delay_seconds = float(os.getenv("POSTS_RETRY_DELAY_SECONDS", "1"))
            default_user_id = int(os.getenv("POSTS_DEFAULT_USER_ID", "1"))
            login_delay_seconds = float(os.getenv("POSTS_LOGIN_DELAY_SECONDS", "0.5"))
        except ValueError as error:
            raise ConfigurationError(f"Invalid numeric setting: {error}") from error

        login_username = os.getenv("POSTS_LOGIN_USERNAME", "admin").strip()
        login_password = os.getenv("POSTS_LOGIN_PASSWORD", "admin")
        log_level = os.getenv("POSTS_LOG_LEVEL", "INFO").strip().upper()

        settings = AppSettings(
            base_url=base_url,
            connect_timeout_seconds=connect_timeout_seconds,
            receive_timeout_seconds=receive_timeout_seconds,
            retry_limit=retry_limit,
            retry_delay_seconds=retry_delay_seconds,
            default_user_id=default_user_id,
            login_username=login_username,
            login_password=login_password,
            login_delay_seconds=login_delay_seconds,
            log_level=log_level,
        )
        settings.validate()
        return settings

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout_seconds, self.receive_timeout_seconds)

    def validate(self) -> None:
        problems = []

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            problems.append("POSTS_BASE_URL must be an http(s) URL")

        if self.connect_timeout_seconds <= 0:
            problems.append("POSTS_CONNECT_TIMEOUT_SECONDS must be greater than 0")
        if self.receive_timeout_seconds <= 0:
            problems.append("POSTS_RECEIVE_TIMEOUT_SECONDS must be greater than 0")
        if self.retry_limit < 0:
            problems.append("POSTS_RETRY_LIMIT must be 0 or greater")
        if self.retry_delay_seconds < 0:
            problems.append("POSTS_RETRY_DELAY_SECONDS must be 0 or greater")
        if self.default_user_id <= 0:
            problems.append("POSTS_DEFAULT_USER_ID must be greater than 0")
        if not self.login_username:
            problems.append("POSTS_LOGIN_USERNAME must not be empty")
        if self.login_delay_seconds < 0:
            problems.append("POSTS_LOGIN_DELAY_SECONDS must be 0 or greater")
        if self.log_level not in _VALID_LOG_LEVELS:
            problems.append(
                "POSTS_LOG_LEVEL must be one of: " + ", ".join(sorted(_VALID_LOG_LEVELS))
            )

        if problems:
            raise ConfigurationError("Invalid settings: " + "; ".join(problems))


def _load_dotenv_if_present() -> None:
    explicit = os.getenv("POSTS_ENV_FILE", "").strip()
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"POSTS_ENV_FILE points to a missing file: {path}")
    else:
        path = Path.cwd() / ".env"
        if not path.is_file():
            return

    for key, value in _parse_env_file(path).items():
        os.environ.setdefault(key, value)


def _parse_env_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as error:
        raise ConfigurationError(f"Cannot read {path}: {error}") from error

    for raw_line in lines:
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):]
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        if key.startswith("POSTS_"):
            values[key] = value.strip().strip("\"'")
    return values
