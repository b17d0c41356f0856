from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from posts_client.errors import DecodeError
from posts_client.models import Post


_INT_FIELDS = ("userId", "id")
_STR_FIELDS = ("title", "body")


def decode(record: Any) -> Post:
    if not isinstance(record, Mapping):
        raise DecodeError(f"Expected a post object, got {type(record).__name__}")

    missing = [key for key in (*_INT_FIELDS, *_STR_FIELDS) if key not in record]
    if missing:
        raise DecodeError("Post record is missing fields: " + ", ".join(missing))

    for key in _INT_FIELDS:
        value = record[key]
        # bool is an int subclass but never a valid id
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"Post field '{key}' must be an integer, got {value!r}")

    for key in _STR_FIELDS:
        value = record[key]
        if not isinstance(value, str):
            raise DecodeError(f"Post field '{key}' must be a string, got {value!r}")

    return Post(
        id=record["id"],
        user_id=record["userId"],
        title=record["title"],
        body=record["body"],
    )


def encode(post: Post) -> dict[str, Any]:
    return {
        "userId": post.user_id,
        "id": post.id,
        "title": post.title,
        "body": post.body,
    }
