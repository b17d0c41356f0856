from .posts_api import PostsApi

__all__ = ["PostsApi"]
