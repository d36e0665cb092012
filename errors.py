from typing import Optional


class CatalogError(Exception):
    """Base class for failures talking to the movie provider."""


class TransportError(CatalogError):
    """Connection, DNS or timeout failure. Never retried."""


class AuthenticationError(CatalogError):
    """The provider's authentication check failed or reported no success."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamStatusError(CatalogError):
    def __init__(self, status_code: int, body_snippet: str = ""):
        super().__init__(f"provider request failed with HTTP {status_code}")
        self.status_code = status_code
        self.body_snippet = body_snippet


class DecodeError(CatalogError):
    """Response body is not JSON or does not have the expected shape."""


class ContentPolicyError(CatalogError):
    """Raised by single-movie lookups when the movie is not admissible."""

    def __init__(self, reason: str):
        super().__init__(f"movie with {reason} is not allowed")
        self.reason = reason


class WatchlistEntryNotFound(Exception):
    def __init__(self, user_id: int, movie_id: int):
        super().__init__(f"movie {movie_id} is not on the watch list of user {user_id}")
        self.user_id = user_id
        self.movie_id = movie_id


class WatchlistEntryExists(Exception):
    def __init__(self, user_id: int, movie_id: int):
        super().__init__(f"movie {movie_id} is already on the watch list of user {user_id}")
        self.user_id = user_id
        self.movie_id = movie_id
