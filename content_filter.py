import logging
from typing import Iterable

from models import ProviderMovie

logger = logging.getLogger(__name__)

REASON_ADULT = "adult content"
REASON_KEYWORD = "inappropriate keyword"
REASON_LOW_RATING = "low rating with statistically meaningful vote count"

# Below this many votes the average is not trusted.
MIN_VOTES_FOR_RATING_RULE = 100
MIN_VOTE_AVERAGE = 3.0

DEFAULT_BLOCKED_KEYWORDS: tuple[str, ...] = (
    "porn", "xxx", "adult", "sex", "nude", "erotic", "pornographic", "explicit",
    "hardcore", "softcore", "adult film", "adult movie", "sex film", "sex movie",
    "nude film", "nude movie", "erotic film", "erotic movie", "porn film", "porn movie",
    "xxx film", "xxx movie", "adult content", "adult entertainment", "adult video",
    "sex video", "nude video", "erotic video", "porn video", "xxx video",
    "hardcore porn", "softcore porn", "adult porn", "sex porn", "nude porn",
    "erotic porn", "adult xxx", "sex xxx", "nude xxx", "erotic xxx",
    "adult sex", "nude sex", "erotic sex", "porn sex", "xxx sex",
    "adult nude", "sex nude", "erotic nude", "porn nude", "xxx nude",
    "adult erotic", "sex erotic", "nude erotic", "porn erotic", "xxx erotic",
)


class ContentFilter:
    """Decides whether a movie may be shown to users."""

    def __init__(self, blocked_keywords: Iterable[str] = DEFAULT_BLOCKED_KEYWORDS):
        self._keywords = tuple(k.lower() for k in blocked_keywords if k)

    @property
    def blocked_keywords(self) -> tuple[str, ...]:
        return self._keywords

    def is_admissible(self, movie: ProviderMovie) -> tuple[bool, str]:
        """Return ``(admissible, reason)``; the first failing rule wins."""
        if movie.adult:
            return False, REASON_ADULT

        title = movie.title.lower()
        original_title = movie.original_title.lower()
        for keyword in self._keywords:
            if keyword in title or keyword in original_title:
                return False, REASON_KEYWORD

        if movie.vote_count > MIN_VOTES_FOR_RATING_RULE and movie.vote_average < MIN_VOTE_AVERAGE:
            return False, REASON_LOW_RATING

        return True, ""

    def filter_list(self, movies: Iterable[ProviderMovie]) -> list[ProviderMovie]:
        admissible: list[ProviderMovie] = []
        for movie in movies:
            ok, reason = self.is_admissible(movie)
            if ok:
                admissible.append(movie)
            else:
                logger.debug("Dropping movie %d (%s): %s", movie.id, movie.title, reason)
        return admissible
