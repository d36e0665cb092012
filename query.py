from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class Operation(str, Enum):
    DISCOVER = "discover"
    SEARCH = "search"
    GET_BY_ID = "get_by_id"


class CurationPolicy(BaseModel):
    """Filters applied when requesting catalog listings."""

    locale: str = "pt-BR"
    region: str = "BR"
    certification_country: str = "BR"
    certification_max: str = "12"
    release_types: tuple[int, ...] = (2, 3)
    excluded_genre_ids: tuple[int, ...] = (27, 10749, 10751, 99, 10769)
    min_vote_count: int = 50
    search_min_vote_count: int = 10
    min_vote_average: float = 3.0
    include_adult: bool = False
    sort_by: str = "popularity.desc"

    @field_validator("include_adult")
    @classmethod
    def _adult_never_included(cls, value: bool) -> bool:
        if value:
            raise ValueError("adult titles cannot be included")
        return value


def _catalog_filters(policy: CurationPolicy, min_vote_count: int) -> dict[str, str]:
    return {
        "include_adult": "false",
        "language": policy.locale,
        "region": policy.region,
        "certification_country": policy.certification_country,
        "certification.lte": policy.certification_max,
        "with_release_type": "|".join(str(t) for t in policy.release_types),
        "without_genres": ",".join(str(g) for g in policy.excluded_genre_ids),
        "vote_count.gte": str(min_vote_count),
        "vote_average.gte": f"{policy.min_vote_average:.1f}",
    }


def build_request(
    operation: Operation,
    policy: CurationPolicy,
    *,
    page: int = 1,
    query: Optional[str] = None,
    movie_id: Optional[int] = None,
) -> tuple[str, dict[str, str]]:
    """Return the endpoint path and query parameters for a catalog operation."""
    if operation is Operation.DISCOVER:
        params = {
            "page": str(page),
            "sort_by": policy.sort_by,
            "include_video": "false",
        }
        params.update(_catalog_filters(policy, policy.min_vote_count))
        return "/discover/movie", params

    if operation is Operation.SEARCH:
        if query is None or not query.strip():
            raise ValueError("search requires a non-empty query")
        params = {"query": query, "page": str(page)}
        params.update(_catalog_filters(policy, policy.search_min_vote_count))
        return "/search/movie", params

    if operation is Operation.GET_BY_ID:
        if movie_id is None:
            raise ValueError("get_by_id requires a movie id")
        # Direct lookups skip the catalog-wide filters; admissibility is
        # decided after the movie is fetched.
        return f"/movie/{int(movie_id)}", {
            "language": policy.locale,
            "append_to_response": "translations",
        }

    raise ValueError(f"unknown operation: {operation!r}")
