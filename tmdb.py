import logging
from typing import Optional, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from content_filter import ContentFilter
from errors import (
    AuthenticationError,
    ContentPolicyError,
    DecodeError,
    TransportError,
    UpstreamStatusError,
)
from localization import resolve, split_locale
from mapper import normalize, wrap_page
from models import Movie, Page, ProviderMovie, ProviderPage
from query import CurationPolicy, Operation, build_request

logger = logging.getLogger(__name__)

TMDB_BASE = "https://api.themoviedb.org/3"
AUTH_CHECK_PATH = "/authentication"

M = TypeVar("M", bound=BaseModel)


class TMDBClient:
    """Sends bearer-authenticated requests to TMDB.

    A 401 triggers one call to the authentication check endpoint followed by
    exactly one retry of the original request. The retry happens even when
    the check fails. Transport failures are never retried.
    """

    def __init__(self, http: httpx.AsyncClient, api_token: str, base_url: str = TMDB_BASE):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "accept": "application/json",
            "Authorization": f"Bearer {api_token}",
        }

    async def _send(
        self, method: str, path: str, params: Optional[dict[str, str]] = None
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s %s", method, url, params or {})
        try:
            return await self._http.request(method, url, params=params, headers=self._headers)
        except httpx.TransportError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    async def check_authentication(self) -> None:
        response = await self._send("GET", AUTH_CHECK_PATH)
        if response.status_code != 200:
            raise AuthenticationError(
                f"authentication check failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise AuthenticationError(
                "authentication check returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict) or not body.get("success"):
            raise AuthenticationError(
                "authentication check reported failure", status_code=response.status_code
            )

    async def fetch(
        self, method: str, path: str, params: Optional[dict[str, str]] = None
    ) -> httpx.Response:
        response = await self._send(method, path, params)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.warning("TMDB returned 401 for %s; checking authentication and retrying once", path)
            try:
                await self.check_authentication()
            except AuthenticationError as exc:
                # The retry below still goes out.
                logger.warning("TMDB authentication check failed: %s", exc)
            response = await self._send(method, path, params)

        if not response.is_success:
            raise UpstreamStatusError(response.status_code, (response.text or "")[:400])
        return response


def decode(response: httpx.Response, model: type[M]) -> M:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        raise DecodeError(f"unexpected TMDB response body for {response.request.url.path}: {exc}") from exc


class MovieCatalog(Protocol):
    async def discover_movies(self, page: int = 1) -> Page[Movie]: ...

    async def search_movies(self, query: str, page: int = 1) -> Page[Movie]: ...

    async def get_movie(self, movie_id: int) -> Movie: ...


class TMDBCatalog:
    """Curated, filtered and localized view of the TMDB movie catalog."""

    def __init__(
        self,
        client: TMDBClient,
        policy: Optional[CurationPolicy] = None,
        content_filter: Optional[ContentFilter] = None,
    ):
        self.client = client
        self.policy = policy or CurationPolicy()
        self.content_filter = content_filter or ContentFilter()
        self._language, self._country = split_locale(self.policy.locale)

    def _to_movie(self, movie: ProviderMovie) -> Movie:
        return normalize(movie, resolve(movie, self._language, self._country))

    async def _list(self, operation: Operation, **kwargs) -> Page[Movie]:
        path, params = build_request(operation, self.policy, **kwargs)
        response = await self.client.fetch("GET", path, params)
        provider_page = decode(response, ProviderPage)

        admissible = self.content_filter.filter_list(provider_page.results)
        logger.debug(
            "%s page %d: %d of %d movies admissible",
            operation.value,
            provider_page.page,
            len(admissible),
            len(provider_page.results),
        )
        return wrap_page(provider_page, [self._to_movie(m) for m in admissible])

    async def discover_movies(self, page: int = 1) -> Page[Movie]:
        return await self._list(Operation.DISCOVER, page=page)

    async def search_movies(self, query: str, page: int = 1) -> Page[Movie]:
        return await self._list(Operation.SEARCH, page=page, query=query)

    async def get_movie(self, movie_id: int) -> Movie:
        path, params = build_request(Operation.GET_BY_ID, self.policy, movie_id=movie_id)
        response = await self.client.fetch("GET", path, params)
        movie = decode(response, ProviderMovie)

        admissible, reason = self.content_filter.is_admissible(movie)
        if not admissible:
            logger.info("Rejecting movie %d: %s", movie_id, reason)
            raise ContentPolicyError(reason)
        return self._to_movie(movie)
