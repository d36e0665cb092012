from pathlib import Path
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from config import Settings
from errors import ContentPolicyError, UpstreamStatusError
from main import create_app
from models import Movie, Page


class FakeCatalog:
    """In-memory MovieCatalog used in place of TMDB."""

    def __init__(
        self,
        movies: Iterable[Movie] = (),
        rejected: Optional[dict[int, str]] = None,
        total_pages: int = 1,
    ):
        self.movies = {m.id: m for m in movies}
        self.rejected = rejected or {}
        self.total_pages = total_pages
        self.calls: list[tuple] = []

    async def discover_movies(self, page: int = 1) -> Page[Movie]:
        self.calls.append(("discover", page))
        results = list(self.movies.values())
        return Page[Movie](
            results=results, page=page, total_pages=self.total_pages, total_results=len(results)
        )

    async def search_movies(self, query: str, page: int = 1) -> Page[Movie]:
        self.calls.append(("search", query, page))
        results = [m for m in self.movies.values() if query.lower() in m.title.lower()]
        return Page[Movie](
            results=results, page=page, total_pages=self.total_pages, total_results=len(results)
        )

    async def get_movie(self, movie_id: int) -> Movie:
        self.calls.append(("get", movie_id))
        if movie_id in self.rejected:
            raise ContentPolicyError(self.rejected[movie_id])
        if movie_id not in self.movies:
            raise UpstreamStatusError(404)
        return self.movies[movie_id]


@pytest.fixture
def tmp_db(tmp_path) -> Path:
    """Returns path to a temporary SQLite database file."""
    return tmp_path / "test.db"


@pytest.fixture
def settings(tmp_db) -> Settings:
    return Settings(tmdb_api_key="test-token", database_path=str(tmp_db), _env_file=None)


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog(
        movies=[
            Movie(id=550, title="Clube da Luta", year="1999", duration="139"),
            Movie(id=872585, title="Oppenheimer", year="2023", duration="180"),
        ],
        rejected={666: "adult content"},
        total_pages=12,
    )


@pytest.fixture
def client(settings, fake_catalog):
    app = create_app(settings=settings, catalog=fake_catalog)
    with TestClient(app) as test_client:
        yield test_client
