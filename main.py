import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse

import database
from config import Settings
from content_filter import ContentFilter
from errors import (
    CatalogError,
    ContentPolicyError,
    TransportError,
    UpstreamStatusError,
    WatchlistEntryExists,
    WatchlistEntryNotFound,
)
from models import Movie, Page, WatchlistCreate, WatchlistEntry, WatchlistUpdate, WatchStatus
from tmdb import MovieCatalog, TMDBCatalog, TMDBClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "status_code": status_code, **extra},
    )


def _page_number(raw: Optional[str]) -> int:
    try:
        page = int(raw) if raw else 1
    except ValueError:
        return 1
    return page if page > 0 else 1


def get_catalog(request: Request) -> MovieCatalog:
    return request.app.state.catalog


def get_db_path(request: Request) -> Path:
    return request.app.state.db_path


router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/movies", response_model=Page[Movie])
async def discover_movies(page: Optional[str] = None, catalog: MovieCatalog = Depends(get_catalog)):
    return await catalog.discover_movies(_page_number(page))


@router.get("/movies/search", response_model=Page[Movie])
async def search_movies(
    query: str = "", page: Optional[str] = None, catalog: MovieCatalog = Depends(get_catalog)
):
    if not query.strip():
        raise ApiError(400, "error.movie.empty_query")
    return await catalog.search_movies(query, _page_number(page))


@router.get("/movies/{movie_id}", response_model=Movie)
async def get_movie(movie_id: int, catalog: MovieCatalog = Depends(get_catalog)):
    return await catalog.get_movie(movie_id)


@router.get("/users/{user_id}/watchlist", response_model=list[WatchlistEntry])
async def list_watchlist(
    user_id: int,
    status: Optional[WatchStatus] = None,
    favorite: Optional[bool] = None,
    db_path: Path = Depends(get_db_path),
):
    return await database.get_entries(user_id, status=status, favorite=favorite, db_path=db_path)


@router.post("/users/{user_id}/watchlist", response_model=WatchlistEntry, status_code=201)
async def add_to_watchlist(
    user_id: int,
    entry: WatchlistCreate,
    catalog: MovieCatalog = Depends(get_catalog),
    db_path: Path = Depends(get_db_path),
):
    # Only movies the catalog would show can be tracked.
    await catalog.get_movie(entry.movie_id)
    created = await database.add_entry(user_id, entry, db_path)
    logger.info("User %d added movie %d to watch list", user_id, entry.movie_id)
    return created


@router.get("/users/{user_id}/watchlist/{movie_id}", response_model=WatchlistEntry)
async def get_watchlist_entry(user_id: int, movie_id: int, db_path: Path = Depends(get_db_path)):
    entry = await database.get_entry(user_id, movie_id, db_path)
    if entry is None:
        raise WatchlistEntryNotFound(user_id, movie_id)
    return entry


@router.patch("/users/{user_id}/watchlist/{movie_id}", response_model=WatchlistEntry)
async def update_watchlist_entry(
    user_id: int, movie_id: int, update: WatchlistUpdate, db_path: Path = Depends(get_db_path)
):
    return await database.update_entry(user_id, movie_id, update, db_path)


@router.delete("/users/{user_id}/watchlist/{movie_id}", status_code=204)
async def remove_from_watchlist(user_id: int, movie_id: int, db_path: Path = Depends(get_db_path)):
    await database.remove_entry(user_id, movie_id, db_path)
    return Response(status_code=204)


async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
    return _error_response(exc.status_code, exc.message)


async def _content_policy_error(request: Request, exc: ContentPolicyError) -> JSONResponse:
    return _error_response(404, "error.movie.not_found", reason=exc.reason)


async def _upstream_status_error(request: Request, exc: UpstreamStatusError) -> JSONResponse:
    if exc.status_code == 404:
        return _error_response(404, "error.movie.not_found")
    logger.error("TMDB request failed: %s", exc)
    return _error_response(502, "error.upstream")


async def _transport_error(request: Request, exc: TransportError) -> JSONResponse:
    logger.error("TMDB unreachable: %s", exc)
    return _error_response(503, "error.upstream_unavailable")


async def _catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
    logger.error("TMDB error: %s", exc)
    return _error_response(502, "error.upstream")


async def _watchlist_not_found(request: Request, exc: WatchlistEntryNotFound) -> JSONResponse:
    return _error_response(404, "error.watchlist.not_found")


async def _watchlist_exists(request: Request, exc: WatchlistEntryExists) -> JSONResponse:
    return _error_response(409, "error.watchlist.already_exists")


def create_app(settings: Optional[Settings] = None, catalog: Optional[MovieCatalog] = None) -> FastAPI:
    """Build the API. The catalog is created once per process and shared by all requests."""
    settings = settings or Settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db_path = Path(settings.database_path)
        await database.init_db(app.state.db_path)

        if catalog is not None:
            app.state.catalog = catalog
            yield
            return

        async with httpx.AsyncClient(timeout=settings.tmdb_timeout_seconds) as http:
            client = TMDBClient(http, settings.tmdb_api_key, settings.tmdb_base_url)
            app.state.catalog = TMDBCatalog(
                client,
                settings.curation_policy(),
                ContentFilter(settings.blocked_keywords),
            )
            logger.info("TMDB catalog ready (%s, locale %s)", settings.tmdb_base_url, settings.locale)
            yield

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ApiError, _api_error)
    app.add_exception_handler(ContentPolicyError, _content_policy_error)
    app.add_exception_handler(UpstreamStatusError, _upstream_status_error)
    app.add_exception_handler(TransportError, _transport_error)
    app.add_exception_handler(CatalogError, _catalog_error)
    app.add_exception_handler(WatchlistEntryNotFound, _watchlist_not_found)
    app.add_exception_handler(WatchlistEntryExists, _watchlist_exists)
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:create_app", factory=True, host="127.0.0.1", port=8080)
