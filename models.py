from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

T = TypeVar("T")


class ProviderGenre(BaseModel):
    id: int
    name: str = ""


class TranslationData(BaseModel):
    title: str = ""
    overview: str = ""
    tagline: str = ""

    @field_validator("title", "overview", "tagline", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Translation(BaseModel):
    iso_3166_1: str = ""  # country
    iso_639_1: str = ""  # language
    name: str = ""
    english_name: str = ""
    data: TranslationData = Field(default_factory=TranslationData)


class TranslationSet(BaseModel):
    translations: list[Translation] = Field(default_factory=list)


class ProviderMovie(BaseModel):
    """A movie as TMDB returns it, from list results or /movie/{id}."""

    id: int
    title: str = ""
    original_title: str = ""
    overview: str = ""
    tagline: str = ""
    release_date: str = ""
    runtime: int = 0  # minutes, 0 = unknown
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    adult: bool = False
    status: str = ""
    original_language: str = ""
    homepage: str = ""
    imdb_id: Optional[str] = None
    budget: int = 0
    revenue: int = 0
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    origin_country: list[str] = Field(default_factory=list)
    genres: list[ProviderGenre] = Field(default_factory=list)
    production_companies: list[Any] = Field(default_factory=list)
    production_countries: list[Any] = Field(default_factory=list)
    spoken_languages: list[Any] = Field(default_factory=list)
    translations: Optional[TranslationSet] = None

    @field_validator(
        "title",
        "original_title",
        "overview",
        "tagline",
        "release_date",
        "status",
        "original_language",
        "homepage",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator(
        "runtime", "vote_count", "vote_average", "popularity", "budget", "revenue", mode="before"
    )
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator(
        "origin_country",
        "genres",
        "production_companies",
        "production_countries",
        "spoken_languages",
        mode="before",
    )
    @classmethod
    def _null_as_list(cls, value: Any) -> Any:
        return [] if value is None else value


class ProviderPage(BaseModel):
    results: list[ProviderMovie] = Field(default_factory=list)
    page: int = 1
    total_pages: int = 0
    total_results: int = 0


class LocalizedText(BaseModel):
    title: str
    overview: str
    tagline: str


class Movie(BaseModel):
    """Normalized movie returned to API consumers."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    poster_path: str = ""
    background_path: str = ""
    year: str = ""
    description: str = ""
    genre: tuple[str, ...] = Field(default_factory=tuple)
    duration: str = ""
    tagline: str = ""
    vote_average: float = 0.0
    vote_count: int = 0
    popularity: float = 0.0
    adult: bool = False
    status: str = ""
    release_date: str = ""
    original_title: str = ""
    original_language: str = ""
    homepage: str = ""
    imdb_id: Optional[str] = None
    budget: int = 0
    revenue: int = 0
    runtime: int = 0
    origin_country: tuple[str, ...] = Field(default_factory=tuple)
    production_companies: tuple[Any, ...] = Field(default_factory=tuple)
    production_countries: tuple[Any, ...] = Field(default_factory=tuple)
    spoken_languages: tuple[Any, ...] = Field(default_factory=tuple)


class Page(BaseModel, Generic[T]):
    results: list[T] = Field(default_factory=list)
    page: int
    total_pages: int
    total_results: int


class WatchStatus(str, Enum):
    UNWATCHED = "unwatched"
    WATCHING = "watching"
    PLAN_TO_WATCH = "plan to watch"
    WATCHED = "watched"


class WatchlistCreate(BaseModel):
    movie_id: int
    status: WatchStatus = WatchStatus.PLAN_TO_WATCH
    favorite: bool = False
    comments: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=10)


class WatchlistUpdate(BaseModel):
    """Partial update of a watch-list entry.

    A field left out of the payload is not touched. A field sent as null is
    cleared, which is only allowed for ``comments`` and ``rating``.
    """

    status: Optional[WatchStatus] = None
    favorite: Optional[bool] = None
    comments: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=10)

    @model_validator(mode="after")
    def _required_columns_not_cleared(self) -> "WatchlistUpdate":
        for name in ("status", "favorite"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be cleared")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class WatchlistEntry(BaseModel):
    id: Optional[int] = None
    user_id: int
    movie_id: int
    status: WatchStatus = WatchStatus.PLAN_TO_WATCH
    favorite: bool = False
    comments: Optional[str] = None
    rating: Optional[int] = None
    created_at: Optional[str] = None  # ISO timestamp string
    updated_at: Optional[str] = None
