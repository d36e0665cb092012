from pydantic_settings import BaseSettings, SettingsConfigDict

from content_filter import DEFAULT_BLOCKED_KEYWORDS
from query import CurationPolicy


class Settings(BaseSettings):
    tmdb_api_key: str
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_timeout_seconds: float = 30.0

    locale: str = "pt-BR"
    region: str = "BR"
    certification_country: str = "BR"
    certification_max: str = "12"
    release_types: list[int] = [2, 3]
    excluded_genre_ids: list[int] = [27, 10749, 10751, 99, 10769]
    min_vote_count: int = 50
    search_min_vote_count: int = 10
    min_vote_average: float = 3.0
    sort_by: str = "popularity.desc"
    blocked_keywords: list[str] = list(DEFAULT_BLOCKED_KEYWORDS)

    database_path: str = "data/movietracker.db"
    cors_allow_origins: list[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    def curation_policy(self) -> CurationPolicy:
        return CurationPolicy(
            locale=self.locale,
            region=self.region,
            certification_country=self.certification_country,
            certification_max=self.certification_max,
            release_types=tuple(self.release_types),
            excluded_genre_ids=tuple(self.excluded_genre_ids),
            min_vote_count=self.min_vote_count,
            search_min_vote_count=self.search_min_vote_count,
            min_vote_average=self.min_vote_average,
            sort_by=self.sort_by,
        )
