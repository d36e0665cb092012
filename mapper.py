from typing import Sequence

from models import LocalizedText, Movie, Page, ProviderMovie, ProviderPage


def release_year(release_date: str) -> str:
    return release_date[:4] if len(release_date) >= 4 else ""


def duration(runtime: int) -> str:
    return str(runtime) if runtime > 0 else ""


def normalize(movie: ProviderMovie, text: LocalizedText) -> Movie:
    """Map a provider movie plus its resolved text onto the API model."""
    return Movie(
        id=movie.id,
        title=text.title,
        poster_path=movie.poster_path or "",
        background_path=movie.backdrop_path or "",
        year=release_year(movie.release_date),
        description=text.overview,
        genre=tuple(g.name for g in movie.genres),
        duration=duration(movie.runtime),
        tagline=text.tagline,
        vote_average=movie.vote_average,
        vote_count=movie.vote_count,
        popularity=movie.popularity,
        adult=movie.adult,
        status=movie.status,
        release_date=movie.release_date,
        original_title=movie.original_title,
        original_language=movie.original_language,
        homepage=movie.homepage,
        imdb_id=movie.imdb_id,
        budget=movie.budget,
        revenue=movie.revenue,
        runtime=movie.runtime,
        origin_country=tuple(movie.origin_country),
        production_companies=tuple(movie.production_companies),
        production_countries=tuple(movie.production_countries),
        spoken_languages=tuple(movie.spoken_languages),
    )


def wrap_page(provider_page: ProviderPage, results: Sequence[Movie]) -> Page[Movie]:
    # total_pages is the provider's figure and may overstate what survives filtering.
    return Page[Movie](
        results=list(results),
        page=provider_page.page,
        total_pages=provider_page.total_pages,
        total_results=len(results),
    )
