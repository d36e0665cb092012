from typing import Optional

from models import LocalizedText, ProviderMovie, Translation


def split_locale(locale: str) -> tuple[str, str]:
    """Split a language tag like ``pt-BR`` into ``("pt", "BR")``."""
    language, _, country = locale.replace("_", "-").partition("-")
    return language.lower(), country.upper()


def find_translation(
    movie: ProviderMovie, target_language: str, target_country: str
) -> Optional[Translation]:
    if movie.translations is None:
        return None
    # First match in provider order wins, even if a later entry is more complete.
    for translation in movie.translations.translations:
        if translation.iso_639_1 == target_language or translation.iso_3166_1 == target_country:
            return translation
    return None


def resolve(movie: ProviderMovie, target_language: str, target_country: str) -> LocalizedText:
    """Pick localized title/overview/tagline, falling back to the base values per field."""
    translation = find_translation(movie, target_language, target_country)
    if translation is None:
        return LocalizedText(title=movie.title, overview=movie.overview, tagline=movie.tagline)

    data = translation.data
    return LocalizedText(
        title=data.title or movie.title,
        overview=data.overview or movie.overview,
        tagline=data.tagline or movie.tagline,
    )
