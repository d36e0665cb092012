import httpx
import pytest
import respx

from errors import (
    AuthenticationError,
    ContentPolicyError,
    DecodeError,
    TransportError,
    UpstreamStatusError,
)
from tmdb import TMDB_BASE, TMDBCatalog, TMDBClient

TMDB_MOVIE_DETAILS_RESPONSE = {
    "id": 872585,
    "title": "Oppenheimer",
    "original_title": "Oppenheimer",
    "overview": "The story of J. Robert Oppenheimer.",
    "tagline": "The world forever changes.",
    "release_date": "2023-07-19",
    "runtime": 181,
    "vote_average": 8.1,
    "vote_count": 9500,
    "adult": False,
    "poster_path": "/oppenheimer.jpg",
    "backdrop_path": None,
    "genres": [{"id": 18, "name": "Drama"}, {"id": 36, "name": "History"}],
    "production_companies": [{"id": 9996, "name": "Syncopy"}],
    "translations": {
        "translations": [
            {
                "iso_3166_1": "BR",
                "iso_639_1": "pt",
                "name": "Português",
                "english_name": "Portuguese",
                "data": {"title": "Oppenheimer", "overview": "A história de Oppenheimer.", "tagline": ""},
            }
        ]
    },
}


def _list_movie(movie_id: int, title: str, adult: bool = False) -> dict:
    return {
        "id": movie_id,
        "title": title,
        "original_title": title,
        "release_date": "2020-01-01",
        "vote_average": 7.0,
        "vote_count": 500,
        "adult": adult,
        "genre_ids": [18],
        "poster_path": f"/{movie_id}.jpg",
    }


TMDB_DISCOVER_RESPONSE = {
    "page": 1,
    "total_pages": 40,
    "total_results": 800,
    "results": [
        _list_movie(1, "Dune"),
        _list_movie(2, "Some Film", adult=True),
        _list_movie(3, "Arrival"),
        _list_movie(4, "Another Film", adult=True),
        _list_movie(5, "Heat"),
    ],
}


def _catalog(http: httpx.AsyncClient) -> TMDBCatalog:
    return TMDBCatalog(TMDBClient(http, "test-token"))


@respx.mock
async def test_fetch_sends_bearer_token():
    route = respx.get(f"{TMDB_BASE}/movie/872585").mock(
        return_value=httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE)
    )
    async with httpx.AsyncClient() as http:
        response = await TMDBClient(http, "test-token").fetch("GET", "/movie/872585")
    assert response.status_code == 200
    assert route.calls[0].request.headers["Authorization"] == "Bearer test-token"


@respx.mock
async def test_fetch_reauthenticates_once_and_retries_after_401():
    movie_route = respx.get(f"{TMDB_BASE}/movie/872585").mock(
        side_effect=[
            httpx.Response(401, json={"status_code": 7}),
            httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE),
        ]
    )
    auth_route = respx.get(f"{TMDB_BASE}/authentication").mock(
        return_value=httpx.Response(200, json={"success": True})
    )
    async with httpx.AsyncClient() as http:
        movie = await _catalog(http).get_movie(872585)

    assert movie.id == 872585
    assert movie_route.call_count == 2
    assert auth_route.call_count == 1
    assert respx.calls.call_count == 3


@respx.mock
async def test_fetch_retries_even_when_reauthentication_fails():
    movie_route = respx.get(f"{TMDB_BASE}/movie/872585").mock(
        side_effect=[
            httpx.Response(401),
            httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE),
        ]
    )
    respx.get(f"{TMDB_BASE}/authentication").mock(
        return_value=httpx.Response(200, json={"success": False})
    )
    async with httpx.AsyncClient() as http:
        movie = await _catalog(http).get_movie(872585)

    assert movie.title == "Oppenheimer"
    assert movie_route.call_count == 2


@respx.mock
async def test_second_401_is_surfaced_without_third_attempt():
    movie_route = respx.get(f"{TMDB_BASE}/movie/872585").mock(return_value=httpx.Response(401))
    respx.get(f"{TMDB_BASE}/authentication").mock(return_value=httpx.Response(401))
    async with httpx.AsyncClient() as http:
        with pytest.raises(UpstreamStatusError) as excinfo:
            await TMDBClient(http, "expired").fetch("GET", "/movie/872585")

    assert excinfo.value.status_code == 401
    assert movie_route.call_count == 2
    assert respx.calls.call_count == 3


@respx.mock
async def test_non_401_error_is_not_retried():
    route = respx.get(f"{TMDB_BASE}/movie/1").mock(return_value=httpx.Response(404))
    async with httpx.AsyncClient() as http:
        with pytest.raises(UpstreamStatusError) as excinfo:
            await TMDBClient(http, "test-token").fetch("GET", "/movie/1")

    assert excinfo.value.status_code == 404
    assert route.call_count == 1
    assert respx.calls.call_count == 1


@respx.mock
async def test_transport_error_propagates_without_retry():
    route = respx.get(f"{TMDB_BASE}/discover/movie").mock(side_effect=httpx.ConnectError)
    async with httpx.AsyncClient() as http:
        with pytest.raises(TransportError):
            await _catalog(http).discover_movies(1)
    assert route.call_count == 1


@respx.mock
async def test_discover_drops_adult_movies_and_recounts_results():
    respx.get(f"{TMDB_BASE}/discover/movie").mock(
        return_value=httpx.Response(200, json=TMDB_DISCOVER_RESPONSE)
    )
    async with httpx.AsyncClient() as http:
        page = await _catalog(http).discover_movies(1)

    assert [m.id for m in page.results] == [1, 3, 5]
    assert page.total_results == 3
    assert page.total_pages == 40
    assert page.page == 1


@respx.mock
async def test_discover_sends_curation_filters():
    route = respx.get(f"{TMDB_BASE}/discover/movie").mock(
        return_value=httpx.Response(200, json={"page": 2, "total_pages": 2, "results": []})
    )
    async with httpx.AsyncClient() as http:
        page = await _catalog(http).discover_movies(2)

    params = route.calls[0].request.url.params
    assert params["page"] == "2"
    assert params["include_adult"] == "false"
    assert params["language"] == "pt-BR"
    assert params["with_release_type"] == "2|3"
    assert params["without_genres"] == "27,10749,10751,99,10769"
    assert page.results == []
    assert page.total_results == 0


@respx.mock
async def test_search_uses_query_and_relaxed_vote_count():
    route = respx.get(f"{TMDB_BASE}/search/movie").mock(
        return_value=httpx.Response(
            200,
            json={"page": 1, "total_pages": 1, "total_results": 1, "results": [_list_movie(3, "Arrival")]},
        )
    )
    async with httpx.AsyncClient() as http:
        page = await _catalog(http).search_movies("arrival")

    params = route.calls[0].request.url.params
    assert params["query"] == "arrival"
    assert params["vote_count.gte"] == "10"
    assert page.results[0].title == "Arrival"
    assert page.results[0].year == "2020"


@respx.mock
async def test_get_movie_localizes_and_normalizes():
    route = respx.get(f"{TMDB_BASE}/movie/872585").mock(
        return_value=httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE)
    )
    async with httpx.AsyncClient() as http:
        movie = await _catalog(http).get_movie(872585)

    params = route.calls[0].request.url.params
    assert params["append_to_response"] == "translations"
    assert "include_adult" not in params
    assert movie.description == "A história de Oppenheimer."
    assert movie.tagline == "The world forever changes."
    assert movie.year == "2023"
    assert movie.duration == "181"
    assert movie.genre == ("Drama", "History")
    assert movie.background_path == ""
    assert movie.production_companies == ({"id": 9996, "name": "Syncopy"},)


@respx.mock
async def test_get_movie_rejects_inadmissible_movie():
    respx.get(f"{TMDB_BASE}/movie/42").mock(
        return_value=httpx.Response(200, json={**TMDB_MOVIE_DETAILS_RESPONSE, "id": 42, "adult": True})
    )
    async with httpx.AsyncClient() as http:
        with pytest.raises(ContentPolicyError) as excinfo:
            await _catalog(http).get_movie(42)
    assert excinfo.value.reason == "adult content"


@respx.mock
async def test_malformed_body_raises_decode_error():
    respx.get(f"{TMDB_BASE}/discover/movie").mock(
        return_value=httpx.Response(200, text="<html>maintenance</html>")
    )
    async with httpx.AsyncClient() as http:
        with pytest.raises(DecodeError):
            await _catalog(http).discover_movies(1)


@respx.mock
async def test_wrong_shape_raises_decode_error():
    respx.get(f"{TMDB_BASE}/movie/7").mock(return_value=httpx.Response(200, json={"results": []}))
    async with httpx.AsyncClient() as http:
        with pytest.raises(DecodeError):
            await _catalog(http).get_movie(7)


@respx.mock
async def test_transport_error_during_authentication_check_is_not_retried():
    movie_route = respx.get(f"{TMDB_BASE}/movie/872585").mock(return_value=httpx.Response(401))
    auth_route = respx.get(f"{TMDB_BASE}/authentication").mock(side_effect=httpx.ConnectError)
    async with httpx.AsyncClient() as http:
        with pytest.raises(TransportError):
            await TMDBClient(http, "test-token").fetch("GET", "/movie/872585")

    assert movie_route.call_count == 1
    assert auth_route.call_count == 1
    assert respx.calls.call_count == 2


@respx.mock
async def test_authentication_check_rejects_non_json_body():
    respx.get(f"{TMDB_BASE}/authentication").mock(return_value=httpx.Response(200, text="nope"))
    async with httpx.AsyncClient() as http:
        with pytest.raises(AuthenticationError) as excinfo:
            await TMDBClient(http, "test-token").check_authentication()
    assert excinfo.value.status_code == 200


@respx.mock
async def test_fetch_retries_after_non_json_authentication_body():
    movie_route = respx.get(f"{TMDB_BASE}/movie/872585").mock(
        side_effect=[
            httpx.Response(401),
            httpx.Response(200, json=TMDB_MOVIE_DETAILS_RESPONSE),
        ]
    )
    respx.get(f"{TMDB_BASE}/authentication").mock(return_value=httpx.Response(200, text="nope"))
    async with httpx.AsyncClient() as http:
        response = await TMDBClient(http, "test-token").fetch("GET", "/movie/872585")

    assert response.status_code == 200
    assert movie_route.call_count == 2


@respx.mock
async def test_server_error_on_retry_is_surfaced():
    movie_route = respx.get(f"{TMDB_BASE}/movie/872585").mock(
        side_effect=[httpx.Response(401), httpx.Response(500, text="internal error")]
    )
    respx.get(f"{TMDB_BASE}/authentication").mock(return_value=httpx.Response(200, text="nope"))
    async with httpx.AsyncClient() as http:
        with pytest.raises(UpstreamStatusError) as excinfo:
            await TMDBClient(http, "test-token").fetch("GET", "/movie/872585")

    assert excinfo.value.status_code == 500
    assert excinfo.value.body_snippet == "internal error"
    assert movie_route.call_count == 2
    assert respx.calls.call_count == 3


@respx.mock
async def test_search_drops_inadmissible_movies_and_recounts_results():
    low_rated = {**_list_movie(7, "Disaster Movie"), "vote_count": 150, "vote_average": 2.5}
    respx.get(f"{TMDB_BASE}/search/movie").mock(
        return_value=httpx.Response(
            200,
            json={
                "page": 1,
                "total_pages": 3,
                "total_results": 55,
                "results": [_list_movie(3, "Arrival"), low_rated, _list_movie(8, "XXX Adult Feature")],
            },
        )
    )
    async with httpx.AsyncClient() as http:
        page = await _catalog(http).search_movies("movie")

    assert [m.id for m in page.results] == [3]
    assert page.total_results == 1
    assert page.total_pages == 3
