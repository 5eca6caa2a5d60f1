# backend/providers.py
"""
Third-party content search.

Each client forwards the query to its provider and hands back the JSON body
as-is. The mobile client knows each provider's shape, so nothing is remapped
here.
"""
import logging

import requests

log = logging.getLogger(__name__)


class ProviderError(Exception):
    pass


class ProviderNotConfigured(ProviderError):
    pass


class ProviderClient:
    """Base client: one GET per call, non-2xx becomes ProviderError."""

    NAME = "provider"
    BASE_URL = ""

    def __init__(self, timeout=10):
        self.timeout = timeout

    def get(self, endpoint, params=None):
        try:
            response = requests.get(
                f"{self.BASE_URL}{endpoint}",
                params=params or {},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(f"{self.NAME} request failed: {e}") from e

        if not response.ok:
            raise ProviderError(f"{self.NAME} API responded with status: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.NAME} returned invalid JSON") from e


class TMDbClient(ProviderClient):
    """Films and series from The Movie Database."""

    NAME = "TMDB"
    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(self, api_key, language="pt-BR", timeout=10):
        super().__init__(timeout)
        self.api_key = api_key
        self.language = language

    def _params(self, **extra):
        if not self.api_key:
            raise ProviderNotConfigured("TMDB API key not configured")
        return {"api_key": self.api_key, "language": self.language, **extra}

    def trending(self):
        return self.get("/trending/all/week", self._params())

    def search(self, query):
        return self.get("/search/multi", self._params(query=query))


class GoogleBooksClient(ProviderClient):
    NAME = "Google Books"
    BASE_URL = "https://www.googleapis.com/books/v1"

    def __init__(self, api_key=None, timeout=10):
        super().__init__(timeout)
        self.api_key = api_key

    def search(self, query):
        params = {"q": query, "maxResults": 20}
        # the volumes endpoint also answers anonymously, with a lower quota
        if self.api_key:
            params["key"] = self.api_key
        return self.get("/volumes", params)


class DeezerClient(ProviderClient):
    NAME = "Deezer"
    BASE_URL = "https://api.deezer.com"

    def search(self, query):
        return self.get("/search", {"q": query})


class JikanClient(ProviderClient):
    """Anime and manga from MyAnimeList via Jikan v4."""

    NAME = "Jikan"
    BASE_URL = "https://api.jikan.moe/v4"

    def search_anime(self, query):
        return self.get("/anime", {"q": query, "limit": 20})

    def search_manga(self, query):
        return self.get("/manga", {"q": query, "limit": 20})


class Providers:
    """Holds one client per provider, built from the app config."""

    def __init__(self, config):
        timeout = config.get("PROVIDER_TIMEOUT", 10)
        self.tmdb = TMDbClient(
            config.get("TMDB_API_KEY"),
            language=config.get("TMDB_LANGUAGE", "pt-BR"),
            timeout=timeout,
        )
        self.books = GoogleBooksClient(config.get("GOOGLE_BOOKS_API_KEY"), timeout=timeout)
        self.music = DeezerClient(timeout=timeout)
        self.jikan = JikanClient(timeout=timeout)
        log.debug("Content providers ready (TMDB key set: %s)", bool(self.tmdb.api_key))


def init_app(app):
    app.extensions["providers"] = Providers(app.config)
