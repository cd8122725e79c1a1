"""Open Library search client.

Talks to ``GET /search.json`` over HTTP using **httpx**.  Only documents that
carry a cover edition key are returned: that key is the book id clients use
when adding the book to their library.
"""

import logging
from typing import Any, Optional

import httpx

from readshelf.domain.entities import BookSource, SearchedBook
from readshelf.domain.errors import CatalogUnavailableError, InvalidArgumentError
from readshelf.domain.repositories import IBookCatalog

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ",".join(
    [
        "author_key",
        "author_name",
        "cover_edition_key",
        "isbn",
        "title",
        "ratings_average",
        "ratings_count",
        "publish_year",
    ]
)
RESULT_LIMIT = 15
DEFAULT_LANGUAGE = "en"
COVER_URL = "https://covers.openlibrary.org/b/olid/{olid}-L.jpg"


class OpenLibraryCatalog(IBookCatalog):
    """Book search backed by the public Open Library API.

    Constructor args:
        base_url:    API root (default ``https://openlibrary.org``).
        user_agent:  sent on every request, as Open Library asks.
        timeout:     per-request timeout in seconds.
        transport:   optional httpx transport, used by tests.
    """

    def __init__(
        self,
        base_url: str = "https://openlibrary.org",
        user_agent: str = "ReadShelf/1.0",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.transport = transport

    async def search_books(
        self,
        query: str,
        title: Optional[str] = None,
        author: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> list[SearchedBook]:
        if not query or not query.strip():
            raise InvalidArgumentError("query is required")

        params: dict[str, Any] = {
            "q": query,
            "fields": SEARCH_FIELDS,
            "limit": RESULT_LIMIT,
            "lang": DEFAULT_LANGUAGE,
        }
        for key, value in (("title", title), ("author", author), ("subject", subject)):
            if value:
                params[key] = value

        logger.info("OpenLibrary: searching %r", query)
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                resp = await client.get("/search.json", params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("OpenLibrary returned %s for %r", exc.response.status_code, query)
            raise CatalogUnavailableError(
                f"book catalog returned status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("OpenLibrary search failed (%s)", exc)
            raise CatalogUnavailableError() from exc

        return [book for book in map(self._to_entity, data.get("docs", [])) if book]

    @staticmethod
    def _to_entity(doc: dict) -> Optional[SearchedBook]:
        olid = doc.get("cover_edition_key")
        if not olid:
            return None
        return SearchedBook(
            book_id=olid,
            title=doc.get("title", ""),
            author_name=_first(doc.get("author_name"), ""),
            author_key=_first(doc.get("author_key"), ""),
            cover_image=COVER_URL.format(olid=olid),
            isbn=_first(doc.get("isbn"), ""),
            rating_average=float(doc.get("ratings_average") or 0.0),
            rating_count=int(doc.get("ratings_count") or 0),
            publish_year=int(_first(doc.get("publish_year"), 0)),
            source=BookSource.OPEN_LIBRARY,
        )


def _first(values: Optional[list], default):
    return values[0] if values else default
