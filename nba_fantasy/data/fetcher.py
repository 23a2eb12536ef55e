"""HTML table fetcher with rate limiting and retry logic.

This module retrieves Basketball-Reference pages and turns one of their
``<table>`` elements into a DataFrame of strings. Tables are addressed by
their 0-based position among the page's tables in document order, which is
brittle, so callers pass the columns they expect and a table that lacks them
is rejected instead of being silently misread.

Example:
    >>> from nba_fantasy.data.fetcher import HtmlTableClient
    >>> client = HtmlTableClient(delay=5.0)
    >>> table = client.fetch_table(
    ...     "https://www.basketball-reference.com/leagues/NBA_2019_per_game.html",
    ...     table_index=0,
    ...     expected_columns=["Player", "Pos", "MP"],
    ... )
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Iterable

import pandas as pd
import requests
from bs4 import BeautifulSoup
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import RequestException, Timeout

from nba_fantasy.config import get_settings
from nba_fantasy.exceptions import FetchError, ParseError

if TYPE_CHECKING:
    from bs4 import Tag

    from nba_fantasy.types import HttpSession

logger = logging.getLogger(__name__)


# =============================================================================
# Request Constants
# =============================================================================

RETRIABLE_STATUS_CODES = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


# =============================================================================
# Table Parsing
# =============================================================================


def find_tables(soup: BeautifulSoup) -> list[Tag]:
    """Return every ``<table>`` element of a document in document order.

    Tables that the site ships inside HTML comments are not part of the
    rendered document and are not counted.
    """
    return soup.find_all("table")


def _cell_span(cell: Tag) -> int:
    try:
        return max(int(cell.get("colspan", 1)), 1)
    except (TypeError, ValueError):
        return 1


def _row_values(row: Tag) -> list[str]:
    """Text of a row's cells, repeating spanned cells over each column."""
    values: list[str] = []
    for cell in row.find_all(["th", "td"], recursive=False):
        values.extend([cell.get_text(strip=True)] * _cell_span(cell))
    return values


def _unique_columns(labels: Iterable[str]) -> list[str]:
    """Make header labels usable as DataFrame columns.

    Blank labels become ``col_<position>``; repeated labels get a ``.<n>``
    suffix, the same convention pandas uses when reading files.
    """
    columns: list[str] = []
    seen: dict[str, int] = {}
    for position, label in enumerate(labels):
        name = label or f"col_{position}"
        if name in seen:
            seen[name] += 1
            name = f"{name}.{seen[name]}"
        else:
            seen[name] = 0
        columns.append(name)
    return columns


def header_row(table: Tag) -> Tag | None:
    """Row that names the columns: the last ``<thead>`` row, else the first row."""
    thead = table.find("thead")
    if thead is not None:
        rows = thead.find_all("tr")
        if rows:
            return rows[-1]
    return table.find("tr")


def body_rows(table: Tag) -> list[Tag]:
    """Data rows of a table, excluding header and footer sections.

    Header rows repeated inside the body are kept; callers drop them with
    :func:`drop_header_rows` once the frame is built.
    """
    header = header_row(table)
    rows = []
    for row in table.find_all("tr"):
        if row is header or row.find_parent(["thead", "tfoot"]) is not None:
            continue
        if row.find(["th", "td"]) is None:
            continue
        rows.append(row)
    return rows


def table_to_frame(table: Tag) -> pd.DataFrame:
    """Convert a table element into a DataFrame where every cell is a string.

    Short rows are padded with empty strings and long rows truncated to the
    header width.

    Raises:
        ParseError: If the table has no header or no data rows.
    """
    header = header_row(table)
    if header is None:
        raise ParseError("Table has no header row")

    columns = _unique_columns(_row_values(header))
    width = len(columns)

    records = []
    for row in body_rows(table):
        values = _row_values(row)
        if len(values) > width:
            logger.debug(f"Truncating row of {len(values)} cells to {width}")
        values = (values + [""] * width)[:width]
        records.append(values)

    if not records:
        raise ParseError("Table has zero data rows")

    return pd.DataFrame(records, columns=columns, dtype=object)


def extract_table(
    soup: BeautifulSoup,
    table_index: int,
    expected_columns: Iterable[str] | None = None,
    source: str = "document",
) -> pd.DataFrame:
    """Select the table at ``table_index`` and convert it to a DataFrame.

    Args:
        soup: Parsed document.
        table_index: 0-based position among the document's tables.
        expected_columns: Columns the table must have.
        source: Label used in error messages (usually the URL).

    Returns:
        DataFrame of strings, one column per header cell.

    Raises:
        ParseError: If the table is absent, empty, or lacks expected columns.
    """
    return validate_columns(
        table_to_frame(select_table(soup, table_index, source)),
        expected_columns,
        source,
    )


def select_table(soup: BeautifulSoup, table_index: int, source: str = "document") -> Tag:
    """Return the table element at ``table_index``.

    Raises:
        ParseError: If the document has fewer than ``table_index + 1`` tables.
    """
    tables = find_tables(soup)
    if table_index < 0 or table_index >= len(tables):
        raise ParseError(
            f"Table {table_index} requested but {source} has {len(tables)} tables"
        )
    return tables[table_index]


def validate_columns(
    frame: pd.DataFrame,
    expected_columns: Iterable[str] | None,
    source: str = "document",
) -> pd.DataFrame:
    """Fail fast when a table does not have the columns it should.

    Raises:
        ParseError: Listing the missing columns.
    """
    if expected_columns:
        missing = [col for col in expected_columns if col not in frame.columns]
        if missing:
            raise ParseError(
                f"Table in {source} is missing expected columns {missing}; "
                f"found {list(frame.columns)}"
            )
    return frame


def drop_header_rows(frame: pd.DataFrame) -> pd.DataFrame:
    """Remove header rows that the site repeats every few rows inside a table.

    A row is a repeated header when its first cell equals the first column name.
    """
    if frame.empty:
        return frame
    first = frame.columns[0]
    return frame.loc[frame[first] != first].reset_index(drop=True)


# =============================================================================
# HTML Table Client
# =============================================================================


class HtmlTableClient:
    """HTTP client that fetches pages and extracts tables from them.

    Provides:
    - Minimum interval between the starts of successive requests
    - Bounded timeout per request
    - Retry with exponential backoff on transient failures
    - Consistent string-only DataFrame output

    There is no caching: every call issues a new request.

    Attributes:
        delay: Minimum seconds between requests.
        max_retries: Retry attempts for transient failures.
        timeout: Request timeout in seconds.
        backoff: Base retry backoff in seconds.
        request_count: Number of HTTP requests issued so far.
    """

    def __init__(
        self,
        delay: float | None = None,
        max_retries: int | None = None,
        timeout: float | None = None,
        backoff: float | None = None,
        session: HttpSession | None = None,
    ) -> None:
        """Initialize client.

        Args:
            delay: Seconds between requests (default from settings).
            max_retries: Maximum retry attempts (default from settings).
            timeout: Request timeout in seconds (default from settings).
            backoff: Base retry backoff in seconds (default from settings).
            session: HTTP session, a new ``requests.Session`` if omitted.
        """
        settings = get_settings()
        self.delay = delay if delay is not None else settings.request_delay
        self.max_retries = (
            max_retries if max_retries is not None else settings.max_retries
        )
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.backoff = backoff if backoff is not None else settings.retry_backoff
        self.session = session if session is not None else requests.Session()
        self.request_count = 0
        self._last_request_time: float | None = None

        logger.debug(
            f"HtmlTableClient initialized: delay={self.delay}s, "
            f"max_retries={self.max_retries}, timeout={self.timeout}s"
        )

    def _apply_rate_limit(self) -> None:
        """Sleep until ``delay`` has passed since the previous request started."""
        if self._last_request_time is not None:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.delay:
                sleep_time = self.delay - elapsed
                logger.debug(f"Rate limiting: sleeping {sleep_time:.2f}s")
                time.sleep(sleep_time)
        self._last_request_time = time.monotonic()

    def _calculate_backoff(self, attempt: int) -> float:
        """Backoff before retry ``attempt`` (0-indexed): base, 2x base, 4x base..."""
        return self.backoff * (2**attempt)

    def _get_with_retry(self, url: str) -> bytes:
        """GET ``url`` and return the body, retrying transient failures.

        Raises:
            FetchError: On a non-retriable status or once retries run out.
        """
        attempts = self.max_retries + 1
        last_error: str = "no attempt made"
        last_status: int | None = None

        for attempt in range(attempts):
            self._apply_rate_limit()
            self.request_count += 1
            logger.debug(f"GET {url} (attempt {attempt + 1}/{attempts})")

            try:
                response = self.session.get(url, headers=HEADERS, timeout=self.timeout)
            except (Timeout, RequestsConnectionError) as e:
                last_error = f"{type(e).__name__}: {e}"
                last_status = None
            except RequestException as e:
                raise FetchError(f"Request failed for {url}: {e}", url=url) from e
            else:
                status = response.status_code
                if 200 <= status < 300:
                    return response.content
                if status not in RETRIABLE_STATUS_CODES:
                    raise FetchError(f"HTTP {status} for {url}", url=url, status_code=status)
                last_error = f"HTTP {status}"
                last_status = status

            if attempt < self.max_retries:
                backoff = self._calculate_backoff(attempt)
                logger.warning(
                    f"{last_error} for {url} (attempt {attempt + 1}/{attempts}). "
                    f"Retrying in {backoff:.0f}s..."
                )
                time.sleep(backoff)

        logger.error(f"{last_error} for {url}. No retries remaining.")
        raise FetchError(
            f"Request failed after {attempts} attempts for {url}: {last_error}",
            url=url,
            status_code=last_status,
        )

    def fetch_document(self, url: str) -> BeautifulSoup:
        """Fetch ``url`` and parse it as HTML.

        Raises:
            FetchError: If the request fails.
        """
        content = self._get_with_retry(url)
        return BeautifulSoup(content, "html.parser")

    def fetch_table(
        self,
        url: str,
        table_index: int,
        expected_columns: Iterable[str] | None = None,
    ) -> pd.DataFrame:
        """Fetch a page and return the table at ``table_index`` as strings.

        Args:
            url: Page URL.
            table_index: 0-based position among the page's tables.
            expected_columns: Columns the table must have.

        Returns:
            DataFrame with one column per header cell, all values strings.

        Raises:
            FetchError: If the request fails.
            ParseError: If the table is missing, empty, or lacks expected columns.
        """
        soup = self.fetch_document(url)
        return extract_table(soup, table_index, expected_columns, source=url)
