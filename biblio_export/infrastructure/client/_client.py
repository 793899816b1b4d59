# biblio_export/infrastructure/client/_client.py

"""Read-only GraphQL client for the metadata repository"""

# Standard library imports
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import as_completed
from logging import getLogger
from time import sleep as time_sleep
from typing import Callable
from typing import Iterator
from typing import Sequence

# Third party imports
import httpx
from pydantic import BaseModel
from pydantic import ConfigDict

# Local imports
from biblio_export.core.domain.errors import ExportError
from biblio_export.core.domain.errors import MalformedResponseError
from biblio_export.core.domain.errors import NotFoundError
from biblio_export.core.domain.errors import PoolExhaustedError
from biblio_export.core.domain.errors import UpstreamUnavailableError
from biblio_export.core.domain.work import Publisher
from biblio_export.core.domain.work import Work
from biblio_export.core.types.json import JSONDict
from biblio_export.core.types.json import JSONType
from biblio_export.infrastructure.client._parser import parse_publisher
from biblio_export.infrastructure.client._parser import parse_work
from biblio_export.infrastructure.client._queries import PUBLISHER_QUERY
from biblio_export.infrastructure.client._queries import QueryParameters
from biblio_export.infrastructure.client._queries import WORKS_QUERY
from biblio_export.infrastructure.client._queries import WORK_QUERY
from biblio_export.infrastructure.client._retry import RetryPolicy
from biblio_export.infrastructure.client._retry import TransientFailure
from biblio_export.infrastructure.config._models import ClientConfig

logger = getLogger(__name__)

# GraphQL error messages the repository uses for missing entities
NOT_FOUND_MARKERS = ("not found", "no results", "cannot find", "does not exist")


class FetchResult(BaseModel):
    """Outcome of fetching one work: a snapshot or the error that prevented it"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    work_id: str
    work: Work | None = None
    error: ExportError | None = None

    @property
    def ok(self) -> bool:
        return self.work is not None


class WorkPager:
    """Lazy, restartable iteration over a publisher's catalogue

    ``cursor`` is the offset of the next unread work. A pager created with
    that cursor continues exactly where this one stopped.
    """

    def __init__(
        self,
        client: "MetadataClient",
        publisher_id: str,
        cursor: int = 0,
        page_size: int = 100,
    ) -> None:
        self._client = client
        self.publisher_id = publisher_id
        self.cursor = cursor
        self.page_size = page_size
        self.pages_fetched = 0
        self._buffer: deque[FetchResult] = deque()
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        """No buffered works remain and the last page was short"""
        return self._exhausted and not self._buffer

    def next_page(self) -> list[FetchResult]:
        """Fetch the page starting at the cursor

        Raises:
            ExportError: If the page itself cannot be fetched; the cursor is unchanged
        """
        offset = self.cursor + len(self._buffer)
        results = self._client._fetch_page(self.publisher_id, offset, self.page_size)
        self.pages_fetched += 1
        if len(results) < self.page_size:
            self._exhausted = True
        logger.debug(
            f"Publisher {self.publisher_id}: page {self.pages_fetched} at offset "
            f"{offset} returned {len(results)} works"
        )
        return results

    def drain(self) -> list[FetchResult]:
        """Take the works already fetched, without requesting another page"""
        drained = list(self._buffer)
        self._buffer.clear()
        self.cursor += len(drained)
        return drained

    def __iter__(self) -> Iterator[FetchResult]:
        return self

    def __next__(self) -> FetchResult:
        if not self._buffer:
            if self._exhausted:
                raise StopIteration
            self._buffer.extend(self.next_page())
            if not self._buffer:
                raise StopIteration
        result = self._buffer.popleft()
        self.cursor += 1
        return result


class MetadataClient:
    """Paginated, read-only access to the repository's GraphQL API

    The client is thread-safe; one instance is shared by every worker of a
    request. Transient failures are retried per ``RetryPolicy``.
    """

    __slots__ = ("_config", "_http", "_retry_policy", "_parameters", "_sleep")

    def __init__(
        self,
        config: ClientConfig | None = None,
        parameters: QueryParameters | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time_sleep,
    ) -> None:
        """Initialize the client

        Args:
            config: Client configuration, defaults when None
            parameters: Nested collections to request, all when None
            transport: httpx transport override (used by tests)
            sleep: Backoff wait function
        """
        self._config = config or ClientConfig()
        self._retry_policy = RetryPolicy.from_config(self._config.retry)
        self._parameters = parameters or QueryParameters.with_all()
        self._sleep = sleep
        self._http = httpx.Client(
            timeout=httpx.Timeout(self._config.timeout, pool=self._config.pool_timeout),
            limits=httpx.Limits(
                max_connections=self._config.max_connections,
                max_keepalive_connections=self._config.max_connections,
            ),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MetadataClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def fetch_work(self, work_id: str) -> Work:
        """Fetch one work snapshot

        Raises:
            NotFoundError: If the repository has no such work
            UpstreamUnavailableError: After bounded retries of transient failures
            MalformedResponseError: If the response is not a valid work
        """
        variables: JSONDict = {"workId": work_id, **self._parameters.variables()}
        data = self._execute(WORK_QUERY, variables, entity=("Work", work_id))
        raw = data.get("work")
        if raw is None:
            raise NotFoundError("Work", work_id)
        return parse_work(raw)

    def fetch_publisher(self, publisher_id: str) -> Publisher:
        """Fetch a publisher's identity

        Raises:
            NotFoundError: If the repository has no such publisher
        """
        data = self._execute(
            PUBLISHER_QUERY, {"publisherId": publisher_id}, entity=("Publisher", publisher_id)
        )
        raw = data.get("publisher")
        if raw is None:
            raise NotFoundError("Publisher", publisher_id)
        return parse_publisher(raw)

    def fetch_works_by_publisher(self, publisher_id: str, cursor: int | None = None) -> WorkPager:
        """Lazily enumerate a publisher's works in catalogue order

        Args:
            publisher_id: Publisher whose works to list
            cursor: Restart point from a previous pager, 0 when None

        Returns:
            Pager yielding one FetchResult per work
        """
        return WorkPager(self, publisher_id, cursor or 0, self._config.page_size)

    def fetch_works_by_ids(self, work_ids: Sequence[str]) -> dict[str, FetchResult]:
        """Fetch several works concurrently with independent outcomes

        Returns:
            Mapping in the caller's id order (duplicates collapsed)
        """
        unique_ids = list(dict.fromkeys(work_ids))
        if not unique_ids:
            return {}

        fetched: dict[str, FetchResult] = {}
        max_workers = min(self._config.max_connections, len(unique_ids))
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fetch") as executor:
            future_to_id = {
                executor.submit(self._fetch_result, work_id): work_id for work_id in unique_ids
            }
            for future in as_completed(future_to_id):
                work_id = future_to_id[future]
                fetched[work_id] = future.result()

        return {work_id: fetched[work_id] for work_id in unique_ids}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_result(self, work_id: str) -> FetchResult:
        try:
            return FetchResult(work_id=work_id, work=self.fetch_work(work_id))
        except ExportError as e:
            logger.warning(f"Failed to fetch work {work_id}: {e.message}")
            return FetchResult(work_id=work_id, error=e)

    def _fetch_page(self, publisher_id: str, offset: int, limit: int) -> list[FetchResult]:
        variables: JSONDict = {
            "publishers": [publisher_id],
            "limit": limit,
            "offset": offset,
            **self._parameters.variables(),
        }
        data = self._execute(WORKS_QUERY, variables)
        raw_works = data.get("works")
        if not isinstance(raw_works, list):
            raise MalformedResponseError("Works query did not return a list")

        results = []
        for position, raw in enumerate(raw_works, start=offset):
            work_id = raw.get("workId") if isinstance(raw, dict) else None
            label = work_id if isinstance(work_id, str) else f"offset-{position}"
            try:
                results.append(FetchResult(work_id=label, work=parse_work(raw)))
            except MalformedResponseError as e:
                logger.warning(f"Skipping unparseable work {label}: {e.message}")
                results.append(FetchResult(work_id=label, error=e))
        return results

    def _execute(
        self, query: str, variables: JSONDict, entity: tuple[str, str] | None = None
    ) -> JSONDict:
        """Run a query with retries and return its ``data`` object"""
        state = self._retry_policy.start()
        while True:
            attempt = state.begin_attempt()
            try:
                payload = self._post(query, variables)
                break
            except TransientFailure as failure:
                delay = state.record_failure(failure)
                if delay is None:
                    raise UpstreamUnavailableError(
                        f"Repository unavailable after {attempt} attempts: {failure.reason}"
                    ) from failure
                self._sleep(delay)

        return self._extract_data(payload, entity)

    def _post(self, query: str, variables: JSONDict) -> JSONType:
        """One HTTP attempt"""
        try:
            response = self._http.post(
                self._config.graphql_url, json={"query": query, "variables": variables}
            )
        except httpx.PoolTimeout as e:
            raise PoolExhaustedError(
                f"No connection available within {self._config.pool_timeout}s"
            ) from e
        except httpx.TimeoutException as e:
            raise TransientFailure(f"timeout: {e}") from e
        except httpx.TransportError as e:
            raise TransientFailure(f"network error: {e}") from e

        status = response.status_code
        if status == 429 or status >= 500:
            raise TransientFailure(f"HTTP {status}", _retry_after(response))
        if status >= 400:
            raise UpstreamUnavailableError(f"Repository rejected request: HTTP {status}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response is not JSON: {e}") from e

    @staticmethod
    def _extract_data(payload: JSONType, entity: tuple[str, str] | None) -> JSONDict:
        if not isinstance(payload, dict):
            raise MalformedResponseError("GraphQL response is not an object")

        errors = payload.get("errors")
        data = payload.get("data")
        if errors:
            if isinstance(errors, list):
                messages = [str(e.get("message", "")) for e in errors if isinstance(e, dict)]
            else:
                messages = [str(errors)]
            if entity and any(
                marker in message.lower() for message in messages for marker in NOT_FOUND_MARKERS
            ):
                raise NotFoundError(*entity)
            if not isinstance(data, dict) or all(value is None for value in data.values()):
                raise MalformedResponseError(f"GraphQL error: {'; '.join(messages)}")
            logger.warning(f"GraphQL returned partial data with errors: {'; '.join(messages)}")

        if not isinstance(data, dict):
            raise MalformedResponseError("GraphQL response has no data object")
        return data


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None
