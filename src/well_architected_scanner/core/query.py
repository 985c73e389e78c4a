"""
Query client for AWS Config advanced queries

Handles pagination, throttling retries with exponential backoff and a
process-local, time-boxed result cache keyed by (scope, query fingerprint).
"""

import copy
import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError, ConnectionError as BotoConnectionError

from .config import DEFAULT_BACKOFF_BASE, DEFAULT_CACHE_TTL, DEFAULT_MAX_RETRIES
from .errors import QueryError

logger = logging.getLogger(__name__)

THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "RequestThrottled",
    "RequestThrottledException",
    "SlowDown",
    "ServiceUnavailable",
    "InternalFailure",
}
THROTTLING_TEXT = ("throttl", "rate exceeded", "too many requests")
PAGE_LIMIT = 100


def fingerprint(query: str) -> str:
    """Deterministic hash of a query's text, insensitive to whitespace layout"""
    normalized = " ".join(query.split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def is_transient(error: BaseException) -> bool:
    """Whether a failed call is worth retrying"""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
        if code in THROTTLING_CODES or status == 429 or status >= 500:
            return True
    elif isinstance(error, BotoConnectionError):
        return True
    text = str(error).lower()
    return any(marker in text for marker in THROTTLING_TEXT)


@dataclass
class QueryCacheEntry:
    data: List[Dict[str, Any]]
    cached_at: float


class QueryClient:
    """Executes inventory queries for a scope (an AWS account)"""

    def __init__(self, provider, max_retries: int = DEFAULT_MAX_RETRIES,
                 backoff_base: float = DEFAULT_BACKOFF_BASE,
                 cache_ttl: float = DEFAULT_CACHE_TTL,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.provider = provider
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.cache_ttl = cache_ttl
        self._sleep = sleep
        self._clock = clock
        self._cache: Dict[Tuple[str, str], QueryCacheEntry] = {}
        self._lock = threading.Lock()

    def execute(self, query: str, scope: str, use_cache: bool = True) -> List[Dict[str, Any]]:
        """Run ``query`` against ``scope`` and return every row of every page"""
        key = (scope, fingerprint(query))
        if use_cache:
            cached = self._lookup(key)
            if cached is not None:
                logger.debug(f"Cache hit for {scope}/{key[1][:12]}")
                return cached

        rows = self._fetch_all(query, scope)

        if use_cache:
            with self._lock:
                self._cache[key] = QueryCacheEntry(data=copy.deepcopy(rows), cached_at=self._clock())
        return rows

    def _lookup(self, key: Tuple[str, str]) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if self._clock() - entry.cached_at > self.cache_ttl:
                del self._cache[key]
                return None
            return copy.deepcopy(entry.data)

    def clear_cache(self):
        with self._lock:
            self._cache.clear()

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def _fetch_all(self, query: str, scope: str) -> List[Dict[str, Any]]:
        try:
            client = self.provider.get_client('config', scope)
        except (ClientError, BotoCoreError) as e:
            raise QueryError(f"Unable to create query client: {e}", cause=e,
                             scope=scope) from e
        rows: List[Dict[str, Any]] = []
        token = None
        pages = 0
        while True:
            response = self._fetch_page(client, query, scope, token)
            rows.extend(_decode(item) for item in response.get('Results', []))
            pages += 1
            token = response.get('NextToken')
            if not token:
                break
        logger.debug(f"Query on {scope} returned {len(rows)} rows in {pages} page(s)")
        return rows

    def _fetch_page(self, client, query: str, scope: str, token: Optional[str]) -> Dict[str, Any]:
        params = {"Expression": query, "Limit": PAGE_LIMIT}
        if token:
            params["NextToken"] = token

        attempt = 0
        while True:
            try:
                return client.select_resource_config(**params)
            except (ClientError, BotoCoreError) as e:
                if not is_transient(e):
                    logger.error(f"Query on {scope} failed: {e}")
                    raise QueryError(f"Query failed: {e}", cause=e, scope=scope,
                                     attempts=attempt + 1) from e
                if attempt >= self.max_retries:
                    logger.error(f"Query on {scope} still throttled after "
                                 f"{attempt + 1} attempts: {e}")
                    raise QueryError(
                        f"Query failed after {attempt + 1} attempts: {e}",
                        cause=e, scope=scope, attempts=attempt + 1) from e
                attempt += 1
                delay = self.backoff_base ** attempt
                logger.warning(f"Query on {scope} throttled, retry {attempt}/"
                               f"{self.max_retries} in {delay:.0f}s")
                self._sleep(delay)


def _decode(item: Any) -> Dict[str, Any]:
    # SelectResourceConfig returns each row as a JSON document string.
    if isinstance(item, str):
        return json.loads(item)
    return item
