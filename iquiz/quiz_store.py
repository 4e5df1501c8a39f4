"""
Quiz store for the iQuiz catalog.
Owns the published quiz list, its download/cache synchronization and the
auto-refresh schedule.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import aiohttp
from yarl import URL

from .config_manager import ConfigManager
from .data_manager import DataManager
from .errors import (
    BadURLError,
    CacheUnavailableError,
    NoConnectivityError,
    NoDataError,
    QuizDecodeError,
)
from .models import LoadResult, Quiz
from .refresh_timer import RefreshTimer

StoreSubscriber = Callable[["QuizStore"], Any]

BAD_URL_MESSAGE = "Bad URL"
NO_DATA_MESSAGE = "No data received."
NO_CACHE_MESSAGE = "Offline & no cache available."


class QuizStore:
    """
    Single source of truth for the quiz catalog.

    The store is bound to the event loop it is used from. All state changes
    happen on that loop, so subscribers never observe a partly replaced list.
    """

    DEFAULT_REQUEST_TIMEOUT = 30.0

    def __init__(
        self,
        config_manager: ConfigManager,
        data_manager: DataManager,
        session: Optional[aiohttp.ClientSession] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    ):
        """
        Initialize the quiz store.

        Args:
            config_manager: Source of the catalog URL and refresh interval
            data_manager: Decoder and cache owner
            session: Optional shared HTTP session; one is created on first use otherwise
            request_timeout: Total timeout for a catalog request in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager
        self.data_manager = data_manager

        # Published state
        self.quizzes: List[Quiz] = []
        self.network_error_message = ""
        self.show_network_error = False
        self.last_result: Optional[LoadResult] = None
        self.last_updated: Optional[datetime] = None

        self._session = session
        self._owns_session = session is None
        self._request_timeout = request_timeout
        self._fetch_task: Optional[asyncio.Task] = None
        self._timer = RefreshTimer("catalog_refresh")
        self._subscribers: List[StoreSubscriber] = []

        self.config_manager.add_listener(self._on_setting_changed)
        self.logger.info("QuizStore initialized")

    @property
    def source_url(self) -> str:
        return self.config_manager.get_source_url()

    @property
    def refresh_interval(self) -> int:
        return self.config_manager.get_refresh_interval()

    @property
    def timer(self) -> RefreshTimer:
        return self._timer

    @property
    def is_fetching(self) -> bool:
        return self._fetch_task is not None and not self._fetch_task.done()

    # Lifecycle

    def start(self) -> asyncio.Task:
        """Kick off the initial download and the timed refresh."""
        task = self.load()
        self.start_timer()
        return task

    async def close(self) -> None:
        """Stop the timer, cancel an outstanding download and release the HTTP session."""
        self._timer.cancel(reason="store closed")
        self.config_manager.remove_listener(self._on_setting_changed)

        if self.is_fetching:
            self._fetch_task.cancel()
            try:
                await self._fetch_task
            except asyncio.CancelledError:
                pass
        self._fetch_task = None

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        self.logger.info("QuizStore closed")

    # Observation

    def subscribe(self, callback: StoreSubscriber) -> Callable[[], None]:
        """
        Register a callback run after every publish or error signal change.

        Returns:
            Callable that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception as e:
                self.logger.error(f"Store subscriber failed: {e}")

    def _publish(self, quizzes: List[Quiz], clear_error: bool) -> None:
        self.quizzes = list(quizzes)
        self.last_updated = datetime.now()
        if clear_error:
            self.network_error_message = ""
            self.show_network_error = False
        self.logger.info(f"Published {len(self.quizzes)} quizzes")
        self._notify()

    def _signal_error(self, message: str) -> None:
        self.network_error_message = message
        self.show_network_error = True
        self.logger.warning(f"Catalog error: {message}")
        self._notify()

    def dismiss_error(self) -> None:
        """Acknowledge the current error signal."""
        if self.show_network_error:
            self.show_network_error = False
            self._notify()

    # Loading

    def load(self) -> asyncio.Task:
        """
        Start a catalog refresh without waiting for it.

        A call made while a previous download is still outstanding joins that
        download instead of starting another one.

        Returns:
            Task running (or already running) the refresh
        """
        if self.is_fetching:
            self.logger.debug("Refresh already in progress, joining it")
            return self._fetch_task

        self._fetch_task = asyncio.get_running_loop().create_task(
            self.refresh(),
            name="catalog_refresh",
        )
        return self._fetch_task

    async def refresh(self) -> LoadResult:
        """
        Download, decode and publish the catalog, falling back to the cache.

        Returns:
            Outcome of this refresh
        """
        result = await self._refresh()
        self.last_result = result
        self.logger.info(f"Catalog refresh finished: {result.value}")
        return result

    async def _refresh(self) -> LoadResult:
        try:
            url = self._validate_url(self.source_url)
        except BadURLError as e:
            self.logger.error(str(e))
            self._signal_error(BAD_URL_MESSAGE)
            return LoadResult.BAD_URL

        try:
            raw = await self._fetch(url)
        except NoConnectivityError as e:
            self.logger.warning(f"No network connection, using cache: {e}")
            return self.load_from_disk()
        except NoDataError as e:
            self.logger.error(f"No data from {url}: {e}")
            self._signal_error(NO_DATA_MESSAGE)
            return LoadResult.NO_DATA

        try:
            quizzes = self.data_manager.decode_quizzes(raw)
        except QuizDecodeError as e:
            self._signal_error(f"Decoding error: {e}")
            return self.load_from_disk()

        self._publish(quizzes, clear_error=True)
        self.data_manager.write_cache(raw)
        return LoadResult.SUCCESS

    def _validate_url(self, raw_url: str) -> URL:
        try:
            url = URL(raw_url)
        except (TypeError, ValueError) as e:
            raise BadURLError(f"Cannot parse source URL {raw_url!r}: {e}") from e

        if url.scheme not in ("http", "https") or not url.host:
            raise BadURLError(f"Source URL {raw_url!r} is not an http(s) URL")
        return url

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._request_timeout)
            )
            self._owns_session = True
        return self._session

    async def _fetch(self, url: URL) -> bytes:
        """
        GET the catalog body.

        The HTTP status is not checked; whatever body arrives is handed to the
        decoder.

        Raises:
            NoConnectivityError: If the host cannot be reached
            NoDataError: If the request fails otherwise or the body is empty
        """
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                raw = await response.read()
                status = response.status
        except (aiohttp.ClientSSLError, aiohttp.ClientProxyConnectionError) as e:
            # Reached the network but the TLS or proxy handshake failed
            raise NoDataError(f"{type(e).__name__}: {e}") from e
        except aiohttp.ClientConnectorError as e:
            raise NoConnectivityError(str(e)) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NoDataError(f"{type(e).__name__}: {e}") from e

        if not raw:
            raise NoDataError(f"Empty response body (HTTP {status})")

        self.logger.info(f"Fetched {len(raw)} bytes from {url} (HTTP {status})")
        return raw

    def _read_cached_quizzes(self) -> List[Quiz]:
        raw = self.data_manager.read_cache()
        if raw is None:
            raise CacheUnavailableError(f"No readable cache at {self.data_manager.cache_path}")
        try:
            return self.data_manager.decode_quizzes(raw)
        except QuizDecodeError as e:
            raise CacheUnavailableError(f"Cached catalog is malformed: {e}") from e

    def load_from_disk(self) -> LoadResult:
        """
        Publish the cached catalog.

        An error signalled earlier in the same refresh stays visible.

        Returns:
            FALLBACK_CACHE if the cache was published, FALLBACK_NO_CACHE otherwise
        """
        try:
            quizzes = self._read_cached_quizzes()
        except CacheUnavailableError as e:
            self.logger.error(str(e))
            self._signal_error(NO_CACHE_MESSAGE)
            return LoadResult.FALLBACK_NO_CACHE

        self.logger.info("Loaded catalog from cache")
        self._publish(quizzes, clear_error=False)
        return LoadResult.FALLBACK_CACHE

    # Timed refresh

    def start_timer(self, interval: Optional[float] = None) -> asyncio.Task:
        """
        Start or restart the auto-refresh timer.

        Args:
            interval: Seconds between refreshes, defaults to the configured interval

        Returns:
            Task driving the schedule
        """
        if interval is None:
            interval = self.refresh_interval
        return self._timer.start(interval, self.load)

    def stop_timer(self) -> bool:
        return self._timer.cancel()

    def _on_setting_changed(self, key: str, value: Any) -> None:
        if key == ConfigManager.REFRESH_INTERVAL_KEY and self._timer.is_active:
            self.start_timer(value)

    # Queries

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        for quiz in self.quizzes:
            if quiz.id == quiz_id:
                return quiz
        return None

    def get_store_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the store state.

        Returns:
            Dictionary with catalog, error, timer and cache status
        """
        return {
            'quiz_count': len(self.quizzes),
            'quiz_titles': [quiz.title for quiz in self.quizzes],
            'source_url': self.source_url,
            'refresh_interval': self.refresh_interval,
            'timer_active': self._timer.is_active,
            'is_fetching': self.is_fetching,
            'last_result': self.last_result.value if self.last_result else None,
            'last_updated': self.last_updated,
            'error_message': self.network_error_message,
            'show_error': self.show_network_error,
            'cache': self.data_manager.get_cache_summary(),
        }
