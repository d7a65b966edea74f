"""View-state controller for catalog search and product detail.

Commands run on the caller's thread and only switch the view to a loading
state; the fetch and decode run on a background worker which posts its outcome
to an inbox queue. Outcomes are applied by :meth:`ViewController.pump` (called
implicitly by :meth:`ViewController.snapshot`) and only when their generation
token still matches the controller's, so a slow earlier request can never
overwrite a later one.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

from .config import Settings, settings as default_settings
from .decoding import decode_detail, decode_search
from .errors import InvalidCommand, ViewerError
from .http_client import FetchResult
from .models import (
    DETAIL_STATES,
    LOADING_STATES,
    DetailError,
    Details,
    Idle,
    LoadingDetail,
    Results,
    ResultsError,
    SearchQuery,
    Searching,
    Snapshot,
    ViewState,
)
from .utils import normalize_code, product_url, search_params

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, url: str, params: Optional[dict] = None) -> FetchResult: ...


@dataclass(frozen=True)
class Search:
    term: str


@dataclass(frozen=True)
class SelectProduct:
    code: str

    def __post_init__(self) -> None:
        code = normalize_code(self.code)
        if not code:
            raise InvalidCommand("SelectProduct requires a non-empty product code")
        object.__setattr__(self, "code", code)


@dataclass(frozen=True)
class GoBack:
    pass


Command = Union[Search, SelectProduct, GoBack]


@dataclass(frozen=True)
class _Outcome:
    generation: int
    state: ViewState


class ViewController:
    """Owns the current :data:`ViewState` and sequences fetch -> decode -> transition."""

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Settings = default_settings,
        executor: Optional[Executor] = None,
    ) -> None:
        self._fetcher = fetcher
        self._settings = settings
        self._owns_executor = executor is None
        # One worker keeps at most one request on the wire.
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="offviewer-fetch")
        self._inbox: "queue.Queue[_Outcome]" = queue.Queue()
        self._lock = threading.Lock()
        self._state: ViewState = Idle()
        self._retained: Optional[Results] = None
        self._generation = 0

    # -- commands -------------------------------------------------------

    def dispatch(self, command: Command) -> Snapshot:
        if isinstance(command, Search):
            self._search(command.term)
        elif isinstance(command, SelectProduct):
            self._select_product(command.code)
        elif isinstance(command, GoBack):
            self._go_back()
        else:
            raise InvalidCommand(f"Unknown command: {command!r}")
        return self.snapshot()

    def search(self, term: str) -> Snapshot:
        return self.dispatch(Search(term))

    def select_product(self, code: str) -> Snapshot:
        return self.dispatch(SelectProduct(code))

    def go_back(self) -> Snapshot:
        return self.dispatch(GoBack())

    def _search(self, term: str) -> None:
        query = SearchQuery.parse(term)
        if query is None:
            logger.debug("Ignoring blank search term %r", term)
            return
        text = query.text

        def job() -> ViewState:
            result = self._fetcher.fetch(self._settings.search_url, params=search_params(text))
            return Results(query=text, products=tuple(decode_search(result.status_code, result.body)))

        def failure(message: str) -> ViewState:
            return ResultsError(query=text, message=f"Search failed: {message}")

        logger.info("Searching catalog for %r", text)
        self._start(Searching(query=text), job, failure)

    def _select_product(self, code: str) -> None:
        with self._lock:
            current = self._state
        if not isinstance(current, (Results,) + DETAIL_STATES):
            logger.info("Ignoring selection of %s while in %s state", code, current.kind)
            return

        def job() -> ViewState:
            result = self._fetcher.fetch(product_url(self._settings.product_url_template, code))
            return Details(detail=decode_detail(result.status_code, result.body, code))

        def failure(message: str) -> ViewState:
            return DetailError(code=code, message=f"Could not load product {code}: {message}")

        logger.info("Loading product %s", code)
        self._start(LoadingDetail(code=code), job, failure)

    def _go_back(self) -> None:
        with self._lock:
            if not isinstance(self._state, DETAIL_STATES) or self._retained is None:
                logger.debug("Nothing to go back to from %s state", self._state.kind)
                return
            # Bumping the generation drops any detail fetch still in flight.
            self._generation += 1
            self._state = self._retained

    # -- worker boundary ------------------------------------------------

    def _start(
        self,
        loading: ViewState,
        job: Callable[[], ViewState],
        failure: Callable[[str], ViewState],
    ) -> None:
        with self._lock:
            previous = self._state
            self._generation += 1
            generation = self._generation
            self._state = loading
        try:
            self._executor.submit(self._run, generation, job, failure)
        except RuntimeError:
            # Executor already shut down: nothing will ever settle this loading state.
            with self._lock:
                if self._generation == generation:
                    self._generation -= 1
                    self._state = previous
            raise

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _run(self, generation: int, job: Callable[[], ViewState], failure: Callable[[str], ViewState]) -> None:
        if not self._is_current(generation):
            logger.debug("Skipping superseded request (generation %s)", generation)
            return
        try:
            state = job()
        except ViewerError as exc:
            logger.warning("Request failed (generation %s): %s", generation, exc)
            state = failure(exc.describe())
        except Exception:
            logger.exception("Unexpected error while handling request (generation %s)", generation)
            state = failure("unexpected error")
        self._inbox.put(_Outcome(generation, state))

    def _apply(self, outcome: _Outcome) -> bool:
        with self._lock:
            if outcome.generation != self._generation:
                logger.debug(
                    "Dropping stale %s result (generation %s, current %s)",
                    outcome.state.kind,
                    outcome.generation,
                    self._generation,
                )
                return False
            self._state = outcome.state
            if isinstance(outcome.state, Results):
                self._retained = outcome.state
            return True

    def pump(self) -> int:
        """Apply every finished result waiting in the inbox; return how many took effect."""
        applied = 0
        while True:
            try:
                outcome = self._inbox.get_nowait()
            except queue.Empty:
                return applied
            applied += self._apply(outcome)

    def wait_until_settled(self, timeout: Optional[float] = None) -> bool:
        """Block until the current command has produced its final state.

        Returns ``False`` if ``timeout`` seconds pass first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self.pump()
            with self._lock:
                if not isinstance(self._state, LOADING_STATES):
                    return True
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            try:
                outcome = self._inbox.get(timeout=remaining)
            except queue.Empty:
                return False
            self._apply(outcome)

    # -- queries --------------------------------------------------------

    @property
    def state(self) -> ViewState:
        with self._lock:
            return self._state

    def snapshot(self) -> Snapshot:
        self.pump()
        with self._lock:
            return Snapshot.from_state(
                self._state,
                generation=self._generation,
                can_go_back=isinstance(self._state, DETAIL_STATES) and self._retained is not None,
            )

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "ViewController":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
