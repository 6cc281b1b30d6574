"""Single-owner action loop around a session.

Only the thread that calls :meth:`Shell.process_pending` ever mutates
the session. Other threads, including the fetch workers, talk to it by
posting actions. Navigations are started on the owning thread, their
fetch runs on a worker pool, and the result is posted back as a
:class:`~pbrowse.actions.NavigationCompleted` action, so input keeps
flowing while a page loads.
"""

from __future__ import annotations

import concurrent.futures
import logging
import queue
from typing import Any, Callable, Dict, Optional, Tuple

from .actions import (
    Action,
    Click,
    ClickFragment,
    CloseCurrentTab,
    CloseTab,
    NavigationCompleted,
    Submit,
    apply_action,
)
from .networking import TIMEOUT, FetchError, FetchFailure
from .session import Fetcher, NavigationRequest, Session
from .snapshot import RenderSnapshot, snapshot

logger = logging.getLogger(__name__)

HitTest = Callable[[float, float, RenderSnapshot], Optional[Any]]


class Shell:
    """Serializes every session mutation through one action queue."""

    def __init__(
        self,
        session: Session,
        fetcher: Optional[Fetcher] = None,
        max_workers: int = 4,
        hit_test: Optional[HitTest] = None,
    ) -> None:
        self.session = session
        self.fetcher: Fetcher = fetcher or session.fetcher
        # Resolves Click actions against the state they are applied to
        self.hit_test: Optional[HitTest] = hit_test
        self.actions: "queue.Queue[Action]" = queue.Queue()
        self.pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pbrowse-fetch"
        )
        # tab_id -> (nav_id, future) for the fetch each tab is waiting on
        self.pending: Dict[int, Tuple[int, concurrent.futures.Future]] = {}

    def post(self, action: Action) -> None:
        """Queue ``action``; safe to call from any thread."""
        self.actions.put(action)

    def process_pending(self) -> int:
        """Apply every queued action in order and return how many ran."""
        count = 0
        while True:
            try:
                action = self.actions.get_nowait()
            except queue.Empty:
                return count
            self.handle(action)
            count += 1

    def handle(self, action: Action) -> None:
        session = self.session
        if isinstance(action, Submit):
            self.start(session.begin_submit())
        elif isinstance(action, ClickFragment):
            link = session.link_at(action.index)
            if link:
                self.start(session.begin_navigation(link))
        elif isinstance(action, Click):
            self.click(action)
        elif isinstance(action, CloseCurrentTab):
            self.handle(CloseTab(session.current_tab_index))
        elif isinstance(action, CloseTab):
            tab = session.close_tab(action.index)
            if tab is not None:
                self.cancel(tab.tab_id)
        elif isinstance(action, NavigationCompleted):
            entry = self.pending.get(action.tab_id)
            if entry is not None and entry[0] == action.request.nav_id:
                del self.pending[action.tab_id]
            apply_action(session, action)
        else:
            apply_action(session, action)

    def click(self, action: Click) -> None:
        if self.hit_test is None:
            logger.debug("No hit test configured; dropping %r", action)
            return
        resolved = self.hit_test(action.x, action.y, snapshot(self.session))
        if resolved is not None:
            self.handle(resolved)

    def start(self, request: Optional[NavigationRequest]) -> None:
        """Run the fetch for ``request`` on the worker pool."""
        if request is None:
            return
        # A newer navigation supersedes whatever the tab was loading
        self.cancel(request.tab_id)
        future = self.pool.submit(self._fetch, request)
        self.pending[request.tab_id] = (request.nav_id, future)

    def cancel(self, tab_id: int) -> None:
        entry = self.pending.pop(tab_id, None)
        if entry is not None and entry[1].cancel():
            logger.debug("Cancelled pending fetch for tab %d", tab_id)

    def _fetch(self, request: NavigationRequest) -> None:
        # Runs on a worker thread: never touch the session here
        try:
            outcome = self.fetcher(request.url)
        except Exception as ex:
            logger.exception("Fetcher crashed on %s", request.url)
            outcome = FetchFailure(FetchError(str(ex) or ex.__class__.__name__))
        self.post(NavigationCompleted(request, outcome))

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until every started fetch has finished and been applied."""
        while self.pending:
            futures = [future for _, future in self.pending.values()]
            done, not_done = concurrent.futures.wait(futures, timeout=timeout)
            if not_done:
                raise TimeoutError(f"{len(not_done)} fetch(es) still running")
            self.process_pending()
        self.process_pending()

    def shutdown(self) -> int:
        """Cancel queued fetches and stop the pool without waiting.

        A fetch already running cannot be interrupted, and the interpreter
        joins pool threads at exit, so the process may linger until that
        fetch hits its socket timeout. Returns how many were still running.
        """
        running = [future for _, future in self.pending.values() if not future.cancel()]
        running = [future for future in running if not future.done()]
        self.pending.clear()
        self.pool.shutdown(wait=False, cancel_futures=True)
        if running:
            logger.info("Exit waits on %d fetch(es) in flight (timeout %ss each)", len(running), TIMEOUT)
        return len(running)
