"""Session and tab state for the browsing shell.

The :class:`Session` owns every piece of mutable state in the shell:
the ordered list of :class:`Tab` objects, which one is current, the
scroll offset, which input bar has focus and the text typed into each
bar. All operations run to completion and keep these invariants:

* there is always at least one tab and ``current_tab_index`` points at
  one of them;
* ``scroll_offset`` never goes below zero and is reset by navigation;
* typed characters always go to the buffer named by ``focus``.

Navigation is split into :meth:`Session.begin_navigation` and
:meth:`Session.complete_navigation` so that a shell can run the fetch
elsewhere and hand the result back later. :meth:`Session.navigate`
simply does both around a blocking fetch.
"""

from __future__ import annotations

import enum
import itertools
import logging
import os
import urllib.parse
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from .extractor import extract
from .fragments import Fragment
from .history import HistoryLog
from .networking import FetchFailure, FetchOutcome, fetch, file_url

logger = logging.getLogger(__name__)

START_PAGE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "start_page.html")
START_TITLE = "Start Page"
SEARCH_URL_TEMPLATE = "https://www.google.com/search?q={query}"
SCHEMES = ("http://", "https://", "file://")

Fetcher = Callable[[str], FetchOutcome]

_tab_ids = itertools.count(1)
_nav_ids = itertools.count(1)


class FocusMode(enum.Enum):
    URL_BAR = "url"
    SEARCH_BAR = "search"


def normalize_url(raw: str) -> str:
    """Prepend ``http://`` unless ``raw`` already names a known scheme."""
    url = raw.strip()
    if url.lower().startswith(SCHEMES):
        return url
    return "http://" + url


def search_url(query: str) -> str:
    """Build the search-engine URL for ``query``."""
    return SEARCH_URL_TEMPLATE.format(query=urllib.parse.quote_plus(query.strip()))


def error_fragments(failure: FetchFailure) -> List[Fragment]:
    """Diagnostic page shown in place of content that could not be fetched."""
    return [Fragment(f"Error fetching page: {failure.message}")]


def load_start_page(fetcher: Fetcher = fetch, path: str = START_PAGE) -> Tuple[str, bytes]:
    """Fetch the packaged start page, returning its URL and markup."""
    url = file_url(path)
    outcome = fetcher(url)
    if isinstance(outcome, FetchFailure):
        # Seeds are markup, so the message becomes a one-fragment page
        return url, f"Error loading start page: {outcome.message}".encode("utf8")
    return url, outcome.body


class Tab:
    """A single browsing context: a URL, a title and its fragments."""

    def __init__(self, url: str, title: str, fragments: Sequence[Fragment] = ()) -> None:
        self.tab_id: int = next(_tab_ids)
        self.url: str = url
        self.title: str = title
        self.fragments: Tuple[Fragment, ...] = tuple(fragments)
        # Id of the navigation whose result this tab is waiting for
        self.pending_nav: Optional[int] = None

    @property
    def loading(self) -> bool:
        return self.pending_nav is not None

    def __repr__(self) -> str:
        return f"Tab({self.tab_id}, {self.url!r})"


class NavigationRequest(NamedTuple):
    """A navigation that has been started but whose fetch has not finished."""
    tab_id: int
    nav_id: int
    url: str
    title: str


class Session:
    """All tabs plus the focus, scroll and input-buffer state of the shell."""

    def __init__(
        self,
        start_page: bytes = b"",
        fetcher: Fetcher = fetch,
        start_url: str = "about:start",
        history: Optional[HistoryLog] = None,
    ) -> None:
        self.fetcher: Fetcher = fetcher
        self.start_page: bytes = start_page
        self.start_url: str = start_url
        self.history: Optional[HistoryLog] = history
        self.tabs: List[Tab] = []
        self.current_tab_index: int = 0
        self.scroll_offset: int = 0
        self.focus: FocusMode = FocusMode.URL_BAR
        self.url_buffer: str = ""
        self.search_buffer: str = ""
        self.open_tab()

    # Tab management
    def current_tab(self) -> Tab:
        return self.tabs[self.current_tab_index]

    def find_tab(self, tab_id: int) -> Optional[Tab]:
        for tab in self.tabs:
            if tab.tab_id == tab_id:
                return tab
        return None

    def open_tab(self, seed_content: Optional[bytes] = None) -> Tab:
        """Append a tab built from ``seed_content`` (the start page by default)."""
        content = self.start_page if seed_content is None else seed_content
        tab = Tab(self.start_url, START_TITLE, extract(content))
        self.tabs.append(tab)
        self.current_tab_index = len(self.tabs) - 1
        self.scroll_offset = 0
        return tab

    def close_tab(self, idx: int) -> Optional[Tab]:
        """Close tab ``idx``; closing the last remaining tab does nothing."""
        if not 0 <= idx < len(self.tabs):
            logger.debug("Ignoring close of tab %d (have %d)", idx, len(self.tabs))
            return None
        if len(self.tabs) == 1:
            return None
        tab = self.tabs.pop(idx)
        if idx == self.current_tab_index:
            self.current_tab_index = max(0, idx - 1)
            self.scroll_offset = 0
        elif idx < self.current_tab_index:
            self.current_tab_index -= 1
        return tab

    def select_tab(self, idx: int) -> None:
        if not 0 <= idx < len(self.tabs):
            logger.debug("Ignoring select of tab %d (have %d)", idx, len(self.tabs))
            return
        if idx != self.current_tab_index:
            self.current_tab_index = idx
            self.scroll_offset = 0

    # Navigation
    def begin_navigation(self, raw_input: str) -> Optional[NavigationRequest]:
        """Start navigating the current tab and return what must be fetched."""
        if not raw_input.strip():
            return None
        url = normalize_url(raw_input)
        tab = self.current_tab()
        nav_id = next(_nav_ids)
        tab.pending_nav = nav_id
        self.url_buffer = ""
        logger.info("Navigating tab %d to %s", tab.tab_id, url)
        return NavigationRequest(tab.tab_id, nav_id, url, url)

    def complete_navigation(self, request: NavigationRequest, outcome: FetchOutcome) -> bool:
        """Install the fetched ``outcome`` into the tab that asked for it.

        Returns False when the result is stale: the tab has been closed
        or a newer navigation has started in it since.
        """
        tab = self.find_tab(request.tab_id)
        if tab is None or tab.pending_nav != request.nav_id:
            logger.debug("Dropping stale navigation to %s", request.url)
            return False
        tab.pending_nav = None
        tab.url = request.url
        tab.title = request.title
        if isinstance(outcome, FetchFailure):
            tab.fragments = tuple(error_fragments(outcome))
        else:
            tab.fragments = tuple(extract(outcome.body))
            if self.history is not None:
                self.history.record(tab.url, tab.title)
        if tab is self.current_tab():
            self.scroll_offset = 0
        return True

    def navigate(self, raw_input: str) -> None:
        """Load ``raw_input`` into the current tab, blocking on the fetch."""
        request = self.begin_navigation(raw_input)
        if request is None:
            return
        self.complete_navigation(request, self.fetcher(request.url))

    def submit_search(self, query: str) -> None:
        if not query.strip():
            return
        self.navigate(search_url(query))
        self.search_buffer = ""

    def click_link_at(self, idx: int) -> None:
        link = self.link_at(idx)
        if link:
            self.navigate(link)

    def link_at(self, idx: int) -> str:
        """Return the link of fragment ``idx`` in the current tab, or ``""``."""
        fragments = self.current_tab().fragments
        if not 0 <= idx < len(fragments):
            logger.debug("Ignoring click on fragment %d (have %d)", idx, len(fragments))
            return ""
        return fragments[idx].link

    def begin_submit(self) -> Optional[NavigationRequest]:
        """Start navigating to whatever the focused input bar holds."""
        if self.focus is FocusMode.URL_BAR:
            return self.begin_navigation(self.url_buffer)
        if not self.search_buffer.strip():
            return None
        request = self.begin_navigation(search_url(self.search_buffer))
        self.search_buffer = ""
        return request

    def submit(self) -> None:
        """Submit whichever input bar has focus."""
        request = self.begin_submit()
        if request is not None:
            self.complete_navigation(request, self.fetcher(request.url))

    # Input bars
    def toggle_focus(self) -> None:
        if self.focus is FocusMode.URL_BAR:
            self.focus = FocusMode.SEARCH_BAR
        else:
            self.focus = FocusMode.URL_BAR

    def append_char(self, c: str) -> None:
        if self.focus is FocusMode.URL_BAR:
            self.url_buffer += c
        else:
            self.search_buffer += c

    def backspace(self) -> None:
        if self.focus is FocusMode.URL_BAR:
            self.url_buffer = self.url_buffer[:-1]
        else:
            self.search_buffer = self.search_buffer[:-1]

    # Scrolling
    def scroll(self, delta: int) -> None:
        self.scroll_offset = max(0, self.scroll_offset + delta)
