"""Read-only view of a session for the renderer."""

from __future__ import annotations

from typing import NamedTuple, Tuple

from .fragments import Fragment
from .session import FocusMode, Session


class RenderSnapshot(NamedTuple):
    tab_titles: Tuple[str, ...]
    current_tab_index: int
    current_fragments: Tuple[Fragment, ...]
    scroll_offset: int
    focus: FocusMode
    url_buffer: str
    search_buffer: str
    current_url: str = ""
    loading: bool = False


def snapshot(session: Session) -> RenderSnapshot:
    """Capture everything a draw cycle needs from ``session``."""
    tab = session.current_tab()
    return RenderSnapshot(
        tab_titles=tuple(t.title for t in session.tabs),
        current_tab_index=session.current_tab_index,
        current_fragments=tab.fragments,
        scroll_offset=session.scroll_offset,
        focus=session.focus,
        url_buffer=session.url_buffer,
        search_buffer=session.search_buffer,
        current_url=tab.url,
        loading=tab.loading,
    )
