"""Chrome layout, hit testing and painting for the browsing shell.

The window is a fixed stack of strips: a tab strip with a ``+`` button,
the URL bar, the search bar, and below them the page content, one
fragment per line. This module knows where each of those lives. It
turns click coordinates into input actions and turns a
:class:`~pbrowse.snapshot.RenderSnapshot` into a display list of plain
drawing commands that any backend can execute.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

from .actions import ClickFragment, CloseTab, OpenTab, SelectTab, ToggleFocus
from .session import FocusMode
from .snapshot import RenderSnapshot

# Layout constants
WIDTH, HEIGHT = 1000, 600
TAB_WIDTH, TAB_HEIGHT = 150, 18
CLOSE_WIDTH = 10
PLUS_WIDTH = 18
URL_HEIGHT = 16
SEARCH_HEIGHT = 16
CONTENT_TOP = TAB_HEIGHT + URL_HEIGHT + SEARCH_HEIGHT + 4
LINE_HEIGHT = 10
CHAR_WIDTH, CHAR_HEIGHT = 8, 8
TEXT_LEFT = 10
BAR_PADDING = 2
SCROLL_STEP = 10
TITLE_CHARS = 15

# Colors
BACKGROUND = "#000000"
ACTIVE_TAB = "#c85050"
INACTIVE_TAB = "#505050"
TAB_BORDER = "#ffffff"
TAB_TEXT = "#ffffff"
CLOSE_TEXT = "#ff0000"
PLUS_FILL = "#00c800"
BAR_FILL = "#282828"
BAR_TEXT = "#ffffff"
PLACEHOLDER_TEXT = "#c8c8c8"
CURSOR = "#ffffff"
PAGE_TEXT = "#dcdcdc"
LINK_TEXT = "#0080ff"

SEARCH_PLACEHOLDER = "Search..."


class Rect:
    """Axis-aligned rectangle used for hit testing (right/bottom exclusive)."""
    def __init__(self, left: float, top: float, right: float, bottom: float) -> None:
        self.left = left
        self.top = top
        self.right = right
        self.bottom = bottom

    def contains_point(self, x: float, y: float) -> bool:
        return self.left <= x < self.right and self.top <= y < self.bottom

    def __repr__(self) -> str:
        return f"Rect({self.left}, {self.top}, {self.right}, {self.bottom})"


class DrawText:
    """Draw a string with its top-left corner at (x, y)."""
    def __init__(self, x: float, y: float, text: str, color: str) -> None:
        self.x = x
        self.y = y
        self.text = text
        self.color = color

    def __repr__(self) -> str:
        return f"DrawText({self.x}, {self.y}, {self.text!r}, {self.color})"


class DrawRect:
    """Draw a filled rectangle."""
    def __init__(self, rect: Rect, color: str) -> None:
        self.rect = rect
        self.color = color

    def __repr__(self) -> str:
        return f"DrawRect({self.rect!r}, {self.color})"


class DrawOutline:
    """Draw the outline of a rectangle."""
    def __init__(self, rect: Rect, color: str, thickness: int = 1) -> None:
        self.rect = rect
        self.color = color
        self.thickness = thickness


class DrawLine:
    """Draw a straight line with optional thickness."""
    def __init__(self, x1: float, y1: float, x2: float, y2: float, color: str, thickness: int = 1) -> None:
        self.x1 = x1
        self.y1 = y1
        self.x2 = x2
        self.y2 = y2
        self.color = color
        self.thickness = thickness


class ClipRect:
    """Restrict the following commands to ``rect`` (None lifts the clip)."""
    def __init__(self, rect: Optional[Rect]) -> None:
        self.rect = rect


def monospace_width(text: str) -> float:
    return len(text) * CHAR_WIDTH


class Chrome:
    """Geometry of the shell's window and the mapping from clicks to actions.

    ``measure`` returns the pixel width of a string. It defaults to the
    fixed-width metric of an 8x8 bitmap font; a backend with real fonts
    passes its own so that link hit boxes match what is drawn.
    """

    def __init__(self, measure: Optional[Callable[[str], float]] = None) -> None:
        self.measure = measure or monospace_width
        self.url_rect = Rect(0, TAB_HEIGHT, WIDTH, TAB_HEIGHT + URL_HEIGHT)
        self.search_rect = Rect(0, TAB_HEIGHT + URL_HEIGHT, WIDTH, TAB_HEIGHT + URL_HEIGHT + SEARCH_HEIGHT)
        self.content_rect = Rect(0, CONTENT_TOP, WIDTH, HEIGHT)

    def tab_rect(self, i: int) -> Rect:
        x0 = i * TAB_WIDTH
        return Rect(x0, 0, x0 + TAB_WIDTH, TAB_HEIGHT)

    def close_rect(self, i: int) -> Rect:
        x1 = (i + 1) * TAB_WIDTH
        return Rect(x1 - CLOSE_WIDTH, 0, x1, TAB_HEIGHT)

    def plus_rect(self, tab_count: int) -> Rect:
        x0 = tab_count * TAB_WIDTH
        return Rect(x0, 0, x0 + PLUS_WIDTH, TAB_HEIGHT)

    def line_top(self, k: int, scroll: int) -> float:
        return CONTENT_TOP + k * LINE_HEIGHT - scroll

    def fragment_rect(self, k: int, text: str, scroll: int) -> Rect:
        top = self.line_top(k, scroll)
        return Rect(TEXT_LEFT, top, TEXT_LEFT + self.measure(text), top + CHAR_HEIGHT)

    def hit_test(self, x: float, y: float, snap: RenderSnapshot) -> Optional[Any]:
        """Return the action a click at (x, y) stands for, if any."""
        count = len(snap.tab_titles)
        for i in range(count):
            # The close button sits inside the tab slot, so it wins
            if self.close_rect(i).contains_point(x, y):
                return CloseTab(i)
            if self.tab_rect(i).contains_point(x, y):
                return SelectTab(i)
        if self.plus_rect(count).contains_point(x, y):
            return OpenTab()
        if self.url_rect.contains_point(x, y):
            return ToggleFocus() if snap.focus is not FocusMode.URL_BAR else None
        if self.search_rect.contains_point(x, y):
            return ToggleFocus() if snap.focus is not FocusMode.SEARCH_BAR else None
        if not self.content_rect.contains_point(x, y):
            return None
        for k, frag in enumerate(snap.current_fragments):
            if frag.is_link and self.fragment_rect(k, frag.text, snap.scroll_offset).contains_point(x, y):
                return ClickFragment(k)
        return None

    def paint(self, snap: RenderSnapshot) -> List[Any]:
        """Build the display list for one frame."""
        cmds: List[Any] = [DrawRect(Rect(0, 0, WIDTH, HEIGHT), BACKGROUND)]
        cmds.extend(self.paint_tabs(snap))
        cmds.extend(self.paint_bars(snap))
        cmds.extend(self.paint_content(snap))
        return cmds

    def paint_tabs(self, snap: RenderSnapshot) -> List[Any]:
        cmds: List[Any] = []
        for i, title in enumerate(snap.tab_titles):
            r = self.tab_rect(i)
            fill = ACTIVE_TAB if i == snap.current_tab_index else INACTIVE_TAB
            cmds.append(DrawRect(r, fill))
            cmds.append(DrawOutline(r, TAB_BORDER))
            cmds.append(DrawText(r.left + BAR_PADDING, 0, title[:TITLE_CHARS], TAB_TEXT))
            cmds.append(DrawText(self.close_rect(i).left + BAR_PADDING, 0, "X", CLOSE_TEXT))
        plus = self.plus_rect(len(snap.tab_titles))
        cmds.append(DrawRect(plus, PLUS_FILL))
        cmds.append(DrawText(plus.left + BAR_PADDING, 0, "+", TAB_TEXT))
        return cmds

    def paint_bars(self, snap: RenderSnapshot) -> List[Any]:
        cmds: List[Any] = []
        # URL bar shows the page URL until the user starts typing
        url_text = snap.url_buffer or snap.current_url
        if snap.loading and not snap.url_buffer:
            url_text += "  (loading)"
        cmds.append(DrawRect(self.url_rect, BAR_FILL))
        cmds.append(DrawText(BAR_PADDING, self.url_rect.top, url_text, BAR_TEXT))
        search_text = snap.search_buffer or SEARCH_PLACEHOLDER
        cmds.append(DrawRect(self.search_rect, BAR_FILL))
        cmds.append(DrawText(BAR_PADDING, self.search_rect.top, search_text, PLACEHOLDER_TEXT))
        if snap.focus is FocusMode.URL_BAR:
            top, typed = self.url_rect.top, snap.url_buffer or snap.current_url
        else:
            top, typed = self.search_rect.top, snap.search_buffer
        cursor_x = BAR_PADDING + self.measure(typed)
        cmds.append(DrawLine(cursor_x, top, cursor_x, top + CHAR_HEIGHT, CURSOR))
        return cmds

    def paint_content(self, snap: RenderSnapshot) -> List[Any]:
        cmds: List[Any] = [ClipRect(self.content_rect)]
        for k, frag in enumerate(snap.current_fragments):
            top = self.line_top(k, snap.scroll_offset)
            if top + LINE_HEIGHT < CONTENT_TOP:
                continue
            if top >= HEIGHT:
                break
            color = LINK_TEXT if frag.is_link else PAGE_TEXT
            cmds.append(DrawText(TEXT_LEFT, top, frag.text, color))
            if frag.is_link:
                right = TEXT_LEFT + self.measure(frag.text)
                cmds.append(DrawLine(TEXT_LEFT, top + CHAR_HEIGHT, right, top + CHAR_HEIGHT, color))
        cmds.append(ClipRect(None))
        return cmds
