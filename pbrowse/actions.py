"""Input actions understood by the session.

The input layer (keyboard, mouse, or a test) never touches a
:class:`~pbrowse.session.Session` directly. It produces the small
action objects defined here and :func:`apply_action` turns each one into
the matching session operation. Finished fetches come back through the
same path as :class:`NavigationCompleted`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .networking import FetchOutcome
from .session import NavigationRequest, Session


@dataclass(frozen=True)
class OpenTab:
    seed_content: Optional[bytes] = None


@dataclass(frozen=True)
class CloseTab:
    index: int


@dataclass(frozen=True)
class CloseCurrentTab:
    pass


@dataclass(frozen=True)
class SelectTab:
    index: int


@dataclass(frozen=True)
class TextChar:
    char: str


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class ToggleFocus:
    pass


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class Scroll:
    delta: int


@dataclass(frozen=True)
class ClickFragment:
    index: int


@dataclass(frozen=True)
class Click:
    """A pointer press in window coordinates, hit-tested when it is handled."""
    x: float
    y: float


@dataclass(frozen=True)
class NavigationCompleted:
    request: NavigationRequest
    outcome: FetchOutcome

    @property
    def tab_id(self) -> int:
        return self.request.tab_id


Action = Union[
    OpenTab, CloseTab, CloseCurrentTab, SelectTab, TextChar, Backspace,
    ToggleFocus, Submit, Scroll, ClickFragment, Click, NavigationCompleted,
]


def apply_action(session: Session, action: Action) -> None:
    """Apply one action to ``session``, blocking on any fetch it needs."""
    if isinstance(action, OpenTab):
        session.open_tab(action.seed_content)
    elif isinstance(action, CloseTab):
        session.close_tab(action.index)
    elif isinstance(action, CloseCurrentTab):
        session.close_tab(session.current_tab_index)
    elif isinstance(action, SelectTab):
        session.select_tab(action.index)
    elif isinstance(action, TextChar):
        # Text input events may carry several characters at once
        for c in action.char:
            session.append_char(c)
    elif isinstance(action, Backspace):
        session.backspace()
    elif isinstance(action, ToggleFocus):
        session.toggle_focus()
    elif isinstance(action, Submit):
        session.submit()
    elif isinstance(action, Scroll):
        session.scroll(action.delta)
    elif isinstance(action, ClickFragment):
        session.click_link_at(action.index)
    elif isinstance(action, NavigationCompleted):
        session.complete_navigation(action.request, action.outcome)
    elif isinstance(action, Click):
        raise TypeError(f"{action!r} needs a hit test; post it to a Shell")
    else:
        raise TypeError(f"Not an input action: {action!r}")
