"""Fragment model for the browsing shell.

A page is reduced to a flat, ordered sequence of :class:`Fragment`
values. Each fragment is a run of text, optionally carrying the target
of the anchor it appeared in.
"""

from __future__ import annotations

from typing import NamedTuple


class Fragment(NamedTuple):
    """A run of extracted text and the link it belongs to (``""`` if none)."""
    text: str
    link: str = ""

    @property
    def is_link(self) -> bool:
        return bool(self.link)

    def __repr__(self) -> str:
        if self.link:
            return f"Fragment({self.text!r}, link={self.link!r})"
        return f"Fragment({self.text!r})"
