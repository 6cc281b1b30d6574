"""Markup extraction for the browsing shell.

This module turns raw markup into an ordered list of
:class:`~pbrowse.fragments.Fragment` values in a single left-to-right
pass. There is no tree: tags only split the text into runs, and ``<a>``
tags decide which runs carry a link. The extractor never fails; broken
markup just produces odd-looking fragments.
"""

from __future__ import annotations

from typing import List, Union

from .fragments import Fragment


class FragmentExtractor:
    """A tiny tokenizer that splits markup into text and link fragments.

    Anchors are tracked with a single flag rather than a stack, so the
    most recent ``<a>`` or ``</a>`` always wins. The href is the first
    double-quoted value after the next ``href=`` in the document; when
    there is none left, the previous href is kept.
    """

    def __init__(self, body: Union[bytes, str]) -> None:
        if isinstance(body, bytes):
            body = body.decode("utf8", errors="replace")
        self.body: str = body
        self.fragments: List[Fragment] = []
        self.link_active: bool = False
        self.current_href: str = ""

    def parse(self) -> List[Fragment]:
        """Scan the whole body and return the fragments in document order."""
        body = self.body
        text = ""
        in_tag = False
        for i, c in enumerate(body):
            if c == "<":
                in_tag = True
                if text:
                    self.add_text(text)
                    text = ""
                self.add_tag(i)
            elif c == ">":
                in_tag = False
            elif not in_tag:
                text += c
        if text:
            self.add_text(text)
        return self.fragments

    def add_text(self, text: str) -> None:
        link = self.current_href if self.link_active else ""
        self.fragments.append(Fragment(text, link))

    def add_tag(self, start: int) -> None:
        """Handle the tag whose ``<`` sits at ``start``."""
        body = self.body
        j = start + 1
        closing = False
        if j < len(body) and body[j] == "/":
            closing = True
            j += 1
        name_start = j
        while j < len(body) and body[j] != ">" and not body[j].isspace():
            j += 1
        tag = body[name_start:j].lower()
        if tag != "a":
            return
        if closing:
            self.link_active = False
            return
        self.link_active = True
        href = self.get_href(body, start)
        if href is not None:
            self.current_href = href

    @staticmethod
    def get_href(body: str, start: int = 0):
        """Return the first double-quoted value after ``href=``, or None.

        The search runs from ``start`` to the end of ``body``, so an anchor
        with no ``href=`` of its own picks up the next one in the document.
        """
        pos = body.find("href=", start)
        if pos == -1:
            return None
        quote = body.find('"', pos)
        if quote == -1:
            return None
        close = body.find('"', quote + 1)
        if close == -1:
            return None
        return body[quote + 1:close]


def extract(raw: Union[bytes, str]) -> List[Fragment]:
    """Extract the ordered text/link fragments from ``raw`` markup."""
    return FragmentExtractor(raw).parse()
