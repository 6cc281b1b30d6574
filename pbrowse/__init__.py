"""PBrowse: a minimal text-and-links browsing shell.

Pages are reduced to a flat list of text fragments (some of them links)
by :mod:`pbrowse.extractor` and shown one per line. :mod:`pbrowse.session`
holds the tabs and input state, :mod:`pbrowse.shell` serializes changes
to it, and :mod:`pbrowse.window` draws it with SDL2 and Skia.
"""

from .extractor import extract
from .fragments import Fragment
from .session import FocusMode, Session, Tab

__all__ = ["extract", "Fragment", "FocusMode", "Session", "Tab"]
