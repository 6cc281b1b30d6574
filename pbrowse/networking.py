"""Networking utilities for the browsing shell.

This module defines the :class:`URL` class for parsing ``http``,
``https`` and ``file`` URLs and performing blocking requests, plus the
:func:`fetch` entry point used by the session. ``fetch`` never raises:
every transport problem is reported as a :class:`FetchFailure` so the
caller can branch on the outcome instead of catching exceptions.
"""

from __future__ import annotations

import logging
import os
import socket
import ssl
from typing import BinaryIO, Dict, NamedTuple, Tuple, Union

logger = logging.getLogger(__name__)

USER_AGENT = "PBrowse/1.0"
MAX_REDIRECTS = 10
TIMEOUT = 15
REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class FetchError(Exception):
    """Raised when a URL cannot be retrieved."""


class FetchSuccess(NamedTuple):
    body: bytes
    url: str


class FetchFailure(NamedTuple):
    error: FetchError

    @property
    def message(self) -> str:
        return str(self.error)


FetchOutcome = Union[FetchSuccess, FetchFailure]


class URL:
    """A simple URL parser and request helper.

    ``URL`` objects know how to resolve redirect locations and make
    synchronous requests. ``file://`` URLs are read from disk, anything
    else goes over a plain or TLS-wrapped socket.
    """

    def __init__(self, url: str) -> None:
        if "://" not in url:
            raise FetchError(f"Malformed URL: {url}")
        # Split scheme and the rest of the URL
        scheme, rest = url.split("://", 1)
        self.scheme = scheme.lower()
        if self.scheme not in ("http", "https", "file"):
            raise FetchError(f"Unsupported scheme: {scheme}")
        if self.scheme == "file":
            self.host = ""
            self.port = 0
            self.path = os.path.abspath(rest) if rest else os.path.abspath(".")
            return
        # Ensure there's at least one '/' to separate host and path
        if "/" not in rest:
            rest += "/"
        self.host, path = rest.split("/", 1)
        self.path = "/" + path
        if not self.host:
            raise FetchError(f"Missing host: {url}")
        # Default ports: 80 for HTTP, 443 for HTTPS
        self.port = 80 if self.scheme == "http" else 443
        # If host includes a port, parse it
        if ":" in self.host:
            self.host, p = self.host.split(":", 1)
            try:
                self.port = int(p)
            except ValueError:
                raise FetchError(f"Bad port: {p}") from None

    def request(self) -> Tuple[int, Dict[str, str], bytes]:
        """Make a single request to this URL without following redirects.

        :returns: A tuple of (status, headers dict, body bytes). Local
                  files always report status 200.
        :raises OSError: For socket and file errors.
        :raises ssl.SSLError: If the TLS handshake fails.
        """
        if self.scheme == "file":
            with open(self.path, "rb") as f:
                return 200, {}, f.read()
        # Establish a TCP connection
        sock = socket.create_connection((self.host, self.port), timeout=TIMEOUT)
        # Wrap with SSL if needed
        if self.scheme == "https":
            ctx = ssl.create_default_context()
            try:
                sock = ctx.wrap_socket(sock, server_hostname=self.host)
            except ssl.SSLError:
                sock.close()
                raise
        req = f"GET {self.path} HTTP/1.0\r\n"
        req += f"Host: {self.host}\r\n"
        req += f"User-Agent: {USER_AGENT}\r\n"
        req += "Connection: close\r\n"
        req += "\r\n"
        try:
            sock.sendall(req.encode("utf8"))
            with sock.makefile("rb") as resp:
                return read_response(resp)
        finally:
            sock.close()

    def resolve(self, url: str) -> "URL":
        """Resolve a relative or protocol-relative URL against this URL."""
        if "://" in url:
            return URL(url)
        if url.startswith("//"):
            return URL(self.scheme + ":" + url)
        if self.scheme == "file":
            base = os.path.dirname(self.path)
            return URL("file://" + os.path.join(base, url))
        if not url.startswith("/"):
            dir_path, _ = self.path.rsplit("/", 1)
            while url.startswith("../"):
                _, url = url.split("/", 1)
                if "/" in dir_path:
                    dir_path, _ = dir_path.rsplit("/", 1)
            url = dir_path + "/" + url
        return URL(f"{self.scheme}://{self.host}:{self.port}{url}")

    def __str__(self) -> str:
        if self.scheme == "file":
            return "file://" + self.path
        show_port = (
            (self.scheme == "http" and self.port != 80)
            or (self.scheme == "https" and self.port != 443)
        )
        port = f":{self.port}" if show_port else ""
        return f"{self.scheme}://{self.host}{port}{self.path}"


def read_response(resp: BinaryIO) -> Tuple[int, Dict[str, str], bytes]:
    """Parse an HTTP/1.x response from a binary file object."""
    statusline = resp.readline().decode("latin-1")
    parts = statusline.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/"):
        raise FetchError(f"Malformed status line: {statusline.strip()!r}")
    try:
        status = int(parts[1])
    except ValueError:
        raise FetchError(f"Malformed status line: {statusline.strip()!r}") from None
    headers: Dict[str, str] = {}
    while True:
        line = resp.readline().decode("latin-1")
        if line in ("\r\n", "\n", ""):
            break
        if ":" not in line:
            continue
        k, v = line.split(":", 1)
        headers[k.casefold()] = v.strip()
    # HTTP/1.0 with Connection: close, so the body runs to EOF
    body = resp.read()
    return status, headers, body


def file_url(path: str) -> str:
    """Build a ``file://`` URL for ``path`` made absolute."""
    return "file://" + os.path.abspath(path)


def fetch(url: str) -> FetchOutcome:
    """Retrieve ``url``, following redirects, and report the outcome."""
    try:
        target = URL(url)
        for _ in range(MAX_REDIRECTS + 1):
            status, headers, body = target.request()
            location = headers.get("location")
            if status in REDIRECT_STATUSES and location:
                logger.debug("Redirect %d from %s to %s", status, target, location)
                target = target.resolve(location)
                continue
            return FetchSuccess(body, str(target))
        raise FetchError(f"Too many redirects fetching {url}")
    except FetchError as ex:
        logger.warning("Fetch of %s failed: %s", url, ex)
        return FetchFailure(ex)
    except (OSError, ValueError) as ex:
        logger.warning("Fetch of %s failed: %s", url, ex)
        return FetchFailure(FetchError(str(ex) or ex.__class__.__name__))
