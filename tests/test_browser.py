import io

import pytest

from pbrowse import networking
from pbrowse.extractor import FragmentExtractor, extract
from pbrowse.fragments import Fragment
from pbrowse.networking import URL, FetchError, FetchFailure, FetchSuccess, fetch, file_url, read_response

# --- Networking Tests ---

def test_url_creation():
    """Test that URLs are parsed into scheme, host, port, and path correctly."""
    # Test HTTP default port
    url1 = URL("http://example.com/index.html")
    assert url1.scheme == "http"
    assert url1.host == "example.com"
    assert url1.port == 80
    assert url1.path == "/index.html"

    # Test HTTPS default port
    url2 = URL("https://google.com")
    assert url2.scheme == "https"
    assert url2.port == 443
    assert url2.path == "/"  # Should default to /

    # Test custom port
    url3 = URL("http://localhost:8080/debug")
    assert url3.host == "localhost"
    assert url3.port == 8080

def test_file_url_creation(tmp_path):
    """Test that file URLs keep an absolute path and print back unchanged."""
    path = tmp_path / "page.html"
    url = URL("file://" + str(path))
    assert url.scheme == "file"
    assert url.path == str(path)
    assert str(url) == "file://" + str(path)
    assert file_url(str(path)) == "file://" + str(path)

def test_bad_urls_raise_fetch_error():
    """Test that unsupported or malformed URLs are rejected."""
    with pytest.raises(FetchError):
        URL("ftp://example.com/")
    with pytest.raises(FetchError):
        URL("example.com")
    with pytest.raises(FetchError):
        URL("http://example.com:notaport/")

def test_url_resolution():
    """Test resolving relative URLs against a base URL."""
    base = URL("http://example.com/dir/page.html")

    # Relative path
    res1 = base.resolve("image.png")
    assert str(res1) == "http://example.com/dir/image.png"

    # Absolute path
    res2 = base.resolve("/home")
    assert str(res2) == "http://example.com/home"

    # Full URL
    res3 = base.resolve("https://other.com/foo")
    assert str(res3) == "https://other.com/foo"

    # Parent directory (..)
    res4 = base.resolve("../style.css")
    assert str(res4) == "http://example.com/style.css"

def test_read_response():
    """Test parsing a raw HTTP response into status, headers and body."""
    raw = b"HTTP/1.0 301 Moved\r\nLocation: /new\r\nX-Thing: a: b\r\n\r\n<p>moved</p>"
    status, headers, body = read_response(io.BytesIO(raw))
    assert status == 301
    assert headers["location"] == "/new"
    assert headers["x-thing"] == "a: b"
    assert body == b"<p>moved</p>"

def test_read_response_rejects_garbage():
    """Test that a response without a status line is an error."""
    with pytest.raises(FetchError):
        read_response(io.BytesIO(b"garbage\r\n\r\n"))

def test_fetch_file(tmp_path):
    """Test fetching a local file returns its bytes."""
    path = tmp_path / "page.html"
    path.write_bytes(b"<p>local</p>")
    outcome = fetch(file_url(str(path)))
    assert isinstance(outcome, FetchSuccess)
    assert outcome.body == b"<p>local</p>"

def test_fetch_missing_file_is_failure(tmp_path):
    """Test that a missing file becomes a failure instead of an exception."""
    outcome = fetch(file_url(str(tmp_path / "missing.html")))
    assert isinstance(outcome, FetchFailure)
    assert outcome.message

def test_fetch_unsupported_scheme_is_failure():
    """Test that unsupported schemes are reported as failures."""
    outcome = fetch("gopher://example.com/")
    assert isinstance(outcome, FetchFailure)
    assert "Unsupported scheme" in outcome.message

def test_fetch_follows_redirects(monkeypatch):
    """Test that redirects are followed, resolving relative locations."""
    responses = {
        "http://example.com/": (302, {"location": "/next"}, b""),
        "http://example.com/next": (301, {"location": "https://other.com/final"}, b""),
        "https://other.com/final": (200, {}, b"<p>done</p>"),
    }
    monkeypatch.setattr(URL, "request", lambda self: responses[str(self)])
    outcome = fetch("http://example.com/")
    assert outcome == FetchSuccess(b"<p>done</p>", "https://other.com/final")

def test_fetch_redirect_loop_is_failure(monkeypatch):
    """Test that a redirect loop gives up after the redirect limit."""
    calls = []

    def loop(self):
        calls.append(str(self))
        return 302, {"location": "/again"}, b""

    monkeypatch.setattr(URL, "request", loop)
    outcome = fetch("http://example.com/again")
    assert isinstance(outcome, FetchFailure)
    assert "Too many redirects" in outcome.message
    assert len(calls) == networking.MAX_REDIRECTS + 1

def test_fetch_socket_error_is_failure(monkeypatch):
    """Test that socket errors become failures."""
    def refuse(self):
        raise ConnectionRefusedError("Connection refused")

    monkeypatch.setattr(URL, "request", refuse)
    outcome = fetch("http://localhost:1/")
    assert isinstance(outcome, FetchFailure)
    assert "refused" in outcome.message

def test_error_page_body_is_returned(monkeypatch):
    """Test that a non-redirect error status still returns its body."""
    monkeypatch.setattr(URL, "request", lambda self: (404, {}, b"<h1>Not Found</h1>"))
    outcome = fetch("http://example.com/missing")
    assert isinstance(outcome, FetchSuccess)
    assert outcome.body == b"<h1>Not Found</h1>"


# --- Extractor Tests ---

def test_extract_empty():
    """Test that empty input yields no fragments."""
    assert extract(b"") == []
    assert extract("") == []

def test_extract_simple_text():
    """Test that tags split text and carry no link."""
    assert extract(b"<p>hello</p>") == [Fragment("hello", "")]

def test_extract_link():
    """Test that text inside an anchor carries its href."""
    assert extract(b'<a href="http://x">click</a>') == [Fragment("click", "http://x")]

def test_extract_every_tag_splits():
    """Test that any tag ends the current text run."""
    assert extract(b"plain<br>text") == [Fragment("plain"), Fragment("text")]

def test_extract_text_is_verbatim():
    """Test that whitespace and entities are kept as they are."""
    frags = extract(b"<p> a  b &amp; c\n</p>")
    assert frags == [Fragment(" a  b &amp; c\n")]

def test_extract_text_after_link():
    """Test that closing an anchor stops links on following text."""
    frags = extract(b'before <a href="/x">in</a> after')
    assert frags == [Fragment("before "), Fragment("in", "/x"), Fragment(" after")]

def test_extract_link_spanning_tags():
    """Test that every run inside an open anchor gets its href."""
    frags = extract(b'<a href="/x"><b>bold</b> plain</a>')
    assert frags == [Fragment("bold", "/x"), Fragment(" plain", "/x")]

def test_extract_nested_anchors_are_not_a_stack():
    """Test that the most recent anchor wins and any close clears it."""
    frags = extract(b'<a href="1">x<a href="2">y</a>z</a>w')
    assert frags == [
        Fragment("x", "1"),
        Fragment("y", "2"),
        Fragment("z"),
        Fragment("w"),
    ]

def test_extract_single_quoted_href_ignored():
    """Test that single-quoted href values are not extracted."""
    assert extract(b"<a href='http://x'>t</a>") == [Fragment("t")]

def test_extract_unquoted_href_ignored():
    """Test that unquoted href values are not extracted."""
    assert extract(b"<a href=http://x>t</a>") == [Fragment("t")]

def test_extract_missing_href_keeps_previous():
    """Test that an anchor without href reuses the last href seen."""
    frags = extract(b'<a href="p">one</a> <a name="n">two</a>')
    assert frags == [Fragment("one", "p"), Fragment(" "), Fragment("two", "p")]

def test_extract_href_found_after_anchor_tag():
    """Test that an anchor without href takes the next href in the document."""
    frags = extract(b'<a>one</a><a href="x">two</a>')
    assert frags == [Fragment("one", "x"), Fragment("two", "x")]

def test_extract_href_quote_need_not_follow_directly():
    """Test that the first double quote after href= opens the value."""
    assert extract(b'<a href= "x">t</a>') == [Fragment("t", "x")]

def test_extract_tag_names_case_insensitive():
    """Test that tag names match regardless of case."""
    assert extract(b'<A href="x">t</A>u') == [Fragment("t", "x"), Fragment("u")]

def test_extract_href_attribute_case_sensitive():
    """Test that HREF= is not recognized as href=."""
    assert extract(b'<a HREF="x">t</a>') == [Fragment("t")]

def test_extract_stray_close_bracket_dropped():
    """Test that a '>' outside a tag is consumed."""
    assert extract(b"a>b") == [Fragment("ab")]

def test_extract_unterminated_tag_swallows_rest():
    """Test that an unterminated tag hides the rest of the input."""
    assert extract(b"text<b unterminated") == [Fragment("text")]

def test_extract_invalid_utf8_is_replaced():
    """Test that undecodable bytes degrade to replacement characters."""
    assert extract(b"\xffok") == [Fragment("�ok")]

def test_extract_is_deterministic():
    """Test that extracting the same input twice gives the same result."""
    raw = b'<html><a href="/a">A</a> and <a href="/b">B</a></html>'
    assert extract(raw) == extract(raw)

def test_get_href():
    """Test reading the href out of raw tag text."""
    assert FragmentExtractor.get_href('<a class="c" href="/x"') == "/x"
    assert FragmentExtractor.get_href('<a href="/x') is None
    assert FragmentExtractor.get_href("<a name=y") is None
    body = '<a href="/a">A</a><a href="/b">B</a>'
    assert FragmentExtractor.get_href(body, body.index("</a>")) == "/b"
