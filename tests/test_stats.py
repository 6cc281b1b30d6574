import matplotlib

matplotlib.use("Agg")

from pbrowse import stats
from pbrowse.history import HistoryLog


def write_history(path, urls):
    log = HistoryLog(str(path))
    for url in urls:
        log.record(url, url)


# --- Stats Tests ---

def test_get_domain():
    """Test mapping URLs to the domain they are counted under."""
    assert stats.get_domain("https://example.com/a") == "example.com"
    assert stats.get_domain("example.com/a") == "example.com"
    assert stats.get_domain("file:///tmp/x.html") == "local"

def test_top_domains_counts_visits(tmp_path):
    """Test that visits are counted per domain, most visited first."""
    path = tmp_path / "history.csv"
    write_history(path, [
        "http://a.com/1",
        "http://b.com/",
        "http://a.com/2",
        "file:///start_page.html",
    ])
    counts = stats.top_domains(str(path))
    assert counts.index[0] == "a.com"
    assert counts["a.com"] == 2
    assert counts["b.com"] == 1
    assert counts["local"] == 1

def test_top_domains_limit(tmp_path):
    """Test that only the requested number of domains is returned."""
    path = tmp_path / "history.csv"
    write_history(path, [f"http://site{i}.com/" for i in range(5)])
    assert len(stats.top_domains(str(path), limit=3)) == 3

def test_top_domains_missing_or_empty(tmp_path):
    """Test that missing and empty history files give no counts."""
    assert stats.top_domains(str(tmp_path / "missing.csv")).empty
    empty = tmp_path / "empty.csv"
    empty.write_text("")
    assert stats.top_domains(str(empty)).empty

def test_show_history_stats_without_history(tmp_path, capsys):
    """Test the message printed when there is no history yet."""
    stats.show_history_stats(str(tmp_path / "missing.csv"))
    assert "No history file found" in capsys.readouterr().out

def test_show_history_stats_plots(tmp_path, monkeypatch):
    """Test that a chart is shown for recorded history."""
    path = tmp_path / "history.csv"
    write_history(path, ["http://a.com/", "http://b.com/"])
    shown = []
    monkeypatch.setattr(stats.plt, "show", lambda: shown.append(True))
    stats.show_history_stats(str(path))
    assert shown == [True]
    stats.plt.close("all")

def test_history_header_written_once(tmp_path):
    """Test that the CSV header is only written for a new file."""
    path = tmp_path / "history.csv"
    write_history(path, ["http://a.com/", "http://b.com/"])
    lines = path.read_text(encoding="utf8").splitlines()
    assert lines[0] == "timestamp,url,title"
    assert len(lines) == 3
