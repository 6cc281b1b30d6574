"""
stats.py
Visit statistics for the browsing shell using Matplotlib and Pandas.
"""
import os
import sys
from urllib.parse import urlparse

import matplotlib.pyplot as plt
import pandas as pd

from .history import HISTORY_FILE


def get_domain(url_str: str) -> str:
    url_str = str(url_str)
    if url_str.startswith("file://"):
        return "local"
    if "://" not in url_str:
        url_str = "http://" + url_str
    try:
        return urlparse(url_str).netloc or "unknown"
    except ValueError:
        return "unknown"


def top_domains(history_file: str = HISTORY_FILE, limit: int = 10) -> pd.Series:
    """
    Read the history CSV and count visits per domain, most visited first.
    Returns an empty Series when there is no usable history.
    """
    if not os.path.exists(history_file):
        return pd.Series(dtype="int64")
    try:
        df = pd.read_csv(history_file)
    except pd.errors.EmptyDataError:
        return pd.Series(dtype="int64")
    if df.empty or "url" not in df.columns:
        return pd.Series(dtype="int64")
    df["domain"] = df["url"].apply(get_domain)
    return df["domain"].value_counts().head(limit)


def show_history_stats(history_file: str = HISTORY_FILE) -> None:
    """
    Display a bar chart of the top visited domains using Matplotlib.
    """
    if not os.path.exists(history_file):
        print("No history file found. Browse some pages first!")
        return

    try:
        domain_counts = top_domains(history_file)
    except (OSError, pd.errors.ParserError) as e:
        print(f"Error reading history: {e}")
        return

    if domain_counts.empty:
        print("History is empty or invalid.")
        return

    plt.figure(figsize=(10, 6))
    domain_counts.plot(kind="bar")
    plt.title("Top Visited Domains")
    plt.xlabel("Domain")
    plt.ylabel("Number of Visits")
    plt.xticks(rotation=45, ha="right")
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    show_history_stats(*sys.argv[1:2])
