#!/usr/bin/env python3
"""Test the shared helpers and page pieces."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from datetime import datetime, timedelta, timezone

from fasthtml.common import to_xml

from starbknd.ui import DATASTAR_URL, Layout, Trash
from starbknd.utils import format_date, is_url


def test_is_url():
    assert is_url("https://github.com/bknd-io/bknd")
    assert is_url("http://localhost:3000")
    assert not is_url("just some words")
    assert not is_url("example.com")
    assert not is_url("https://exa mple.com")
    assert not is_url("")
    print("✓ URLs detected")


def test_format_date():
    assert format_date(datetime(2025, 10, 19, 14, 5), tz=timezone.utc) == "Oct 19, 2:05 PM"
    assert format_date("2025-01-02T00:30:00", tz=timezone.utc) == "Jan 2, 12:30 AM"
    assert format_date(None) == ""
    assert format_date("yesterday") == ""
    print("✓ Dates formatted")


def test_format_date_converts_stored_utc():
    """Naive timestamps are UTC and shown in the requested zone."""
    berlin_summer = timezone(timedelta(hours=2))
    assert format_date(datetime(2025, 10, 19, 23, 30), tz=berlin_summer) == "Oct 20, 1:30 AM"
    aware = datetime(2025, 10, 19, 14, 5, tzinfo=berlin_summer)
    assert format_date(aware, tz=timezone.utc) == "Oct 19, 12:05 PM"
    print("✓ Stored UTC converted")


def test_layout():
    title, main = Layout("content", title="Microblog")
    assert "Microblog" in to_xml(title)
    assert "content" in to_xml(main)
    assert "Home" in to_xml(Layout("x")[0])
    assert "datastar" in DATASTAR_URL
    assert "trash" in to_xml(Trash())
    print("✓ Layout pieces render")
