#!/usr/bin/env python3
"""Test the static landing page."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from starlette.testclient import TestClient

from examples.landing.main import create_app


def test_landing_page(workdir):
    with TestClient(create_app()) as client:
        page = client.get("/")
    assert page.status_code == 200
    assert "Hello!" in page.text
    assert "<title>Home</title>" in page.text
    assert "datastar" in page.text
    print("✓ Landing page rendered")
