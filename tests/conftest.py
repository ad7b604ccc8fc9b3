"""
Shared fixtures: a throwaway sqlite store, an app built around it, and a
TestClient that already carries a visitor cookie.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cromatizate import create_app
from cromatizate.analyzer import ImageAnalyzer
from cromatizate.config import AppConfig
from cromatizate.db import Store

VISITOR_ID = "visitor-test-0001"
ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "cromatizate.yaml"
    path.write_text(
        "server:\n"
        "  log_level: debug\n"
        "security:\n"
        f"  default_token: {ADMIN_TOKEN}\n"
        "storage:\n"
        f"  db_path: {tmp_path / 'test.db'}\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def config(config_path, monkeypatch):
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    return AppConfig(config_path=config_path)


@pytest.fixture
def store(config):
    return Store(config.get("storage.db_path"))


@pytest.fixture
def app(config, store):
    return create_app(config=config, store=store, analyzer=ImageAnalyzer())


@pytest.fixture
def client(app):
    # must match VISITOR_ID in test_routes.py
    with TestClient(app, cookies={"visitor_id": VISITOR_ID}) as c:
        yield c


@pytest.fixture
def anonymous_client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
