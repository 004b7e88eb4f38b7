"""Fixtures for end-to-end tests against a SQLite database."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scribe.api.app import create_app
from scribe.config import Settings
from tests.integration.helpers import ADMIN_TOKEN


@pytest.fixture
def config(tmp_path: Path) -> Settings:
    """Settings for a blog at /blog backed by a fresh database file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'scribe.db'}",
        admin_token=ADMIN_TOKEN,
        enable_metrics=False,
        blog_title="Test Blog",
        blog_url="https://example.com",
        page_size=2,
        recaptcha_site_key=None,
        recaptcha_secret_key=None,
        akismet_api_key=None,
        comments_noreply_email=None,
    )


@pytest.fixture
def app(config: Settings) -> FastAPI:
    return create_app(config)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Client with the app's lifespan (table creation) running."""
    with TestClient(app) as client:
        yield client

