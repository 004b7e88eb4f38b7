"""Helpers shared by the end-to-end tests."""

from __future__ import annotations

from typing import Any

from fastapi.testclient import TestClient

ADMIN_TOKEN = "test-admin-token"
AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def create_post(client: TestClient, **fields: Any) -> dict[str, Any]:
    """Create a post through the admin API and return its JSON."""
    body: dict[str, Any] = {
        "title": "Hello World",
        "content": "<p>First post</p>",
        "description": "The first one",
        "author": {"name": "Ada", "email": "ada@example.com"},
        "published_at": "2024-03-05T12:00:00Z",
        "tags": ["python"],
    }
    body.update(fields)
    response = client.post("/admin/api/posts", json=body, headers=AUTH)
    assert response.status_code == 201, response.text
    return response.json()
