# tests/v1/test_bookmarks.py
"""Tests for bookmark endpoints."""

import inspect
import threading
import time

from fastapi import status

from reeltalk.services.locks import BOOKMARK_LOCKS


def test_toggle_post_bookmark(client, auth_token, test_post) -> None:
    url = f"/api/v1/posts/{test_post.id}/bookmark"

    assert client.post(url, headers=auth_token).json() == {"bookmarked": True}
    assert client.get(url, headers=auth_token).json() == {"bookmarked": True}
    assert client.post(url, headers=auth_token).json() == {"bookmarked": False}
    assert client.get(url, headers=auth_token).json() == {"bookmarked": False}


def test_anonymous_status_and_toggle(client, test_post) -> None:
    url = f"/api/v1/posts/{test_post.id}/bookmark"

    assert client.get(url).json() == {"bookmarked": False}
    assert client.post(url).status_code == status.HTTP_401_UNAUTHORIZED


def test_missing_targets(client, auth_token) -> None:
    assert client.get("/api/v1/posts/999/bookmark", headers=auth_token).status_code == 404
    assert client.post("/api/v1/replies/999/bookmark", headers=auth_token).status_code == 404


def test_list_saved_posts(client, auth_token, make_post) -> None:
    first, second = make_post(), make_post()
    client.post(f"/api/v1/posts/{first.id}/bookmark", headers=auth_token)
    client.post(f"/api/v1/posts/{second.id}/bookmark", headers=auth_token)

    body = client.get("/api/v1/bookmarks", params={"limit": 1}, headers=auth_token).json()

    assert [post["id"] for post in body["posts"]] == [second.id]
    assert body["replies"] is None
    assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "total_pages": 2}


def test_list_saved_replies(client, auth_token, test_reply) -> None:
    client.post(f"/api/v1/replies/{test_reply.id}/bookmark", headers=auth_token)

    body = client.get(
        "/api/v1/bookmarks", params={"target_type": "reply"}, headers=auth_token
    ).json()

    assert [reply["id"] for reply in body["replies"]] == [test_reply.id]
    assert body["replies"][0]["bookmarked_at"]


def test_list_requires_auth(client) -> None:
    assert client.get("/api/v1/bookmarks").status_code == status.HTTP_401_UNAUTHORIZED


def test_list_bad_page(client, auth_token) -> None:
    response = client.get("/api/v1/bookmarks", params={"page": 0}, headers=auth_token)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_handlers_run_in_threadpool(app) -> None:
    """Blocking service handlers must not be coroutines, or they stall the event loop."""
    api_routes = [route for route in app.routes if getattr(route, "path", "").startswith("/api/v1")]

    assert api_routes
    for route in api_routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path


def test_waiting_toggle_does_not_block_other_requests(client, auth_token, user_id, test_post) -> None:
    key = (user_id, "post", test_post.id)
    results = {}

    def toggle() -> None:
        results["toggle"] = client.post(f"/api/v1/posts/{test_post.id}/bookmark", headers=auth_token)

    def health() -> None:
        results["health"] = client.get("/health")

    with BOOKMARK_LOCKS.hold(key):
        waiting = threading.Thread(target=toggle)
        waiting.start()
        deadline = time.monotonic() + 5
        while BOOKMARK_LOCKS._locks.get(key, [None, 0])[1] < 2 and time.monotonic() < deadline:
            time.sleep(0.01)

        other = threading.Thread(target=health)
        other.start()
        other.join(timeout=5)
        assert "health" in results
        assert "toggle" not in results

    waiting.join(timeout=5)
    assert results["toggle"].json() == {"bookmarked": True}
