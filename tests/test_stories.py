"""Tests for story endpoints."""

from fastapi.testclient import TestClient


def create_story(client: TestClient, headers: dict, **fields) -> dict:
    payload = {
        "title": "The Quiet Reef",
        "content": "Once upon a time a little fish found a quiet reef to sleep in.",
        **fields,
    }
    response = client.post("/api/stories", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


def test_create_story_counts_words(client: TestClient, auth_headers: dict):
    """Test word count is derived from the content."""
    story = create_story(client, auth_headers, theme="ocean")
    assert story["word_count"] == 14
    assert story["theme"] == "ocean"
    assert story["is_favorite"] is False
    assert story["last_read_at"] is None
    assert story["illustrations"] == []


def test_create_story_validation(client: TestClient, auth_headers: dict):
    """Test short content and empty titles are rejected."""
    response = client.post(
        "/api/stories", json={"title": "Tiny", "content": "Too short"}, headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.post(
        "/api/stories",
        json={"title": "", "content": "Long enough content for a story."},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_create_story_for_foreign_profile(
    client: TestClient, auth_headers: dict, other_auth_headers: dict
):
    """Test a story cannot be attached to someone else's child."""
    juno = client.post("/api/profiles", json={"name": "Juno"}, headers=other_auth_headers).json()[
        "data"
    ]
    response = client.post(
        "/api/stories",
        json={
            "title": "Borrowed",
            "content": "A story that does not belong here at all.",
            "child_profile_id": juno["id"],
        },
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_list_stories_filters(client: TestClient, auth_headers: dict, other_auth_headers: dict):
    """Test listing by profile and favorites, scoped to the caller."""
    mira = client.post("/api/profiles", json={"name": "Mira"}, headers=auth_headers).json()["data"]
    reef = create_story(client, auth_headers, child_profile_id=mira["id"])
    create_story(client, auth_headers, title="Moon Boots")
    create_story(client, other_auth_headers, title="Someone Else's")
    client.post(f"/api/stories/{reef['id']}/favorite", headers=auth_headers)

    response = client.get("/api/stories", headers=auth_headers)
    assert sorted(s["title"] for s in response.json()["data"]) == ["Moon Boots", "The Quiet Reef"]

    response = client.get(
        "/api/stories", params={"child_profile_id": mira["id"]}, headers=auth_headers
    )
    assert [s["id"] for s in response.json()["data"]] == [reef["id"]]

    response = client.get("/api/stories", params={"favorites": True}, headers=auth_headers)
    assert [s["id"] for s in response.json()["data"]] == [reef["id"]]


def test_list_stories_pagination(client: TestClient, auth_headers: dict):
    """Test skip and limit."""
    for i in range(3):
        create_story(client, auth_headers, title=f"Story {i}")

    response = client.get("/api/stories", params={"skip": 1, "limit": 1}, headers=auth_headers)
    assert len(response.json()["data"]) == 1

    response = client.get("/api/stories", params={"limit": 0}, headers=auth_headers)
    assert response.status_code == 400


def test_update_story_recomputes_word_count(client: TestClient, auth_headers: dict):
    """Test changing the content updates the word count."""
    story = create_story(client, auth_headers)

    response = client.put(
        f"/api/stories/{story['id']}",
        json={"content": "A shorter story about a sleepy fish."},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["word_count"] == 7
    assert data["title"] == "The Quiet Reef"


def test_update_story_title_keeps_word_count(client: TestClient, auth_headers: dict):
    """Test a title-only update does not touch the word count."""
    story = create_story(client, auth_headers)

    response = client.put(
        f"/api/stories/{story['id']}", json={"title": "The Sleepy Reef"}, headers=auth_headers
    )
    data = response.json()["data"]
    assert data["title"] == "The Sleepy Reef"
    assert data["word_count"] == story["word_count"]


def test_toggle_favorite_twice(client: TestClient, auth_headers: dict):
    """Test toggling favorite flips the flag each time."""
    story = create_story(client, auth_headers)

    response = client.post(f"/api/stories/{story['id']}/favorite", headers=auth_headers)
    assert response.json()["data"]["is_favorite"] is True

    response = client.post(f"/api/stories/{story['id']}/favorite", headers=auth_headers)
    assert response.json()["data"]["is_favorite"] is False


def test_mark_as_read_keeps_first_read(client: TestClient, auth_headers: dict):
    """Test the read timestamp is set once and not moved by later reads."""
    story = create_story(client, auth_headers)

    first = client.post(f"/api/stories/{story['id']}/read", headers=auth_headers)
    assert first.status_code == 200
    first_read = first.json()["data"]["last_read_at"]
    assert first_read is not None

    second = client.post(f"/api/stories/{story['id']}/read", headers=auth_headers)
    assert second.json()["data"]["last_read_at"] == first_read


def test_delete_story(client: TestClient, auth_headers: dict):
    """Test deleting a story."""
    story = create_story(client, auth_headers)

    response = client.delete(f"/api/stories/{story['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"message": "Story deleted successfully"},
        "error": None,
    }

    response = client.get(f"/api/stories/{story['id']}", headers=auth_headers)
    assert response.status_code == 404


def test_foreign_story_looks_missing(
    client: TestClient, auth_headers: dict, other_auth_headers: dict
):
    """Test every story operation hides other parents' stories."""
    story = create_story(client, auth_headers)
    missing = client.delete("/api/stories/does-not-exist", headers=other_auth_headers)

    for method, path in [
        ("get", f"/api/stories/{story['id']}"),
        ("delete", f"/api/stories/{story['id']}"),
        ("post", f"/api/stories/{story['id']}/favorite"),
        ("post", f"/api/stories/{story['id']}/read"),
    ]:
        response = client.request(method.upper(), path, headers=other_auth_headers)
        assert response.status_code == 404
        assert response.json() == missing.json()

    response = client.get(f"/api/stories/{story['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_favorite"] is False
