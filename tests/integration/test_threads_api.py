"""
Integration tests for thread, model and file endpoints.
"""

import pytest


@pytest.mark.asyncio
async def test_thread_endpoints_require_auth(client):
    response = await client.get("/api/threads")

    assert response.status_code == 401
    assert response.json() == {"error": "Authorization header required"}


@pytest.mark.asyncio
async def test_create_list_update_delete_thread(client, auth_headers):
    created = await client.post(
        "/api/thread", json={"title": "Plans", "modelMode": "creative"}, headers=auth_headers
    )
    assert created.status_code == 201
    thread_id = created.json()["threadId"]
    assert created.json()["settings"]["model"] == "creative"

    listing = await client.get("/api/threads", headers=auth_headers)
    assert listing.status_code == 200
    assert listing.json()["pagination"]["total"] == 1
    assert listing.json()["threads"][0]["title"] == "Plans"

    updated = await client.patch(
        f"/api/thread/{thread_id}", json={"pinned": True, "tags": ["Work"]}, headers=auth_headers
    )
    assert updated.json()["pinned"] is True
    assert updated.json()["tags"] == ["work"]

    deleted = await client.delete(f"/api/thread/{thread_id}", headers=auth_headers)
    assert deleted.json()["success"] is True

    missing = await client.get(f"/api/thread/{thread_id}", headers=auth_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_threads_are_owner_scoped(client, auth_headers):
    created = await client.post("/api/thread", headers=auth_headers)
    thread_id = created.json()["threadId"]

    response = await client.get(
        f"/api/thread/{thread_id}", headers={"Authorization": "Bearer test_user"}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_model_mode_is_400(client, auth_headers):
    response = await client.post("/api/thread", json={"modelMode": "turbo"}, headers=auth_headers)

    assert response.status_code == 400
    assert "turbo" in response.json()["error"]


@pytest.mark.asyncio
async def test_edit_last_message(client, auth_headers):
    chat = await client.post("/api/chat", json={"message": "Hello"}, headers=auth_headers)
    thread_id = chat.json()["threadId"]

    edited = await client.patch(
        f"/api/thread/{thread_id}/messages/last", json={"content": "Edited"}, headers=auth_headers
    )

    last = edited.json()["messages"][-1]
    assert last["content"] == "Edited"
    assert last["metadata"]["edited"] is True


@pytest.mark.asyncio
async def test_models_listing_and_preference(client, auth_headers):
    models = await client.get("/api/models")
    by_mode = {m["mode"]: m for m in models.json()["models"]}
    assert by_mode["fast"]["available"] is True
    assert by_mode["creative"]["available"] is False

    saved = await client.put(
        "/api/models/preference", json={"modelMode": "creative"}, headers=auth_headers
    )
    assert saved.json()["preference"] == "creative"

    current = await client.get("/api/models/preference", headers=auth_headers)
    assert current.json()["preference"] == "creative"

    invalid = await client.put(
        "/api/models/preference", json={"modelMode": "nope"}, headers=auth_headers
    )
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_file_analysis_roundtrip(client):
    response = await client.post(
        "/api/files/analyze",
        files={"file": ("notes.txt", b"Remember the milk", "text/plain")},
    )

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["analysis"] == "Hi there!"
    assert data["extractionMethod"] == "text"
    assert data["metadata"]["contentLength"] == 17


@pytest.mark.asyncio
async def test_file_analysis_rejects_unsupported_and_large(client):
    unsupported = await client.post(
        "/api/files/analyze",
        files={"file": ("clip.mp4", b"\x00\x00", "video/mp4")},
    )
    assert unsupported.status_code == 400
    assert "error" in unsupported.json()

    too_large = await client.post(
        "/api/files/analyze",
        files={"file": ("big.txt", b"x" * 2048, "text/plain")},
    )
    assert too_large.status_code == 413


@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(client):
    response = await client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
