"""Tests for volunteer listing and profile endpoints."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from starlette.datastructures import UploadFile as StarletteUploadFile

from oneclick.config import settings
from oneclick.core.security import decode_session_token


async def post_profile(client: AsyncClient, headers: dict, data: dict) -> dict:
    response = await client.put("/api/v1/volunteers/me", json=data, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_profile(
    client: AsyncClient,
    volunteer_headers: dict,
    sample_profile_data: dict,
) -> None:
    """Saving the editor form creates the profile with default reputation."""
    data = await post_profile(client, volunteer_headers, sample_profile_data)

    profile = data["profile"]
    assert profile["rating"] == 5.0
    assert profile["total_bookings"] == 0
    assert profile["hourly_rate"] == 500
    assert [s["name"] for s in profile["skills"]] == ["Cooking", "Tutoring"]
    assert profile["profile_photo"] == "https://img.example.com/vera.png"
    assert data["toast"]["title"] == "Profile Posted Successfully!"

    response = await client.get("/api/v1/volunteers/me", headers=volunteer_headers)
    assert response.json()["id"] == profile["id"]


@pytest.mark.asyncio
async def test_resaving_profile_keeps_one_row(
    client: AsyncClient,
    volunteer_headers: dict,
    client_headers: dict,
    sample_profile_data: dict,
) -> None:
    first = await post_profile(client, volunteer_headers, sample_profile_data)
    second = await post_profile(
        client, volunteer_headers, {**sample_profile_data, "bio": "Updated", "skills": ["Art"]}
    )

    assert first["profile"]["id"] == second["profile"]["id"]

    response = await client.get("/api/v1/volunteers", headers=client_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["skills"] == ["Art"]


@pytest.mark.asyncio
async def test_client_cannot_post_volunteer_profile(
    client: AsyncClient,
    client_headers: dict,
    sample_profile_data: dict,
) -> None:
    response = await client.put("/api/v1/volunteers/me", json=sample_profile_data, headers=client_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_listing_search_skill_and_hidden(
    client: AsyncClient,
    volunteer_headers: dict,
    client_headers: dict,
    sample_profile_data: dict,
) -> None:
    """Hidden volunteers move to the archived view, where filters still apply."""
    created = await post_profile(client, volunteer_headers, sample_profile_data)
    volunteer_id = created["profile"]["id"]

    response = await client.get("/api/v1/volunteers", params={"search": "ALGEBRA"}, headers=client_headers)
    assert response.json()["total"] == 0

    response = await client.get("/api/v1/volunteers", params={"skill": "Cooking"}, headers=client_headers)
    assert response.json()["total"] == 1

    response = await client.put(f"/api/v1/volunteers/hidden/{volunteer_id}", headers=client_headers)
    assert response.json()["hidden"] == [volunteer_id]
    response = await client.put(f"/api/v1/volunteers/hidden/{volunteer_id}", headers=client_headers)
    assert response.json()["hidden"] == [volunteer_id]

    response = await client.get("/api/v1/volunteers", headers=client_headers)
    assert response.json()["total"] == 0

    response = await client.get(
        "/api/v1/volunteers",
        params={"archived": "true", "skill": "Tutoring"},
        headers=client_headers,
    )
    data = response.json()
    assert data["archived"] is True
    assert [v["id"] for v in data["items"]] == [volunteer_id]

    response = await client.delete(f"/api/v1/volunteers/hidden/{volunteer_id}", headers=client_headers)
    assert response.json()["hidden"] == []

    response = await client.get("/api/v1/volunteers/hidden", headers=client_headers)
    assert response.json() == {"hidden": []}


@pytest.mark.asyncio
async def test_volunteer_detail_not_found_offers_way_back(
    client: AsyncClient,
    client_headers: dict,
) -> None:
    response = await client.get(f"/api/v1/volunteers/{uuid4()}", headers=client_headers)
    assert response.status_code == 404
    data = response.json()
    assert data["message"] == "Volunteer not found"
    assert data["action"] == {"label": "Back to Dashboard", "path": "/client-dashboard"}


@pytest.mark.asyncio
async def test_partial_update_with_concurrency_token(
    client: AsyncClient,
    volunteer_headers: dict,
    sample_profile_data: dict,
) -> None:
    created = await post_profile(client, volunteer_headers, sample_profile_data)
    token = created["profile"]["updated_at"]

    response = await client.patch(
        "/api/v1/volunteers/me",
        json={"hourly_rate": 700, "skills": ["Art"], "expected_updated_at": token},
        headers=volunteer_headers,
    )
    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["hourly_rate"] == 700
    assert profile["bio"] == sample_profile_data["bio"]
    assert [s["name"] for s in profile["skills"]] == ["Art"]

    response = await client.patch(
        "/api/v1/volunteers/me",
        json={"bio": "stale write", "expected_updated_at": token},
        headers=volunteer_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_partial_update_without_profile(client: AsyncClient, volunteer_headers: dict) -> None:
    response = await client.patch("/api/v1/volunteers/me", json={"bio": "x"}, headers=volunteer_headers)
    assert response.status_code == 404
    assert response.json()["action"]["path"] == "/volunteer-profile"


@pytest.mark.asyncio
async def test_client_profile_edits_are_acknowledged(client: AsyncClient, client_headers: dict) -> None:
    response = await client.put(
        "/api/v1/volunteers/client-profile",
        json={"name": "Casey", "email": "casey@example.com"},
        headers=client_headers,
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Profile updated successfully!"


@pytest.mark.asyncio
async def test_photo_upload(
    client: AsyncClient,
    volunteer_headers: dict,
    s3_client,
    identity_provider,
) -> None:
    response = await client.post(
        "/api/v1/volunteers/me/photo",
        files={"photo": ("my photo.png", b"\x89PNG fake", "image/png")},
        headers=volunteer_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["path"].startswith("volunteer_uid_1/")
    assert data["path"].endswith("_my_photo.png")
    assert data["url"] == f"https://cdn.example.com/volunteer-photos/{data['path']}"
    assert s3_client.put_object.call_args.kwargs["Bucket"] == "volunteer-photos"
    identity_provider.update_avatar.assert_awaited_once_with("volunteer_uid_1", data["url"])

    refreshed = decode_session_token(data["session_token"])
    assert refreshed.id == "volunteer_uid_1"
    assert refreshed.image_url == data["url"]
    me = await client.get(
        "/api/v1/session",
        headers={**volunteer_headers, "Authorization": f"Bearer {data['session_token']}"},
    )
    assert me.json()["user"]["image_url"] == data["url"]


@pytest.mark.asyncio
async def test_photo_upload_survives_avatar_failure(
    client: AsyncClient,
    volunteer_headers: dict,
    identity_provider,
) -> None:
    identity_provider.update_avatar.side_effect = RuntimeError("provider down")
    response = await client.post(
        "/api/v1/volunteers/me/photo",
        files={"photo": ("me.jpg", b"jpeg", "image/jpeg")},
        headers=volunteer_headers,
    )
    assert response.status_code == 201
    assert response.json()["session_token"] is None


@pytest.mark.asyncio
async def test_photo_too_large(
    client: AsyncClient,
    volunteer_headers: dict,
    s3_client,
    monkeypatch,
) -> None:
    monkeypatch.setattr(settings, "max_photo_bytes", 4)
    response = await client.post(
        "/api/v1/volunteers/me/photo",
        files={"photo": ("me.png", b"too many bytes", "image/png")},
        headers=volunteer_headers,
    )
    assert response.status_code == 422
    s3_client.put_object.assert_not_called()


@pytest.mark.asyncio
async def test_photo_upload_reads_at_most_one_byte_past_limit(
    client: AsyncClient,
    volunteer_headers: dict,
    s3_client,
    monkeypatch,
) -> None:
    read_sizes: list[int] = []
    original_read = StarletteUploadFile.read

    async def recording_read(self, size: int = -1) -> bytes:
        read_sizes.append(size)
        return await original_read(self, size)

    monkeypatch.setattr(StarletteUploadFile, "read", recording_read)
    monkeypatch.setattr(settings, "max_photo_bytes", 4)

    at_limit = await client.post(
        "/api/v1/volunteers/me/photo",
        files={"photo": ("me.png", b"1234", "image/png")},
        headers=volunteer_headers,
    )
    over_limit = await client.post(
        "/api/v1/volunteers/me/photo",
        files={"photo": ("me.png", b"12345", "image/png")},
        headers=volunteer_headers,
    )

    assert at_limit.status_code == 201
    assert over_limit.status_code == 422
    assert read_sizes == [5, 5]
    assert s3_client.put_object.call_count == 1
