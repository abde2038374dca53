"""Integration tests for the profiles API."""

import pytest
from httpx import AsyncClient

from tests.fakes import FakeSupabase

PNG = b"\x89PNG\r\n\x1a\n" + b"0" * 32


class TestOwnProfile:
    @pytest.mark.asyncio
    async def test_get_me(self, client: AsyncClient, member) -> None:
        response = await client.get("/api/v1/profiles/me", headers=member.headers)

        assert response.status_code == 200
        assert response.json()["full_name"] == "Mia Member"

    @pytest.mark.asyncio
    async def test_suspended_user_can_read_own_profile(self, client: AsyncClient, fake_supabase: FakeSupabase) -> None:
        user = fake_supabase.seed_user("sus@example.com", status="suspended",
                                       suspended_until="2999-01-01T00:00:00+00:00", suspension_reason="spam")
        response = await client.get("/api/v1/profiles/me", headers=user.headers)

        assert response.status_code == 200
        assert response.json()["suspension_reason"] == "spam"

    @pytest.mark.asyncio
    async def test_update_me(self, client: AsyncClient, fake_supabase, member) -> None:
        response = await client.put("/api/v1/profiles/me", headers=member.headers, json={
            "bio": "Hello", "preferred_language": "th",
        })

        assert response.status_code == 200
        assert response.json()["bio"] == "Hello"
        assert fake_supabase.profile(member.id)["preferred_language"] == "th"

    @pytest.mark.asyncio
    async def test_cannot_change_own_role(self, client: AsyncClient, fake_supabase, member) -> None:
        response = await client.put("/api/v1/profiles/me", headers=member.headers, json={
            "role": "admin", "bio": "sneaky",
        })

        assert response.status_code == 200
        assert fake_supabase.profile(member.id)["role"] == "user"

    @pytest.mark.asyncio
    async def test_unsupported_language(self, client: AsyncClient, member) -> None:
        response = await client.put("/api/v1/profiles/me", headers=member.headers, json={"preferred_language": "fr"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_suspended_user_cannot_update(self, client: AsyncClient, fake_supabase) -> None:
        user = fake_supabase.seed_user("sus@example.com", status="suspended",
                                       suspended_until="2999-01-01T00:00:00+00:00")
        response = await client.put("/api/v1/profiles/me", headers=user.headers, json={"bio": "x"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Account is suspended"

    @pytest.mark.asyncio
    async def test_expired_suspension_can_update(self, client: AsyncClient, fake_supabase) -> None:
        user = fake_supabase.seed_user("back@example.com", status="suspended",
                                       suspended_until="2000-01-01T00:00:00+00:00")
        response = await client.put("/api/v1/profiles/me", headers=user.headers, json={"bio": "back"})
        assert response.status_code == 200


class TestAvatar:
    @pytest.mark.asyncio
    async def test_upload_and_delete(self, client: AsyncClient, fake_supabase, member) -> None:
        response = await client.post(
            "/api/v1/profiles/me/avatar",
            headers=member.headers,
            files={"file": ("me.png", PNG, "image/png")},
        )
        assert response.status_code == 200
        avatar_url = response.json()["avatar_url"]
        assert avatar_url.endswith(".png")
        assert fake_supabase.profile(member.id)["avatar_url"] == avatar_url

        response = await client.delete("/api/v1/profiles/me/avatar", headers=member.headers)
        assert response.status_code == 200
        assert response.json()["avatar_url"] is None
        assert fake_supabase.storage.files == {}

    @pytest.mark.asyncio
    async def test_rejects_non_image(self, client: AsyncClient, member) -> None:
        response = await client.post(
            "/api/v1/profiles/me/avatar",
            headers=member.headers,
            files={"file": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 400


class TestSearch:
    @pytest.mark.asyncio
    async def test_search(self, client: AsyncClient, fake_supabase, member) -> None:
        fake_supabase.add_profile("u-2", "bob@example.com", full_name="Bob Builder")
        response = await client.get("/api/v1/profiles/search", params={"q": "bob"}, headers=member.headers)

        assert response.status_code == 200
        assert [p["email"] for p in response.json()] == ["bob@example.com"]

    @pytest.mark.asyncio
    async def test_search_requires_auth(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/profiles/search", params={"q": "bob"})
        assert response.status_code == 401
