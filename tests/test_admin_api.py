"""Tests for admin user moderation endpoints."""

import pytest


class TestAdminAccess:
    @pytest.mark.asyncio
    async def test_requires_authentication(self, client):
        assert (await client.get("/admin/users")).status_code == 401

    @pytest.mark.asyncio
    async def test_requires_admin_role(self, client, reader):
        response = await client.get("/admin/users", headers=reader[1])
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"


class TestUsersAPI:
    @pytest.mark.asyncio
    async def test_list_users_with_comment_counts(
        self, client, admin, reader, article, make_comment
    ):
        user, _ = reader
        await make_comment(user, article)
        await make_comment(user, article, is_approved=False)

        response = await client.get("/admin/users", headers=admin[1])
        assert response.status_code == 200
        counts = {u["username"]: u["comment_count"] for u in response.json()}
        assert counts == {"reader": 2, "editor": 0}

    @pytest.mark.asyncio
    async def test_create_user_returns_working_token(self, client, admin, article):
        response = await client.post(
            "/admin/users",
            json={"username": "newbie", "name": "New Bie", "email": "newbie@example.com"},
            headers=admin[1],
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["role"] == "USER"
        token = data["api_token"]

        response = await client.post(
            f"/api/articles/{article.slug}/comments",
            json={"content": "Hello"},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_create_duplicate_user(self, client, admin, reader):
        response = await client.post(
            "/admin/users",
            json={"username": "reader", "name": "Again", "email": "again@example.com"},
            headers=admin[1],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_ban_takes_effect_immediately(self, client, admin, reader, article):
        user, headers = reader
        response = await client.patch(
            f"/admin/users/{user.id}/status", json={"is_banned": True}, headers=admin[1]
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "is_banned": True}

        response = await client.post(
            f"/api/articles/{article.slug}/comments", json={"content": "Hi"}, headers=headers
        )
        assert response.status_code == 403

        await client.patch(
            f"/admin/users/{user.id}/status", json={"is_banned": False}, headers=admin[1]
        )
        response = await client.post(
            f"/api/articles/{article.slug}/comments", json={"content": "Hi"}, headers=headers
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_cannot_ban_self(self, client, admin):
        user, headers = admin
        response = await client.patch(
            f"/admin/users/{user.id}/status", json={"is_banned": True}, headers=headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_change_role(self, client, admin, reader):
        user, headers = reader
        response = await client.patch(
            f"/admin/users/{user.id}/role", json={"role": "ADMIN"}, headers=admin[1]
        )
        assert response.status_code == 200

        assert (await client.get("/admin/users", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_invalid_role(self, client, admin, reader):
        response = await client.patch(
            f"/admin/users/{reader[0].id}/role", json={"role": "OWNER"}, headers=admin[1]
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    @pytest.mark.asyncio
    async def test_cannot_demote_self(self, client, admin):
        user, headers = admin
        response = await client.patch(
            f"/admin/users/{user.id}/role", json={"role": "USER"}, headers=headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_user(self, client, admin):
        response = await client.patch(
            "/admin/users/missing/status", json={"is_banned": True}, headers=admin[1]
        )
        assert response.status_code == 404
        response = await client.patch(
            "/admin/users/missing/role", json={"role": "USER"}, headers=admin[1]
        )
        assert response.status_code == 404


class TestUserDetailAndDelete:
    @pytest.mark.asyncio
    async def test_detail_counts_articles_and_comments(
        self, client, admin, reader, article, make_article, make_comment
    ):
        user, _ = reader
        await make_article(user, slug="reader-post")
        await make_comment(user, article)
        await make_comment(user, article, is_spam=True)

        response = await client.get(f"/admin/users/{user.id}", headers=admin[1])
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "reader"
        assert data["comment_count"] == 2
        assert data["article_count"] == 1

        assert (await client.get("/admin/users/missing", headers=admin[1])).status_code == 404
        assert (await client.get(f"/admin/users/{user.id}", headers=reader[1])).status_code == 403

    @pytest.mark.asyncio
    async def test_delete_user_removes_content_and_likes(
        self, client, admin, reader, article, make_article, make_comment
    ):
        user, headers = reader
        admin_user, admin_headers = admin
        admin_comment = await make_comment(admin_user, article, content="From the editor")
        reply = await make_comment(admin_user, article, parent=await make_comment(user, article))
        own_article = await make_article(user, slug="reader-post")
        await make_comment(admin_user, own_article)

        await client.post(f"/api/comments/{admin_comment.id}/like", headers=headers)
        await client.post(f"/api/articles/{article.slug}/like", headers=headers)

        response = await client.delete(f"/admin/users/{user.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        detail = await client.get(f"/admin/users/{user.id}", headers=admin_headers)
        assert detail.status_code == 404
        assert (await client.get("/api/articles/reader-post")).status_code == 404
        # The deleted user's token no longer authenticates
        response = await client.post(f"/api/articles/{article.slug}/like", headers=headers)
        assert response.status_code == 401

        comments = (await client.get(f"/api/articles/{article.slug}/comments")).json()
        assert [(c["id"], c["likes_count"]) for c in comments] == [(admin_comment.id, 0)]
        liked = await client.get(f"/api/comments/{reply.id}/liked", headers=admin_headers)
        assert liked.status_code == 404

        status = (await client.get(f"/api/articles/{article.slug}/like")).json()
        assert status["likes_count"] == 0

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, client, admin):
        user, headers = admin
        response = await client.delete(f"/admin/users/{user.id}", headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete your own account"

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self, client, admin):
        response = await client.delete("/admin/users/missing", headers=admin[1])
        assert response.status_code == 404
