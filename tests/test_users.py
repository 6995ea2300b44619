import pytest


@pytest.fixture()
def member(make_user):
    return make_user("user_member")


class TestSync:
    def test_sync_creates_user(self, client, db_session, auth):
        from app.models.user import User, UserRole

        resp = client.post(
            "/api/users/sync",
            json={"email": "new@student.lk", "firstName": "Sanduni", "lastName": "Perera"},
            headers=auth("user_brand_new"),
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["synced"] is True
        assert body["data"]["name"] == "Sanduni Perera"
        assert body["data"]["role"] == "user"

        user = db_session.query(User).filter(User.clerk_id == "user_brand_new").one()
        assert user.role == UserRole.USER
        assert " " in user.anon_name
        assert len(user.anon_avatar_seed) == 16

    def test_sync_is_idempotent(self, client, member, auth):
        resp = client.post("/api/users/sync", json={}, headers=auth(member.clerk_id))
        assert resp.status_code == 200, resp.text
        assert resp.json()["synced"] is False
        assert resp.json()["data"]["id"] == member.id

    def test_sync_falls_back_to_token_claims(self, client, auth):
        resp = client.post(
            "/api/users/sync",
            headers=auth("user_claims_only", email="claims@student.lk", first_name="Kasun"),
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["email"] == "claims@student.lk"
        assert resp.json()["data"]["name"] == "Kasun"

    def test_sync_without_names_is_anonymous(self, client, auth):
        resp = client.post("/api/users/sync", json={}, headers=auth("user_nameless"))
        assert resp.json()["data"]["name"] == "Anonymous"

    def test_invalid_token(self, client):
        resp = client.post("/api/users/sync", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


class TestMe:
    def test_get_me(self, client, member, auth):
        resp = client.get("/api/users", headers=auth(member.clerk_id))
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["clerk_id"] == member.clerk_id

    def test_my_uploads_include_pending(self, client, member, make_document, auth):
        from app.models.document import DocumentStatus

        make_document("Live", uploader_id=member.id)
        make_document("Waiting", uploader_id=member.id, status=DocumentStatus.PENDING)
        make_document("Not mine")

        items = client.get("/api/users/uploads", headers=auth(member.clerk_id)).json()["data"]
        assert sorted(d["title"] for d in items) == ["Live", "Waiting"]

    def test_downloads_liked_saved(self, client, member, make_document, auth):
        doc = make_document("Shared")
        headers = auth(member.clerk_id)
        client.post(f"/api/documents/{doc.id}/download", headers=headers)
        client.post(f"/api/documents/{doc.id}/upvote", headers=headers)
        client.post(f"/api/documents/{doc.id}/save", headers=headers)

        downloads = client.get("/api/users/downloads", headers=headers).json()["data"]
        assert [d["title"] for d in downloads] == ["Shared"]
        assert downloads[0]["has_commented"] is False
        assert [d["id"] for d in client.get("/api/users/liked", headers=headers).json()["data"]] == [doc.id]
        assert [d["id"] for d in client.get("/api/users/saved", headers=headers).json()["data"]] == [doc.id]

    def test_downvoted_not_in_liked(self, client, member, make_document, auth):
        doc = make_document()
        headers = auth(member.clerk_id)
        client.post(f"/api/documents/{doc.id}/downvote", headers=headers)
        assert client.get("/api/users/liked", headers=headers).json()["data"] == []


class TestPublicProfile:
    def test_profile_hides_real_identity(self, client, member, make_document):
        from app.models.document import DocumentStatus

        make_document("Approved A", uploader_id=member.id, downloads=7)
        make_document("Approved B", uploader_id=member.id, downloads=5)
        make_document("Rejected", uploader_id=member.id, downloads=100, status=DocumentStatus.REJECTED)

        resp = client.get(f"/api/users/{member.id}")
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["user"]["anon_name"] == member.anon_name
        assert "email" not in data["user"]
        assert "name" not in data["user"]
        assert data["stats"] == {"totalUploads": 2, "totalDownloads": 12}
        assert len(data["documents"]) == 2

    def test_unknown_user(self, client):
        resp = client.get("/api/users/999999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "User not found"
