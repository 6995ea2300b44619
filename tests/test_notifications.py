import pytest


@pytest.fixture()
def notif_user(make_user):
    return make_user("user_notif")


def _add(db_session, user, count, type_name="SYSTEM_MESSAGE", **fields):
    from app.models.notification import Notification, NotificationType

    rows = [
        Notification(user_id=user.id, type=NotificationType[type_name], title=f"Note {i}", **fields)
        for i in range(count)
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


# ── Endpoints ─────────────────────────────────────────────────

class TestNotificationEndpoints:
    def test_list_and_unread_count(self, client, notif_user, db_session, auth):
        _add(db_session, notif_user, 3)
        _add(db_session, notif_user, 1, is_read=True)

        resp = client.get("/api/notifications", headers=auth(notif_user.clerk_id))
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert len(data["notifications"]) == 4
        assert data["unreadCount"] == 3

        resp = client.get("/api/notifications/unread-count", headers=auth(notif_user.clerk_id))
        assert resp.json()["data"] == {"count": 3}

    def test_mark_one_read(self, client, notif_user, db_session, auth):
        note = _add(db_session, notif_user, 1)[0]
        resp = client.put(f"/api/notifications/{note.id}/read", headers=auth(notif_user.clerk_id))
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["is_read"] is True

    def test_mark_all_read(self, client, notif_user, db_session, auth):
        _add(db_session, notif_user, 3)
        resp = client.put("/api/notifications/read-all", headers=auth(notif_user.clerk_id))
        assert resp.json()["data"] == {"markedRead": 3}
        assert client.get(
            "/api/notifications/unread-count", headers=auth(notif_user.clerk_id)
        ).json()["data"] == {"count": 0}

    def test_delete(self, client, notif_user, db_session, auth):
        note = _add(db_session, notif_user, 1)[0]
        resp = client.delete(f"/api/notifications/{note.id}", headers=auth(notif_user.clerk_id))
        assert resp.status_code == 200, resp.text
        assert client.get("/api/notifications", headers=auth(notif_user.clerk_id)).json()["data"]["notifications"] == []

    def test_cannot_touch_someone_elses(self, client, notif_user, make_user, db_session, auth):
        other = make_user("user_other")
        note = _add(db_session, other, 1)[0]
        headers = auth(notif_user.clerk_id)
        assert client.put(f"/api/notifications/{note.id}/read", headers=headers).status_code == 404
        assert client.delete(f"/api/notifications/{note.id}", headers=headers).status_code == 404

    def test_requires_auth(self, client):
        assert client.get("/api/notifications").status_code == 401


# ── Daily cap ─────────────────────────────────────────────────

class TestDailyCap:
    def test_sixth_notification_suppressed(self, notif_user, db_session):
        from app.models.notification import NotificationType
        from app.services import notification_service

        _add(db_session, notif_user, 5)
        result = notification_service.create_notification(
            db_session, user_id=notif_user.id, type=NotificationType.COMMENT_RECEIVED, title="Hi",
        )
        assert result is None

    def test_admin_types_always_sent(self, notif_user, db_session):
        from app.models.notification import NotificationType
        from app.services import notification_service

        _add(db_session, notif_user, 5)
        for type_ in (NotificationType.COMPLEMENT, NotificationType.DOCUMENT_REJECTED):
            assert notification_service.should_send_notification(db_session, notif_user.id, type_)

    def test_force_overrides_cap(self, notif_user, db_session):
        from app.models.notification import NotificationType
        from app.services import notification_service

        _add(db_session, notif_user, 5)
        result = notification_service.create_notification(
            db_session, user_id=notif_user.id, type=NotificationType.SYSTEM_MESSAGE, title="Hi", force=True,
        )
        assert result is not None

    def test_old_notifications_do_not_count(self, notif_user, db_session):
        from datetime import datetime, timedelta, timezone

        from app.services import notification_service

        _add(db_session, notif_user, 5, created_at=datetime.now(timezone.utc) - timedelta(days=2))
        assert notification_service.recent_notification_count(db_session, notif_user.id) == 0
