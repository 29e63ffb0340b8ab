# tests/test_admin.py — Admin console: roster, invitations, settings, messages, audit
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func, update

import notifier
from models import (
    AuditLog, AuditEventType, BoardNote, Invitation, Partnership, TaggedMember, User, utcnow,
)
from tests.conftest import get_auth_headers


async def invite(client: AsyncClient, admin_user, email="newmember@partner.io", **extra):
    return await client.post("/api/v1/admin/invitations", headers=get_auth_headers(admin_user),
                             json={"email": email, **extra})


async def invitation_token(db_session, invitation_id: str) -> str:
    result = await db_session.execute(select(Invitation.token).where(Invitation.id == invitation_id))
    return result.scalar_one()


@pytest.mark.asyncio
class TestAdminAccess:
    @pytest.mark.parametrize("path", [
        "/api/v1/admin/board-members",
        "/api/v1/admin/settings",
        "/api/v1/admin/invitations",
        "/api/v1/admin/messages",
        "/api/v1/admin/audit",
    ])
    async def test_board_member_forbidden(self, client: AsyncClient, board_user, path):
        res = await client.get(path, headers=get_auth_headers(board_user))
        assert res.status_code == 403

    async def test_founder_forbidden(self, client: AsyncClient, founder_user):
        res = await client.get("/api/v1/admin/board-members", headers=get_auth_headers(founder_user))
        assert res.status_code == 403


@pytest.mark.asyncio
class TestBoardRoster:
    async def test_add_and_list(self, client: AsyncClient, admin_user, board_user):
        headers = get_auth_headers(admin_user)
        res = await client.post("/api/v1/admin/board-members", headers=headers, json={
            "name": "Lena Park",
            "email": "Lena@Partner.io",
            "password": "BoardPass123",
            "specialty": "Consumer & Marketplaces",
        })
        assert res.status_code == 201
        assert res.json()["role"] == "board"
        assert res.json()["email"] == "lena@partner.io"

        roster = await client.get("/api/v1/admin/board-members", headers=headers)
        assert [m["name"] for m in roster.json()] == ["Sarah Kingston", "Lena Park"]

        login = await client.post("/api/v1/auth/login", json={"email": "lena@partner.io", "password": "BoardPass123"})
        assert login.status_code == 200

    async def test_duplicate_email_conflicts(self, client: AsyncClient, admin_user, board_user):
        res = await client.post("/api/v1/admin/board-members", headers=get_auth_headers(admin_user), json={
            "name": "Sarah Again",
            "email": "sarah@partner.io",
            "password": "BoardPass123",
        })
        assert res.status_code == 409

    async def test_remove_keeps_authored_content(self, client: AsyncClient, admin_user, board_user, submission,
                                                 founder_user, db_session):
        board = get_auth_headers(board_user)
        await client.post(f"/api/v1/submissions/{submission.id}/notes", headers=board,
                          json={"text": "Worth a second look", "founder_visible": True})
        await client.post(f"/api/v1/submissions/{submission.id}/partner", headers=board)
        await client.post(f"/api/v1/submissions/{submission.id}/tag", headers=board, json={"user_id": board_user.id})

        res = await client.delete(f"/api/v1/admin/board-members/{board_user.id}", headers=get_auth_headers(admin_user))
        assert res.status_code == 200
        assert res.json() == {"status": "deleted", "user_id": board_user.id}

        users = await db_session.execute(select(func.count(User.id)).where(User.id == board_user.id))
        assert users.scalar() == 0
        partnerships = await db_session.execute(select(func.count(Partnership.id)))
        assert partnerships.scalar() == 0
        tags = await db_session.execute(select(func.count(TaggedMember.id)))
        assert tags.scalar() == 0
        authors = await db_session.execute(select(BoardNote.user_id))
        assert authors.scalars().all() == [None]

        detail = await client.get(f"/api/v1/submissions/{submission.id}", headers=get_auth_headers(founder_user))
        note = detail.json()["notes"][0]
        assert note["text"] == "Worth a second look"
        assert note["author_name"] is None
        assert detail.json()["partner_count"] == 0

    async def test_cannot_remove_non_board_user(self, client: AsyncClient, admin_user, founder_user):
        res = await client.delete(f"/api/v1/admin/board-members/{founder_user.id}",
                                  headers=get_auth_headers(admin_user))
        assert res.status_code == 404


@pytest.mark.asyncio
class TestSettings:
    async def test_upsert_settings(self, client: AsyncClient, admin_user, db_session):
        headers = get_auth_headers(admin_user)
        first = await client.put("/api/v1/admin/settings", headers=headers,
                                 json={"submissions_open": True, "max_partners": 3})
        assert first.json() == {"max_partners": 3, "submissions_open": True}

        second = await client.put("/api/v1/admin/settings", headers=headers, json={"submissions_open": False})
        assert second.json() == {"max_partners": 3, "submissions_open": False}

        fetched = await client.get("/api/v1/admin/settings", headers=headers)
        assert fetched.json() == second.json()

        audit = await db_session.execute(
            select(func.count(AuditLog.id)).where(AuditLog.event_type == AuditEventType.SETTINGS_UPDATED)
        )
        assert audit.scalar() == 2

    async def test_empty_settings_rejected(self, client: AsyncClient, admin_user):
        res = await client.put("/api/v1/admin/settings", headers=get_auth_headers(admin_user), json={})
        assert res.status_code == 400


@pytest.mark.asyncio
class TestInvitations:
    async def test_invite_emails_link(self, client: AsyncClient, admin_user, outbox, db_session):
        res = await invite(client, admin_user, name="Lena Park", specialty="Consumer")
        assert res.status_code == 201
        data = res.json()
        assert data["status"] == "pending"
        assert "token" not in data

        await notifier.drain()
        assert len(outbox) == 1
        assert outbox[0]["to"] == "newmember@partner.io"
        token = await invitation_token(db_session, data["id"])
        assert f"accept-invitation?token={token}" in outbox[0]["html"]

    async def test_accept_creates_board_member(self, client: AsyncClient, admin_user, db_session):
        invitation_id = (await invite(client, admin_user, name="Lena Park", specialty="Consumer")).json()["id"]
        token = await invitation_token(db_session, invitation_id)

        res = await client.post("/api/v1/auth/accept-invitation", json={"token": token, "password": "LenaPass123"})
        assert res.status_code == 201
        user = res.json()["user"]
        assert user["role"] == "board"
        assert user["name"] == "Lena Park"
        assert user["specialty"] == "Consumer"

        again = await client.post("/api/v1/auth/accept-invitation", json={"token": token, "password": "LenaPass123"})
        assert again.status_code == 404

        listed = await client.get("/api/v1/admin/invitations", headers=get_auth_headers(admin_user),
                                  params={"status": "accepted"})
        assert [i["id"] for i in listed.json()] == [invitation_id]

    async def test_expired_invitation(self, client: AsyncClient, admin_user, db_session):
        invitation_id = (await invite(client, admin_user, name="Late Comer")).json()["id"]
        await db_session.execute(
            update(Invitation).where(Invitation.id == invitation_id).values(expires_at=utcnow() - timedelta(hours=1))
        )
        await db_session.commit()
        token = await invitation_token(db_session, invitation_id)

        res = await client.post("/api/v1/auth/accept-invitation", json={"token": token, "password": "LatePass123"})
        assert res.status_code == 400
        assert res.json()["detail"] == "Invitation has expired"

    async def test_duplicate_and_registered_emails(self, client: AsyncClient, admin_user, board_user):
        await invite(client, admin_user)
        pending = await invite(client, admin_user, email="NewMember@partner.io")
        registered = await invite(client, admin_user, email="sarah@partner.io")
        assert pending.status_code == 409
        assert registered.status_code == 409

    async def test_revoke(self, client: AsyncClient, admin_user, db_session):
        headers = get_auth_headers(admin_user)
        invitation_id = (await invite(client, admin_user)).json()["id"]
        token = await invitation_token(db_session, invitation_id)

        res = await client.delete(f"/api/v1/admin/invitations/{invitation_id}", headers=headers)
        assert res.status_code == 200
        assert res.json()["status"] == "revoked"

        twice = await client.delete(f"/api/v1/admin/invitations/{invitation_id}", headers=headers)
        assert twice.status_code == 409

        accept = await client.post("/api/v1/auth/accept-invitation", json={"token": token, "password": "Whatever123"})
        assert accept.status_code == 404

        # A revoked invitation no longer blocks a fresh one
        assert (await invite(client, admin_user)).status_code == 201


@pytest.mark.asyncio
class TestAdminMessages:
    async def test_message_lands_in_inbox(self, client: AsyncClient, admin_user, founder_user, outbox):
        sent = await client.post("/api/v1/admin/messages", headers=get_auth_headers(admin_user), json={
            "recipient_id": founder_user.id,
            "subject": "Welcome",
            "body": "Glad to have you on the platform.",
        })
        assert sent.status_code == 201
        assert sent.json()["recipient_name"] == "Amara Okafor"

        await notifier.drain()
        assert [m["subject"] for m in outbox] == ["[Partner] Welcome"]

        founder = get_auth_headers(founder_user)
        inbox = await client.get("/api/v1/messages", headers=founder)
        assert [m["subject"] for m in inbox.json()] == ["Welcome"]
        assert inbox.json()[0]["is_read"] is False
        assert inbox.json()[0]["sender_name"] == "Admin User"

        read = await client.post(f"/api/v1/messages/{sent.json()['id']}/read", headers=founder)
        assert read.json()["is_read"] is True

        unread = await client.get("/api/v1/messages", headers=founder, params={"unread_only": True})
        assert unread.json() == []

        outgoing = await client.get("/api/v1/admin/messages", headers=get_auth_headers(admin_user))
        assert len(outgoing.json()) == 1

    async def test_cannot_read_someone_elses_message(self, client: AsyncClient, admin_user, founder_user,
                                                     other_founder):
        sent = await client.post("/api/v1/admin/messages", headers=get_auth_headers(admin_user), json={
            "recipient_id": founder_user.id, "subject": "Private", "body": "For Amara only",
        })
        res = await client.post(f"/api/v1/messages/{sent.json()['id']}/read", headers=get_auth_headers(other_founder))
        assert res.status_code == 404

    async def test_unknown_recipient(self, client: AsyncClient, admin_user):
        res = await client.post("/api/v1/admin/messages", headers=get_auth_headers(admin_user), json={
            "recipient_id": "nobody", "subject": "Hi", "body": "Hello",
        })
        assert res.status_code == 404


@pytest.mark.asyncio
class TestAuditTrail:
    async def test_filter_by_event_type(self, client: AsyncClient, admin_user, founder_user):
        await client.post("/api/v1/auth/login", json={"email": "amara@startup.io", "password": "Demo1234!"})
        await client.put("/api/v1/admin/settings", headers=get_auth_headers(admin_user), json={"k": "v"})

        res = await client.get("/api/v1/admin/audit", headers=get_auth_headers(admin_user),
                               params={"event_type": "auth.user.login"})
        assert res.status_code == 200
        assert [e["event_type"] for e in res.json()] == ["auth.user.login"]
        assert res.json()[0]["user_id"] == founder_user.id

    async def test_unknown_event_type(self, client: AsyncClient, admin_user):
        res = await client.get("/api/v1/admin/audit", headers=get_auth_headers(admin_user),
                               params={"event_type": "nope"})
        assert res.status_code == 400
