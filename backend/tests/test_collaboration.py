# tests/test_collaboration.py — Board notes, member tags and discussion chat
import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from models import TaggedMember
from tests.conftest import get_auth_headers


@pytest.mark.asyncio
class TestNotes:
    async def test_founder_sees_only_founder_visible_notes(self, client: AsyncClient, submission,
                                                           founder_user, board_user):
        board = get_auth_headers(board_user)
        await client.post(f"/api/v1/submissions/{submission.id}/notes", headers=board,
                          json={"text": "Strong team, unclear moat", "founder_visible": False})
        await client.post(f"/api/v1/submissions/{submission.id}/notes", headers=board,
                          json={"text": "Please share your unit economics", "founder_visible": True})

        as_board = await client.get(f"/api/v1/submissions/{submission.id}/notes", headers=board)
        as_founder = await client.get(f"/api/v1/submissions/{submission.id}/notes",
                                      headers=get_auth_headers(founder_user))
        assert len(as_board.json()) == 2
        assert [n["text"] for n in as_founder.json()] == ["Please share your unit economics"]

        detail = await client.get(f"/api/v1/submissions/{submission.id}", headers=get_auth_headers(founder_user))
        assert [n["text"] for n in detail.json()["notes"]] == ["Please share your unit economics"]

    async def test_note_carries_author(self, client: AsyncClient, submission, board_user):
        res = await client.post(f"/api/v1/submissions/{submission.id}/notes", headers=get_auth_headers(board_user),
                                json={"text": "Great traction"})
        assert res.status_code == 201
        data = res.json()
        assert data["author_name"] == "Sarah Kingston"
        assert data["founder_visible"] is False

    async def test_blank_note_rejected(self, client: AsyncClient, submission, board_user):
        res = await client.post(f"/api/v1/submissions/{submission.id}/notes", headers=get_auth_headers(board_user),
                                json={"text": "   "})
        assert res.status_code == 400
        assert res.json()["detail"] == "Note cannot be empty"

    async def test_founder_cannot_write_notes(self, client: AsyncClient, submission, founder_user):
        res = await client.post(f"/api/v1/submissions/{submission.id}/notes",
                                headers=get_auth_headers(founder_user), json={"text": "Note to self"})
        assert res.status_code == 403

    async def test_other_founder_cannot_read_notes(self, client: AsyncClient, submission, other_founder):
        res = await client.get(f"/api/v1/submissions/{submission.id}/notes", headers=get_auth_headers(other_founder))
        assert res.status_code == 403


@pytest.mark.asyncio
class TestTags:
    async def test_tag_is_idempotent(self, client: AsyncClient, submission, board_user, board_users, db_session):
        headers = get_auth_headers(board_user)
        target = board_users[1]
        for _ in range(2):
            res = await client.post(f"/api/v1/submissions/{submission.id}/tag", headers=headers,
                                    json={"user_id": target.id})
            assert res.status_code == 200
            assert res.json() == [{"id": target.id, "name": "Aisha Patel", "specialty": "AI & Deep Tech"}]

        count = await db_session.execute(
            select(func.count(TaggedMember.id)).where(TaggedMember.submission_id == submission.id)
        )
        assert count.scalar() == 1

    async def test_untag(self, client: AsyncClient, submission, board_user, board_users):
        headers = get_auth_headers(board_user)
        target = board_users[0]
        await client.post(f"/api/v1/submissions/{submission.id}/tag", headers=headers, json={"user_id": target.id})

        res = await client.delete(f"/api/v1/submissions/{submission.id}/tag/{target.id}", headers=headers)
        assert res.status_code == 200
        assert res.json() == []

        # Removing an absent tag is a no-op
        again = await client.delete(f"/api/v1/submissions/{submission.id}/tag/{target.id}", headers=headers)
        assert again.status_code == 200
        assert again.json() == []

    async def test_cannot_tag_founder(self, client: AsyncClient, submission, board_user, other_founder):
        res = await client.post(f"/api/v1/submissions/{submission.id}/tag", headers=get_auth_headers(board_user),
                                json={"user_id": other_founder.id})
        assert res.status_code == 404

    async def test_tags_show_on_submission(self, client: AsyncClient, submission, founder_user, board_user):
        await client.post(f"/api/v1/submissions/{submission.id}/tag", headers=get_auth_headers(board_user),
                          json={"user_id": board_user.id})
        res = await client.get(f"/api/v1/submissions/{submission.id}", headers=get_auth_headers(founder_user))
        assert [t["name"] for t in res.json()["tagged_members"]] == ["Sarah Kingston"]


@pytest.mark.asyncio
class TestChat:
    async def test_founder_and_board_share_chat(self, client: AsyncClient, submission, founder_user, board_user):
        await client.post(f"/api/v1/submissions/{submission.id}/chat", headers=get_auth_headers(board_user),
                          json={"text": "Can you share your CAC?"})
        reply = await client.post(f"/api/v1/submissions/{submission.id}/chat",
                                  headers=get_auth_headers(founder_user), json={"text": "About $12 per user."})
        assert reply.status_code == 201
        assert reply.json()["author_role"] == "founder"

        res = await client.get(f"/api/v1/submissions/{submission.id}/chat", headers=get_auth_headers(founder_user))
        messages = res.json()
        assert [m["text"] for m in messages] == ["Can you share your CAC?", "About $12 per user."]
        assert messages[0]["author_name"] == "Sarah Kingston"
        assert messages[0]["author_role"] == "board"

    async def test_other_founder_locked_out(self, client: AsyncClient, submission, other_founder):
        headers = get_auth_headers(other_founder)
        read = await client.get(f"/api/v1/submissions/{submission.id}/chat", headers=headers)
        write = await client.post(f"/api/v1/submissions/{submission.id}/chat", headers=headers, json={"text": "Hi"})
        assert read.status_code == 403
        assert write.status_code == 403

    async def test_whitespace_message_rejected(self, client: AsyncClient, submission, founder_user):
        res = await client.post(f"/api/v1/submissions/{submission.id}/chat",
                                headers=get_auth_headers(founder_user), json={"text": " \n\t "})
        assert res.status_code == 400

    async def test_chat_on_missing_submission(self, client: AsyncClient, board_user):
        res = await client.post("/api/v1/submissions/nope/chat", headers=get_auth_headers(board_user),
                                json={"text": "Hello"})
        assert res.status_code == 404


@pytest.mark.asyncio
class TestBoardDirectory:
    async def test_lists_board_members_by_name(self, client: AsyncClient, board_user, board_users, admin_user):
        res = await client.get("/api/v1/board-members", headers=get_auth_headers(admin_user))
        assert res.status_code == 200
        names = [m["name"] for m in res.json()]
        assert names == sorted(names)
        assert "Admin User" not in names
        assert {"id": board_user.id, "name": "Sarah Kingston", "specialty": "Healthcare & BioTech"} in res.json()

    async def test_founder_denied(self, client: AsyncClient, founder_user):
        res = await client.get("/api/v1/board-members", headers=get_auth_headers(founder_user))
        assert res.status_code == 403
