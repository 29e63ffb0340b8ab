# tests/test_notifier.py — Fire-and-forget delivery and the SendGrid client
import logging

import httpx
import pytest

import mailer
import notifier
from mailer import send_email as sendgrid_send_email
from models import NotificationPref, NotificationType, UserRole
from tests.conftest import make_user


def mock_sendgrid(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(mailer.httpx, "AsyncClient", client_factory)


@pytest.mark.asyncio
class TestDispatch:
    async def test_failures_are_logged_not_raised(self, caplog):
        async def broken():
            raise RuntimeError("smtp down")

        with caplog.at_level(logging.ERROR, logger="partner.notifier"):
            notifier.dispatch(broken(), "test -> nobody")
            await notifier.drain()
        assert "smtp down" in caplog.text

    async def test_drain_waits_for_delivery(self, outbox):
        notifier.dispatch(mailer.send_email("a@b.io", "Hello", "<p>Hi</p>"), "test -> a")
        await notifier.drain()
        assert outbox == [{"to": "a@b.io", "subject": "Hello", "html": "<p>Hi</p>"}]


@pytest.mark.asyncio
class TestNotify:
    async def test_no_recipient(self, db_session):
        queued = await notifier.notify(db_session, None, NotificationType.STATUS_CHANGE, ("s", "b"))
        assert queued is False

    async def test_default_is_enabled(self, db_session, outbox):
        user = await make_user(db_session, UserRole.FOUNDER, "Amara Okafor", "amara@startup.io")
        assert await notifier.notify(db_session, user, NotificationType.STATUS_CHANGE, ("Subject", "<p>x</p>"))
        await notifier.drain()
        assert [m["to"] for m in outbox] == ["amara@startup.io"]

    async def test_opt_out_is_per_type(self, db_session, outbox):
        user = await make_user(db_session, UserRole.FOUNDER, "Amara Okafor", "amara@startup.io")
        db_session.add(NotificationPref(user_id=user.id, notif_type=NotificationType.STATUS_CHANGE, enabled=False))
        await db_session.commit()

        assert not await notifier.notify(db_session, user, NotificationType.STATUS_CHANGE, ("Muted", "x"))
        assert await notifier.notify(db_session, user, NotificationType.MEETING_REQUEST, ("Loud", "x"))
        await notifier.drain()
        assert [m["subject"] for m in outbox] == ["Loud"]


@pytest.mark.asyncio
class TestSendGrid:
    async def test_skipped_without_api_key(self, monkeypatch):
        monkeypatch.delenv("SENDGRID_API_KEY", raising=False)
        assert await sendgrid_send_email("a@b.io", "Hi", "<p>x</p>") is False

    async def test_posts_payload(self, monkeypatch):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request.content
            return httpx.Response(202)

        monkeypatch.setenv("SENDGRID_API_KEY", "SG.test")
        mock_sendgrid(monkeypatch, handler)
        assert await sendgrid_send_email("a@b.io", "Hi there", "<p>x</p>") is True
        assert seen["auth"] == "Bearer SG.test"
        assert b"Hi there" in seen["body"]

    async def test_api_error_returns_false(self, monkeypatch):
        monkeypatch.setenv("SENDGRID_API_KEY", "SG.test")
        mock_sendgrid(monkeypatch, lambda request: httpx.Response(401, text="unauthorized"))
        assert await sendgrid_send_email("a@b.io", "Hi", "<p>x</p>") is False

    async def test_network_error_returns_false(self, monkeypatch):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        monkeypatch.setenv("SENDGRID_API_KEY", "SG.test")
        mock_sendgrid(monkeypatch, handler)
        assert await sendgrid_send_email("a@b.io", "Hi", "<p>x</p>") is False


class TestTemplates:
    def test_user_text_is_escaped(self):
        subject, html = mailer.meeting_request_email(
            "Amara", "Sarah", "Healthcare", "NeuralPay", "<script>alert(1)</script>",
        )
        assert subject == "Meeting request for NeuralPay"
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_status_labels(self):
        subject, _ = mailer.status_change_email("Amara", "NeuralPay", "more_info")
        assert subject == "NeuralPay: Status updated to More Info Needed"

    def test_partner_response_variants(self):
        accepted, _ = mailer.partner_response_email("Sarah", "Amara", "NeuralPay", True)
        declined, _ = mailer.partner_response_email("Sarah", "Amara", "NeuralPay", False)
        assert accepted == "Partner request accepted: NeuralPay"
        assert declined == "Partner request declined: NeuralPay"
