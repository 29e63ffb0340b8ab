# mailer.py — Transactional e-mail over the SendGrid v3 HTTP API
# send_email() never raises: it returns True on a 2xx response and False otherwise.
import os
import logging
from html import escape
from typing import Optional, Tuple

import httpx

logger = logging.getLogger("partner.mailer")

SENDGRID_API = "https://api.sendgrid.com/v3/mail/send"
PLATFORM_NAME = "Partner"


def _api_key() -> Optional[str]:
    return os.getenv("SENDGRID_API_KEY")


def _from_email() -> str:
    return os.getenv("SENDGRID_FROM_EMAIL", "noreply@partner.io")


def frontend_url() -> str:
    return os.getenv("FRONTEND_URL", "http://localhost:5173")


def is_enabled() -> bool:
    return bool(_api_key())


async def send_email(to: str, subject: str, html_body: str) -> bool:
    api_key = _api_key()
    if not api_key:
        logger.info(f"[Email] Skipped (no API key): {subject!r} -> {to}")
        return False

    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": _from_email(), "name": PLATFORM_NAME},
        "subject": subject,
        "content": [{"type": "text/html", "value": html_body}],
    }
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.post(
                SENDGRID_API,
                headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
                json=payload,
            )
    except httpx.HTTPError as e:
        logger.error(f"[Email] Error sending {subject!r} -> {to}: {e}")
        return False

    if 200 <= resp.status_code < 300:
        logger.info(f"[Email] Sent: {subject!r} -> {to}")
        return True
    logger.error(f"[Email] Failed ({resp.status_code}): {resp.text[:200]}")
    return False


# ============================================================
# TEMPLATES
# Each returns (subject, html). User-supplied text is escaped.
# ============================================================

_BUTTON_STYLE = (
    "display: inline-block; padding: 12px 28px; background: #0F1B3D; color: #FFF; "
    "text-decoration: none; border-radius: 10px; font-weight: 600; font-size: 14px;"
)
_P_STYLE = "font-size: 15px; color: #334155; line-height: 1.6; margin: 0 0 20px;"

STATUS_LABELS = {
    "new": "New",
    "under_review": "Under Review",
    "more_info": "More Info Needed",
    "approved": "Approved",
    "passed": "Passed",
}


def _wrap(content: str) -> str:
    return f"""
    <div style="font-family: 'Helvetica Neue', Arial, sans-serif; max-width: 560px; margin: 0 auto; padding: 32px 24px;">
      <div style="margin-bottom: 32px;">
        <span style="font-size: 24px; font-weight: 800; color: #0F1B3D;">{PLATFORM_NAME}</span>
      </div>
      {content}
      <div style="margin-top: 40px; padding-top: 20px; border-top: 1px solid #E2E8F0;">
        <p style="font-size: 12px; color: #94A3B8; margin: 0;">
          This is an automated notification from {PLATFORM_NAME}.<br/>
          <a href="{frontend_url()}" style="color: #2563EB;">Open {PLATFORM_NAME}</a>
        </p>
      </div>
    </div>
    """


def _button(label: str, url: Optional[str] = None) -> str:
    return f'<a href="{escape(url or frontend_url())}" style="{_BUTTON_STYLE}">{label}</a>'


def _member(name: str, specialty: Optional[str]) -> str:
    label = f"<strong>{escape(name)}</strong>"
    if specialty:
        label += f" ({escape(specialty)})"
    return label


def partner_request_email(founder_name: str, member_name: str, member_specialty: Optional[str],
                          company_name: str) -> Tuple[str, str]:
    return f"New partner request for {company_name}", _wrap(f"""
      <h2>New Partner Request</h2>
      <p style="{_P_STYLE}">Hi {escape(founder_name)},</p>
      <p style="{_P_STYLE}">{_member(member_name, member_specialty)} wants to partner with
        <strong>{escape(company_name)}</strong>.</p>
      <p style="{_P_STYLE}">Log in to review and accept or decline this request.</p>
      {_button("View Request")}
    """)


def meeting_request_email(founder_name: str, member_name: str, member_specialty: Optional[str],
                          company_name: str, message: Optional[str]) -> Tuple[str, str]:
    quote = ""
    if message:
        quote = (
            '<div style="background: #F0F5FF; border-left: 3px solid #2563EB; padding: 14px 18px; margin: 0 0 24px;">'
            f'<p style="font-size: 14px; margin: 0; font-style: italic;">"{escape(message)}"</p></div>'
        )
    return f"Meeting request for {company_name}", _wrap(f"""
      <h2>Meeting Request</h2>
      <p style="{_P_STYLE}">Hi {escape(founder_name)},</p>
      <p style="{_P_STYLE}">{_member(member_name, member_specialty)} would like to schedule a meeting about
        <strong>{escape(company_name)}</strong>.</p>
      {quote}
      {_button("View Request")}
    """)


def partner_response_email(member_name: str, founder_name: str, company_name: str,
                           accepted: bool) -> Tuple[str, str]:
    verdict = "accepted" if accepted else "declined"
    if accepted:
        body = (f"Great news! <strong>{escape(founder_name)}</strong> has accepted your partner request for "
                f"<strong>{escape(company_name)}</strong>. You can now collaborate in the Partnerships workspace.")
    else:
        body = (f"<strong>{escape(founder_name)}</strong> has declined your partner request for "
                f"<strong>{escape(company_name)}</strong>.")
    return f"Partner request {verdict}: {company_name}", _wrap(f"""
      <h2>Partner Request {verdict.capitalize()}</h2>
      <p style="{_P_STYLE}">Hi {escape(member_name)},</p>
      <p style="{_P_STYLE}">{body}</p>
      {_button("Go to Partnerships" if accepted else f"Open {PLATFORM_NAME}")}
    """)


def status_change_email(founder_name: str, company_name: str, new_status: str) -> Tuple[str, str]:
    label = STATUS_LABELS.get(new_status, new_status)
    color = "#10B981" if new_status == "approved" else "#64748B" if new_status == "passed" else "#2563EB"
    return f"{company_name}: Status updated to {label}", _wrap(f"""
      <h2>Submission Update</h2>
      <p style="{_P_STYLE}">Hi {escape(founder_name)},</p>
      <p style="{_P_STYLE}">The status of <strong>{escape(company_name)}</strong> has been updated:</p>
      <div style="display: inline-block; padding: 8px 20px; border-radius: 20px; color: {color}; font-weight: 700;">
        {label}
      </div>
      <p style="{_P_STYLE}">Log in to see details and any feedback from the board.</p>
      {_button("View Submission")}
    """)


def invitation_email(name: Optional[str], inviter_name: str, token: str) -> Tuple[str, str]:
    link = f"{frontend_url()}/accept-invitation?token={token}"
    return f"You're invited to join the {PLATFORM_NAME} board", _wrap(f"""
      <h2>Board Invitation</h2>
      <p style="{_P_STYLE}">Hi {escape(name or "there")},</p>
      <p style="{_P_STYLE}"><strong>{escape(inviter_name)}</strong> has invited you to join the
        {PLATFORM_NAME} board as a reviewer. The invitation expires in 7 days.</p>
      {_button("Accept Invitation", link)}
    """)


def admin_message_email(recipient_name: str, subject: str, body: str) -> Tuple[str, str]:
    return f"[{PLATFORM_NAME}] {subject}", _wrap(f"""
      <h2>{escape(subject)}</h2>
      <p style="{_P_STYLE}">Hi {escape(recipient_name)},</p>
      <p style="{_P_STYLE}; white-space: pre-line;">{escape(body)}</p>
      {_button("Read in " + PLATFORM_NAME)}
    """)
