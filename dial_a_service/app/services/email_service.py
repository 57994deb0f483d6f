"""
Outgoing e-mail through the SendGrid v3 HTTP API.

Two kinds of mail are sent: the provider verification decision and the
passwordless sign-in link.  When dynamic template ids are configured the
decision mail uses them, otherwise the built-in HTML below is rendered.
Without ``SENDGRID_API_KEY`` nothing is sent and the message is only
logged, which is what local development and the tests rely on.
"""

import html
import logging
from typing import Any, Dict, Optional

import httpx

from dial_a_service.app.core.config import settings


logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

TEMPLATES = {
    "approved": """
    <h1>Account Approved</h1>
    <p>Dear {{providerName}},</p>
    <p>Congratulations! Your Dial a Service account has been approved.</p>
    <p>You can now start accepting jobs for your business: {{businessName}}.</p>
    <p><a href="{{loginUrl}}" class="btn-primary">Login to Dashboard</a></p>
    """,
    "rejected": """
    <h1>Account Review Update</h1>
    <p>Dear {{providerName}},</p>
    <p>We've reviewed your application for {{businessName}}.</p>
    <p>Unfortunately, we need some adjustments:</p>
    <p>{{rejectionReason}}</p>
    <p>You can resubmit your application through the login page.</p>
    <p><a href="{{loginUrl}}" class="btn-primary">Login to Resubmit</a></p>
    """,
    "magic_link": """
    <h1>Sign in to Dial a Service</h1>
    <p>Click the link below to sign in. It expires in {{ttlMinutes}} minutes.</p>
    <p><a href="{{link}}" class="btn-primary">Sign in</a></p>
    """,
}


def render_template(template: str, context: Dict[str, Any]) -> str:
    """Substitute ``{{name}}`` placeholders with HTML-escaped values."""
    rendered = template
    for key, value in context.items():
        rendered = rendered.replace("{{" + key + "}}", html.escape(str(value if value is not None else "")))
    return rendered


class EmailService:
    """Send transactional e-mail."""

    @classmethod
    async def send(
        cls,
        to: str,
        subject: str,
        html_content: Optional[str] = None,
        template_id: Optional[str] = None,
        template_data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Send one message; returns ``True`` when SendGrid accepted it.

        Delivery failures are logged and reported as ``False`` so that
        callers can tell the user without undoing their own change.
        """
        if not settings.sendgrid_api_key:
            logger.info("SENDGRID_API_KEY not set; skipping e-mail to %s (%s)", to, subject)
            return False
        personalization: Dict[str, Any] = {"to": [{"email": to}], "subject": subject}
        payload: Dict[str, Any] = {
            "personalizations": [personalization],
            "from": {"email": settings.email_from},
            "subject": subject,
        }
        if template_id:
            payload["template_id"] = template_id
            personalization["dynamic_template_data"] = template_data or {}
        else:
            payload["content"] = [{"type": "text/html", "value": html_content or ""}]
        headers = {
            "Authorization": f"Bearer {settings.sendgrid_api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=30) as client:
                response = await client.post(SENDGRID_URL, headers=headers, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Error sending email to %s: %s", to, e)
            return False
        logger.info("Email sent successfully to %s", to)
        return True

    @classmethod
    async def send_verification_email(
        cls,
        to: str,
        provider_name: Optional[str],
        business_name: Optional[str],
        status: str,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Tell a provider about the admin's verification decision."""
        subject = "Your Dial a Service Account " + (
            "has been approved" if status == "approved" else "needs attention"
        )
        data = {
            "providerName": provider_name or "",
            "businessName": business_name or "",
            "status": status,
            "rejectionReason": rejection_reason or "",
            "loginUrl": f"{settings.app_url.rstrip('/')}/auth/signin",
        }
        template_id = (
            settings.sendgrid_template_approved if status == "approved" else settings.sendgrid_template_rejected
        )
        if template_id:
            return await cls.send(to, subject, template_id=template_id, template_data=data)
        return await cls.send(to, subject, html_content=render_template(TEMPLATES[status], data))

    @classmethod
    async def send_magic_link(cls, to: str, link: str) -> bool:
        html_content = render_template(
            TEMPLATES["magic_link"],
            {"link": link, "ttlMinutes": settings.magic_link_ttl_minutes},
        )
        return await cls.send(to, "Your Dial a Service sign-in link", html_content=html_content)
