"""
Outbound member messaging: email via Resend, WhatsApp via Twilio.

Message content for membership reminders lives here too, so the batch
only decides *what* to send and the sender decides *how*.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx
from fastapi.concurrency import run_in_threadpool

from app.core.config import settings
from app.models.notification import MembershipNotificationType

logger = logging.getLogger(__name__)

NotificationType = MembershipNotificationType


@dataclass
class SendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class MessageSender(Protocol):
    async def send_email(self, to: str, subject: str, html: str, text: str) -> SendResult: ...

    async def send_whatsapp_template(
        self, to: str, template_name: str, variables: list[str]
    ) -> SendResult: ...

    async def send_whatsapp_text(self, to: str, body: str) -> SendResult: ...


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

WHATSAPP_TEMPLATES: dict[NotificationType, str] = {
    NotificationType.expires_in_3_days: "notification_expire_memberships",
    NotificationType.expires_in_1_day: "membership_expires_tomorrow",
    NotificationType.expires_today: "membership_expires_today",
    NotificationType.expired: "membership_expired",
}

_SUBJECTS: dict[NotificationType, str] = {
    NotificationType.expires_in_3_days: "Tu membresía en {gym} vence en 3 días",
    NotificationType.expires_in_1_day: "⚠️ Tu membresía en {gym} vence mañana",
    NotificationType.expires_today: "🔴 Tu membresía en {gym} vence HOY",
    NotificationType.expired: "❌ Tu membresía en {gym} ha vencido",
}

# (title, message, call to action, urgency)
_EMAIL_COPY: dict[NotificationType, tuple[str, str, str, str]] = {
    NotificationType.expires_in_3_days: (
        "Tu membresía está por vencer",
        "Tu membresía vence el <strong>{date}</strong> (en 3 días).",
        "Renueva ahora para seguir disfrutando de todos los beneficios y reservar clases sin interrupciones.",
        "info",
    ),
    NotificationType.expires_in_1_day: (
        "¡Tu membresía vence mañana!",
        "Tu membresía vence el <strong>{date}</strong> (mañana).",
        "Renueva hoy para evitar que se bloqueen tus reservas de clases.",
        "warning",
    ),
    NotificationType.expires_today: (
        "¡Tu membresía vence HOY!",
        "Tu membresía vence <strong>hoy {date}</strong>.",
        "Si no renuevas hoy, no podrás reservar clases a partir de mañana.",
        "danger",
    ),
    NotificationType.expired: (
        "Tu membresía ha vencido",
        "Tu membresía venció el <strong>{date}</strong>.",
        "Renueva tu membresía para volver a reservar clases.",
        "danger",
    ),
}

_URGENCY_COLORS: dict[str, tuple[str, str, str]] = {
    "info": ("#dbeafe", "#3b82f6", "#1e40af"),
    "warning": ("#fef3c7", "#f59e0b", "#92400e"),
    "danger": ("#fee2e2", "#ef4444", "#991b1b"),
}

_WHATSAPP_FALLBACK: dict[NotificationType, str] = {
    NotificationType.expires_in_3_days: (
        "Hola {name}, tu membresía en {gym} vence el {date} (en 3 días). "
        "Renueva para seguir reservando clases."
    ),
    NotificationType.expires_in_1_day: (
        "⚠️ Hola {name}, tu membresía en {gym} vence MAÑANA ({date}). "
        "Renueva hoy para evitar el bloqueo de reservas."
    ),
    NotificationType.expires_today: (
        "🔴 Hola {name}, tu membresía en {gym} vence HOY. "
        "Si no renuevas, no podrás reservar clases desde mañana."
    ),
    NotificationType.expired: (
        "❌ Hola {name}, tu membresía en {gym} ha vencido. "
        "Renueva para volver a reservar clases."
    ),
}


def email_subject(notification_type: NotificationType, gym_name: str) -> str:
    return _SUBJECTS[notification_type].format(gym=gym_name)


def email_html(
    notification_type: NotificationType,
    member_name: str,
    gym_name: str,
    expiration_date: str,
    contact_email: str | None = None,
    contact_phone: str | None = None,
) -> str:
    title, message, cta, urgency = _EMAIL_COPY[notification_type]
    bg, border, text = _URGENCY_COLORS[urgency]
    contact_lines = "".join(
        f"<p style=\"margin:0;color:#71717a;font-size:13px;\">{line}</p>"
        for line in (contact_email, contact_phone)
        if line
    )
    return f"""
<!DOCTYPE html>
<html lang="es">
<head><meta charset="UTF-8"><title>{title}</title></head>
<body style="margin:0;padding:0;font-family:Arial,sans-serif;background-color:#f4f4f5;">
  <table role="presentation" style="width:100%;max-width:600px;margin:0 auto;background:#ffffff;">
    <tr><td style="padding:32px;text-align:center;background:#18181b;">
      <h1 style="margin:0;color:#84cc16;font-size:24px;">{gym_name}</h1>
    </td></tr>
    <tr><td style="padding:24px 32px 0;">
      <div style="background:{bg};border-left:4px solid {border};padding:16px;">
        <h2 style="margin:0 0 8px;color:{text};font-size:18px;">{title}</h2>
        <p style="margin:0;color:{text};font-size:14px;">{message.format(date=expiration_date)}</p>
      </div>
    </td></tr>
    <tr><td style="padding:24px 32px 8px;">
      <p style="margin:0;color:#3f3f46;font-size:16px;">Hola <strong>{member_name}</strong>,</p>
    </td></tr>
    <tr><td style="padding:0 32px 24px;">
      <p style="margin:0;color:#52525b;font-size:15px;line-height:1.6;">{cta}</p>
    </td></tr>
    <tr><td style="padding:0 32px 32px;">{contact_lines}</td></tr>
  </table>
</body>
</html>
"""


def email_text(
    notification_type: NotificationType, member_name: str, gym_name: str, expiration_date: str
) -> str:
    title, message, cta, _ = _EMAIL_COPY[notification_type]
    body = re.sub(r"</?strong>", "", message.format(date=expiration_date))
    return f"{gym_name}\n\n{title}\n\nHola {member_name},\n\n{body}\n\n{cta}\n"


def whatsapp_variables(
    notification_type: NotificationType, member_name: str, gym_name: str, expiration_date: str
) -> list[str]:
    """Template variables {{1}}, {{2}}[, {{3}}]."""
    if notification_type is NotificationType.expires_today:
        return [member_name, gym_name]
    return [member_name, gym_name, expiration_date]


def whatsapp_fallback_text(
    notification_type: NotificationType, member_name: str, gym_name: str, expiration_date: str
) -> str:
    return _WHATSAPP_FALLBACK[notification_type].format(
        name=member_name, gym=gym_name, date=expiration_date
    )


def normalize_phone(phone: str, country_code: str | None = None) -> str:
    """E.164: numbers without ``+`` get the default country code prefixed."""
    phone = phone.strip()
    if phone.startswith("+"):
        return "+" + re.sub(r"\D", "", phone)
    return (country_code or settings.WHATSAPP_DEFAULT_COUNTRY_CODE) + re.sub(r"\D", "", phone)


# ---------------------------------------------------------------------------
# Default sender
# ---------------------------------------------------------------------------

class DefaultMessageSender:
    """Sends email through Resend and WhatsApp through Twilio's REST API."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http = http_client

    async def send_email(self, to: str, subject: str, html: str, text: str) -> SendResult:
        if not settings.RESEND_API_KEY:
            return SendResult(False, error="Email delivery not configured")

        import resend

        resend.api_key = settings.RESEND_API_KEY
        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
        }
        try:
            response = await run_in_threadpool(resend.Emails.send, params)
        except Exception as exc:
            logger.warning("Resend send to %s failed: %s", to, exc)
            return SendResult(False, error=str(exc))
        return SendResult(True, message_id=response.get("id"))

    async def send_whatsapp_template(
        self, to: str, template_name: str, variables: list[str]
    ) -> SendResult:
        content_sid = settings.TWILIO_CONTENT_SIDS.get(template_name)
        if not content_sid:
            return SendResult(False, error=f"No WhatsApp template configured for {template_name}")
        return await self._twilio_message(
            to,
            {
                "ContentSid": content_sid,
                "ContentVariables": json.dumps(
                    {str(i): value for i, value in enumerate(variables, start=1)}
                ),
            },
        )

    async def send_whatsapp_text(self, to: str, body: str) -> SendResult:
        return await self._twilio_message(to, {"Body": body})

    async def _twilio_message(self, to: str, fields: dict[str, str]) -> SendResult:
        if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_WHATSAPP_FROM):
            return SendResult(False, error="WhatsApp messaging not configured")

        url = f"{settings.TWILIO_API_BASE_URL}/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json"
        data = {
            "From": f"whatsapp:{settings.TWILIO_WHATSAPP_FROM}",
            "To": f"whatsapp:{to}",
            **fields,
        }
        auth = (settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

        try:
            if self._http is not None:
                response = await self._http.post(url, data=data, auth=auth)
            else:
                async with httpx.AsyncClient(timeout=15.0) as client:
                    response = await client.post(url, data=data, auth=auth)
        except httpx.HTTPError as exc:
            logger.warning("Twilio request to %s failed: %s", to, exc)
            return SendResult(False, error=str(exc))

        payload = response.json() if response.content else {}
        if response.is_error:
            return SendResult(False, error=payload.get("message") or f"Twilio HTTP {response.status_code}")
        return SendResult(True, message_id=payload.get("sid"))
