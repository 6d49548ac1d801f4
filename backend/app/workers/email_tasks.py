"""
Email background tasks.

Staff invitation emails, password reset emails.
"""

from app.workers.celery_app import celery_app

ROLE_LABELS: dict[str, str] = {
    "admin": "Administrador",
    "assistant": "Asistente",
    "trainer": "Entrenador",
    "nutritionist": "Nutricionista",
    "client": "Cliente",
}


@celery_app.task(name="app.workers.email_tasks.send_invitation_email", bind=True, max_retries=3)
def send_invitation_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    org_name: str,
    inviter_name: str,
    role: str,
    invitation_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """
    Send a staff invitation email via Resend.

    Args:
        to_email: Recipient email address.
        org_name: Gym display name.
        inviter_name: Display name of the person who sent the invite.
        role: Role being assigned (admin/assistant/trainer/nutritionist/client).
        invitation_token: Secure token for the invitation link.
        frontend_url: Frontend base URL for constructing the accept link.

    Returns:
        Dict with status and message_id.
    """
    try:
        import resend

        from app.core.config import settings

        resend.api_key = settings.RESEND_API_KEY

        accept_url = f"{frontend_url}/invitations/{invitation_token}/accept"
        role_label = ROLE_LABELS.get(role, role)

        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": f"Te invitaron a unirte a {org_name} en GymGo",
            "html": f"""
                <h2>Invitación a {org_name}</h2>
                <p><strong>{inviter_name}</strong> te invitó a unirte a
                <strong>{org_name}</strong> como <strong>{role_label}</strong>.</p>
                <p>
                    <a href="{accept_url}"
                       style="background:#84cc16;color:#18181b;padding:12px 24px;
                              border-radius:6px;text-decoration:none;display:inline-block;">
                        Aceptar invitación
                    </a>
                </p>
                <p>Esta invitación vence en 48 horas.</p>
                <p>Si no esperabas esta invitación, puedes ignorar este correo.</p>
            """,
        }

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))


@celery_app.task(name="app.workers.email_tasks.send_password_reset_email", bind=True, max_retries=3)
def send_password_reset_email(
    self,  # type: ignore[no-untyped-def]
    to_email: str,
    reset_token: str,
    frontend_url: str,
) -> dict[str, str]:
    """
    Send a password reset email via Resend.

    Args:
        to_email: Recipient email address.
        reset_token: Secure reset token.
        frontend_url: Frontend base URL for constructing the reset link.

    Returns:
        Dict with status and message_id.
    """
    try:
        import resend

        from app.core.config import settings

        resend.api_key = settings.RESEND_API_KEY

        reset_url = f"{frontend_url}/reset-password?token={reset_token}"

        params: resend.Emails.SendParams = {
            "from": settings.EMAIL_FROM,
            "to": [to_email],
            "subject": "Restablece tu contraseña de GymGo",
            "html": f"""
                <h2>Restablece tu contraseña</h2>
                <p>Recibimos una solicitud para restablecer tu contraseña de GymGo.</p>
                <p>
                    <a href="{reset_url}"
                       style="background:#84cc16;color:#18181b;padding:12px 24px;
                              border-radius:6px;text-decoration:none;display:inline-block;">
                        Restablecer contraseña
                    </a>
                </p>
                <p>Este enlace vence en 1 hora.</p>
                <p>Si no solicitaste este cambio, puedes ignorar este correo.</p>
            """,
        }

        response = resend.Emails.send(params)
        return {"status": "sent", "message_id": response["id"]}

    except Exception as exc:
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))
