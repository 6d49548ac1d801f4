"""
Membership reminder content and phone normalisation.
"""

import pytest

from app.models.notification import MembershipNotificationType as Kind
from app.services import messaging


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5512345678", "+525512345678"),
        ("55 1234 5678", "+525512345678"),
        ("+1 (415) 523-8886", "+14155238886"),
        ("  +52 55-1234-5678 ", "+525512345678"),
    ],
)
def test_normalize_phone(raw, expected):
    assert messaging.normalize_phone(raw) == expected


def test_normalize_phone_with_explicit_country_code():
    assert messaging.normalize_phone("6045551234", "+1") == "+16045551234"


def test_every_notification_type_has_content():
    for kind in Kind:
        assert kind in messaging.WHATSAPP_TEMPLATES
        assert "Fit Box" in messaging.email_subject(kind, "Fit Box")
        assert "Ana" in messaging.whatsapp_fallback_text(kind, "Ana", "Fit Box", "10/06/2025")


def test_email_html_includes_member_gym_date_and_contact():
    html = messaging.email_html(
        Kind.expires_in_3_days, "Ana", "Fit Box", "13/06/2025", "hola@fitbox.mx", "+5255000000"
    )
    assert "Ana" in html
    assert "Fit Box" in html
    assert "13/06/2025" in html
    assert "hola@fitbox.mx" in html
    assert "+5255000000" in html


def test_email_text_strips_markup():
    text = messaging.email_text(Kind.expired, "Ana", "Fit Box", "09/06/2025")
    assert "<strong>" not in text
    assert "09/06/2025" in text


def test_whatsapp_variables_omit_date_for_today():
    assert messaging.whatsapp_variables(Kind.expires_today, "Ana", "Fit Box", "10/06/2025") == [
        "Ana",
        "Fit Box",
    ]
    assert messaging.whatsapp_variables(Kind.expires_in_1_day, "Ana", "Fit Box", "11/06/2025") == [
        "Ana",
        "Fit Box",
        "11/06/2025",
    ]
