from unittest.mock import MagicMock, patch

from sevadaan.core.config import Settings
from sevadaan.services.email_service import (
    render_template,
    send_donation_receipt_email,
    send_kyc_decision_email,
    send_password_reset_email,
    send_welcome_email,
)


def _smtp_settings(**overrides) -> Settings:
    values = {
        "SMTP_HOST": "smtp.mailer.local",
        "SMTP_PORT": 587,
        "SMTP_USER": "mailer",
        "SMTP_PASSWORD": "secret",
        "FRONTEND_URL": "https://sevadaan.org",
    }
    values.update(overrides)
    return Settings(**values)


@patch("sevadaan.services.email_service.smtplib.SMTP")
def test_send_welcome_email(mock_smtp):
    mock_server_instance = MagicMock()
    mock_smtp.return_value.__enter__.return_value = mock_server_instance

    sent = send_welcome_email(_smtp_settings(), {"email": "asha@example.com", "name": "Asha", "role": "DONOR"})

    assert sent is True
    mock_server_instance.starttls.assert_called_once()
    mock_server_instance.login.assert_called_once_with("mailer", "secret")
    mock_server_instance.sendmail.assert_called_once()
    args = mock_server_instance.sendmail.call_args[0]
    assert args[1] == "asha@example.com"
    assert "https://sevadaan.org/login" in args[2]


@patch("sevadaan.services.email_service.smtplib.SMTP")
def test_password_reset_contains_otp(mock_smtp):
    mock_server_instance = MagicMock()
    mock_smtp.return_value.__enter__.return_value = mock_server_instance

    send_password_reset_email(_smtp_settings(), {"email": "asha@example.com", "name": "Asha", "otp": "482913"})

    assert "482913" in mock_server_instance.sendmail.call_args[0][2]


@patch("sevadaan.services.email_service.smtplib.SMTP")
def test_kyc_decision_email_links_public_page(mock_smtp):
    mock_server_instance = MagicMock()
    mock_smtp.return_value.__enter__.return_value = mock_server_instance

    send_kyc_decision_email(_smtp_settings(), {
        "email": "admin@helpinghands.org",
        "name": "Admin",
        "ngo_name": "Helping Hands Foundation",
        "status": "verified",
        "slug": "helping-hands-foundation-abc123",
    })

    args = mock_server_instance.sendmail.call_args[0]
    assert args[1] == "admin@helpinghands.org"
    assert "helping-hands-foundation-abc123" in args[2]


@patch("sevadaan.services.email_service.smtplib.SMTP")
def test_no_login_without_credentials(mock_smtp):
    mock_server_instance = MagicMock()
    mock_smtp.return_value.__enter__.return_value = mock_server_instance

    settings = _smtp_settings(SMTP_PORT=1025, SMTP_USER=None, SMTP_PASSWORD=None)
    assert send_donation_receipt_email(settings, {
        "email": "donor@example.com",
        "name": "Donor",
        "ngo_name": "Helping Hands Foundation",
        "amount": 500,
        "currency": "INR",
        "receipt_number": "RCPT-20260101-ABCDEF12",
    }) is True

    mock_server_instance.starttls.assert_not_called()
    mock_server_instance.login.assert_not_called()


@patch("sevadaan.services.email_service.smtplib.SMTP")
def test_smtp_failure_is_swallowed(mock_smtp):
    mock_smtp.side_effect = OSError("connection refused")
    assert send_welcome_email(_smtp_settings(), {"email": "asha@example.com", "name": "Asha"}) is False


@patch("sevadaan.services.email_service.smtplib.SMTP")
def test_skipped_without_smtp_host(mock_smtp):
    assert send_welcome_email(_smtp_settings(SMTP_HOST=None), {"email": "asha@example.com"}) is False
    mock_smtp.assert_not_called()


def test_templates_render():
    html = render_template("welcome.html", {"name": "Asha", "role": "DONOR", "login_url": "https://x/login"})
    assert "Asha" in html
