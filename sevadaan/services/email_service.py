# sevadaan/services/email_service.py

import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from sevadaan.core.config import Settings

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_template(template_name: str, context: dict) -> str:
    return _env.get_template(template_name).render(context)


def send_email_via_smtp(settings: Settings, to_email: str, subject: str, html_content: str) -> bool:
    # Only the host is required; user/password are optional for local catchers like Mailpit
    if not settings.SMTP_HOST:
        logger.warning("SMTP host not configured. Skipping email.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as server:
            server.ehlo()
            if settings.SMTP_PORT in (587, 2525):
                server.starttls()
                server.ehlo()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())

        logger.info(f"Email '{subject}' sent to {to_email}")
        return True
    except Exception as e:
        logger.warning(f"Failed to send email to {to_email}: {e}")
        return False


def _send(settings: Settings, to_email: str, subject: str, template: str, context: dict) -> bool:
    try:
        html_content = render_template(template, context)
    except Exception as e:
        logger.warning(f"Error rendering {template}: {e}")
        return False
    return send_email_via_smtp(settings, to_email, subject, html_content)


# ---------------------------------------------------------
# 1. WELCOME
# ---------------------------------------------------------
def send_welcome_email(settings: Settings, data: dict) -> bool:
    return _send(settings, data["email"], "Welcome to Sevadaan", "welcome.html", {
        "name": data.get("name"),
        "role": data.get("role"),
        "login_url": f"{settings.FRONTEND_URL}/login",
    })


# ---------------------------------------------------------
# 2. PASSWORD RESET OTP
# ---------------------------------------------------------
def send_password_reset_email(settings: Settings, data: dict) -> bool:
    return _send(settings, data["email"], "Your Sevadaan password reset code", "password_reset.html", {
        "name": data.get("name"),
        "otp": data.get("otp"),
        "expires_minutes": settings.OTP_EXPIRE_MINUTES,
    })


# ---------------------------------------------------------
# 3. KYC DECISION
# ---------------------------------------------------------
def send_kyc_decision_email(settings: Settings, data: dict) -> bool:
    verified = data.get("status") == "verified"
    subject = "Your NGO has been verified" if verified else "Action required: KYC verification"
    return _send(settings, data["email"], subject, "kyc_decision.html", {
        "name": data.get("name"),
        "ngo_name": data.get("ngo_name"),
        "verified": verified,
        "reason": data.get("reason"),
        "public_url": f"{settings.FRONTEND_URL}/ngo/{data.get('slug')}" if data.get("slug") else None,
        "decision_date": datetime.now().strftime("%d-%m-%Y"),
    })


# ---------------------------------------------------------
# 4. EMERGENCY ASSIGNED
# ---------------------------------------------------------
def send_emergency_assigned_email(settings: Settings, data: dict) -> bool:
    return _send(settings, data["email"], "Emergency request assigned to your NGO", "emergency_assigned.html", {
        "ngo_name": data.get("ngo_name"),
        "emergency_type": data.get("emergency_type"),
        "urgency_level": data.get("urgency_level"),
        "city": data.get("city"),
        "request_url": f"{settings.FRONTEND_URL}/emergency/{data.get('request_id')}",
    })


# ---------------------------------------------------------
# 5. DONATION RECEIPT
# ---------------------------------------------------------
def send_donation_receipt_email(settings: Settings, data: dict) -> bool:
    return _send(settings, data["email"], "Thank you for your donation", "donation_receipt.html", {
        "name": data.get("name"),
        "ngo_name": data.get("ngo_name"),
        "amount": data.get("amount"),
        "currency": data.get("currency"),
        "receipt_number": data.get("receipt_number"),
        "date": datetime.now().strftime("%d-%m-%Y"),
    })


# ---------------------------------------------------------
# 6. MANAGER INVITATION
# ---------------------------------------------------------
def send_manager_invite_email(settings: Settings, data: dict) -> bool:
    return _send(settings, data["email"], "You have been added as an NGO manager", "manager_invite.html", {
        "name": data.get("name"),
        "ngo_name": data.get("ngo_name"),
        "permissions": data.get("permissions", []),
        "login_url": f"{settings.FRONTEND_URL}/login",
    })
