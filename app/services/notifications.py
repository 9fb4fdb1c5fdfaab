"""Account mailer: activation and password reset links via Mailgun."""
import logging
from urllib.parse import urlencode

import httpx

from app.config import get_settings
from app.models.user import User

logger = logging.getLogger("uvicorn.error")

MAILGUN_US_BASE = "https://api.mailgun.net"


def activation_url(base_url: str, user: User) -> str:
    """Link carrying the raw activation token; only valid while the token is in memory."""
    query = urlencode({"token": user.activation_token, "email": user.email or ""})
    return f"{base_url.rstrip('/')}/account_activations/edit?{query}"


def password_reset_url(base_url: str, user: User) -> str:
    query = urlencode({"token": user.reset_token, "email": user.email or ""})
    return f"{base_url.rstrip('/')}/password_resets/edit?{query}"


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> bool:
    """Send email via Mailgun. Returns False when unconfigured or the API call fails."""
    settings = get_settings()
    if not (settings.mailgun_api_key and settings.mailgun_domain):
        logger.warning("Email NOT SENT to=%s subject=%s: MAILGUN_API_KEY / MAILGUN_DOMAIN not set", to_email, subject)
        return False
    return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings=None) -> bool:
    if settings is None:
        settings = get_settings()
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        # Mailgun drops mail whose sender is outside the sending domain
        from_addr = f"noreply@{domain}"
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
    except httpx.HTTPError as e:
        logger.warning("Mailgun request failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return False
    if 200 <= r.status_code < 300:
        logger.info("Mailgun accepted message to=%s subject=%s", to_email, subject)
        return True
    logger.warning("Mailgun API failed: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
    return False


def send_activation_email(user: User, url: str) -> bool:
    """Ask a new local account to confirm its email address."""
    settings = get_settings()
    name = (user.name or "").strip() or "there"
    subject = f"[{settings.app_name}] Verify your account"
    text = f"Hi {name}, confirm your email address to activate your account: {url}"
    html = f"""
    <p>Hi {name},</p>
    <p>Welcome to <strong>{settings.app_name}</strong>. Confirm your email address to activate your account:</p>
    <p><a href="{url}">Verify account</a></p>
    <p>If you did not sign up, you can ignore this email.</p>
    """
    return send_email(user.email, subject, html, text_content=text)


def send_password_reset_email(user: User, url: str) -> bool:
    settings = get_settings()
    name = (user.name or "").strip() or "there"
    hours = settings.password_reset_expire_hours
    subject = f"[{settings.app_name}] Password reset"
    text = f"Hi {name}, reset your password here: {url}. The link expires in {hours} hours."
    html = f"""
    <p>Hi {name},</p>
    <p>Someone asked to reset the password for your account. Use the link below to choose a new one:</p>
    <p><a href="{url}">Reset password</a></p>
    <p>This link expires in {hours} hours. If you did not ask for a reset, you can ignore this email.</p>
    """
    return send_email(user.email, subject, html, text_content=text)
