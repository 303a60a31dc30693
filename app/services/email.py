import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from app.core.config import Settings

logger = logging.getLogger(__name__)

def send_email(settings: Settings, to_email: str, subject: str, body: str) -> bool:
    if not settings.MAIL_ENABLED:
        logger.info("Mail disabled, not sending %r to %s", subject, to_email)
        return False
    try:
        msg = MIMEMultipart()
        msg['From'] = settings.MAIL_FROM
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'html'))

        if settings.MAIL_SSL:
            logger.debug("Connecting to %s:%s via SSL", settings.MAIL_SERVER, settings.MAIL_PORT)
            server = smtplib.SMTP_SSL(settings.MAIL_SERVER, settings.MAIL_PORT)
        else:
            logger.debug("Connecting to %s:%s via TLS", settings.MAIL_SERVER, settings.MAIL_PORT)
            server = smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT)
            server.starttls()

        server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        server.sendmail(settings.MAIL_FROM, to_email, msg.as_string())
        server.quit()
        logger.info("Email successfully sent to %s", to_email)
        return True
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email to %s", to_email)
        return False

def send_password_reset_email(settings: Settings, to_email: str, name: str, token: str) -> bool:
    link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
    body = (
        f"<p>Hi {name},</p>"
        f"<p>Someone asked to reset the password for your account. "
        f"Use the link below within {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes:</p>"
        f"<p><a href=\"{link}\">{link}</a></p>"
        f"<p>If this wasn't you, you can ignore this email.</p>"
    )
    return send_email(settings, to_email, "Password Reset Request", body)
