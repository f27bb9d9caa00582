"""
Email Service for the KTV back office.
Handles sending emails via SMTP (SendGrid, Gmail, Resend SMTP relay, etc.)
"""

from __future__ import annotations

import html
import os
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ktv_shared.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class EmailResult:
    sent: bool
    error: str | None = None


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self):
        self.enabled = os.getenv("EMAIL_ENABLED", "false").lower() == "true"
        self.smtp_host = os.getenv("SMTP_HOST", "smtp.resend.com")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.from_email = os.getenv("SMTP_FROM", "onboarding@resend.dev")
        self.from_name = os.getenv("SMTP_FROM_NAME", os.getenv("VENUE_NAME", "Platinum High KTV"))

    def send_email(
        self, to_email: str, subject: str, body_text: str, body_html: str | None = None
    ) -> EmailResult:
        """
        Send an email.

        Returns an EmailResult; ``error`` carries the reason when nothing was sent.
        """
        if not self.enabled:
            logger.warning(f"[EMAIL] Email disabled. Would send to {to_email}: {subject}")
            return EmailResult(False, "Email sending is disabled")

        if not self.smtp_password:
            logger.error("[EMAIL] SMTP_PASSWORD not configured")
            return EmailResult(False, "SMTP_PASSWORD not configured")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(body_text, "plain", "utf-8"))
        if body_html:
            msg.attach(MIMEText(body_html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"[EMAIL] Authentication failed: {e}")
            return EmailResult(False, f"Authentication failed: {e}")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[EMAIL] SMTP error sending to {to_email}: {e}")
            return EmailResult(False, str(e))

        logger.info(f"[EMAIL] Sent successfully to {to_email}: {subject}")
        return EmailResult(True)

    def send_booking_reminder(
        self,
        to_email: str,
        customer_name: str,
        room_name: str,
        room_number: str,
        booking_date: str,
        start_time: str,
        end_time: str,
        lead_minutes: int = 15,
    ) -> EmailResult:
        subject = f"Booking Reminder - {room_name} in {lead_minutes} minutes"

        body_text = f"""Hi {customer_name},

This is a friendly reminder that your karaoke session starts in {lead_minutes} minutes.

Room: {room_name} ({room_number})
Date: {booking_date}
Time: {start_time} - {end_time}

Please arrive a few minutes early. See you soon!
"""

        customer_name, room_name, room_number = (
            html.escape(value) for value in (customer_name, room_name, room_number)
        )
        body_html = f"""
<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; color: #1e293b; max-width: 520px; margin: 0 auto;">
    <h1 style="color: #7c3aed;">Your session starts soon!</h1>
    <p>Hi <strong>{customer_name}</strong>,</p>
    <p>This is a friendly reminder that your karaoke session starts in
       <strong>{lead_minutes} minutes</strong>.</p>
    <div style="background: #f5f3ff; border-radius: 8px; padding: 16px;">
        <p><strong>Room:</strong> {room_name} ({room_number})</p>
        <p><strong>Date:</strong> {booking_date}</p>
        <p><strong>Time:</strong> {start_time} - {end_time}</p>
    </div>
    <p>Please arrive a few minutes early. See you soon!</p>
</body>
</html>
"""
        return self.send_email(to_email, subject, body_text, body_html)

    def send_welcome(self, to_email: str, full_name: str | None, venue_name: str) -> EmailResult:
        name = full_name or "Pengguna"
        subject = f"Selamat Datang di {venue_name}!"

        body_text = f"""Halo {name},

Terima kasih telah mendaftar di {venue_name}.
Akun Anda telah berhasil dibuat. Silakan hubungi manajer untuk mendapatkan akses peran.
"""

        name, venue_name = html.escape(name), html.escape(venue_name)
        body_html = f"""
<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: Arial, sans-serif; color: #1e293b; max-width: 520px; margin: 0 auto;">
    <h1 style="color: #7c3aed;">Selamat Datang di {venue_name}!</h1>
    <p>Halo <strong>{name}</strong>,</p>
    <p>Terima kasih telah mendaftar. Akun Anda telah berhasil dibuat.</p>
    <p>Silakan hubungi manajer untuk mendapatkan akses peran.</p>
</body>
</html>
"""
        return self.send_email(to_email, subject, body_text, body_html)


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
