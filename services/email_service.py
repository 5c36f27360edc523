import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import settings
from core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class EmailService:
    """
    Transactional email via SendGrid. Without credentials it logs the
    message instead of sending it (local development).
    """

    def __init__(self, api_key, sender_email):
        self.sendgrid_api_key = api_key
        self.sender_email = sender_email

        self.enabled = bool(self.sendgrid_api_key and self.sender_email)
        if not self.enabled:
            logger.warning("📧 Email service not configured. Missing SENDGRID_API_KEY or MAIL_FROM.")
        else:
            logger.info(f"📧 Email service configured and ready. Sender: {self.sender_email}")

    # ============================================================
    # ✅ Send Client Invitation Email
    # ============================================================
    def send_invitation_email(self, to_email: str, invitation_link: str, client_name: str = "there") -> None:
        """Send the set-your-password link. Raises UpstreamError when SendGrid rejects it."""
        if not self.enabled:
            logger.info(f"📨 [Mock Email] To: {to_email}")
            logger.info(f"Link: {invitation_link}")
            return

        subject = "You're invited to your client portal"
        html_content = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <h2>Hello {client_name},</h2>
            <p>Your client portal account is ready. Follow the link below to set
            your password and see your projects, documents and invoices.</p>

            <p style="text-align: center; margin: 20px 0;">
                <a href="{invitation_link}" style="
                    background-color: #111;
                    color: white;
                    padding: 12px 28px;
                    text-decoration: none;
                    border-radius: 6px;
                    font-weight: bold;
                    display: inline-block;
                ">Set up my account</a>
            </p>

            <p>If the button doesn’t work, copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #555;">{invitation_link}</p>

            <p><small>This link expires in {settings.INVITATION_VALID_DAYS} days.</small></p>
        </div>
        """

        try:
            message = Mail(
                from_email=self.sender_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content,
            )
            sg = SendGridAPIClient(self.sendgrid_api_key)
            response = sg.send(message)
        except Exception as e:
            logger.exception("❌ Failed to send invitation email to %s", to_email)
            raise UpstreamError("Failed to invite user", detail=str(e))

        logger.info(f"✅ Invitation email sent to {to_email}. Status: {response.status_code}")


# ============================================================
# ✅ Global instance for app-wide import
# ============================================================
email_service = EmailService(settings.SENDGRID_API_KEY, settings.MAIL_FROM)


def get_email_service() -> EmailService:
    return email_service
