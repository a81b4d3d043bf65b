"""
Email service for sending emails via Brevo API.

This module handles the host notification sent on every RSVP:
- Brevo API integration
- Template rendering with parameter substitution
- Email logging to database

Sending is best effort. Failures are logged and recorded in ``email_logs``
but never raised, so an email problem cannot undo or block an RSVP.
"""

import os
import re
from datetime import datetime
from flask import current_app
from markupsafe import escape
import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException
from sqlalchemy.exc import SQLAlchemyError

from guestlist import db
from guestlist.models import EmailLog


class EmailService:
    """Service for sending emails via Brevo."""

    def __init__(self):
        self._api_instance = None

    @property
    def api_instance(self):
        """Get or create Brevo API instance."""
        if self._api_instance is None:
            api_key = os.environ.get('BREVO_API_KEY')
            if not api_key:
                raise ValueError("BREVO_API_KEY environment variable not set")

            configuration = sib_api_v3_sdk.Configuration()
            configuration.api_key['api-key'] = api_key
            self._api_instance = sib_api_v3_sdk.TransactionalEmailsApi(
                sib_api_v3_sdk.ApiClient(configuration)
            )
        return self._api_instance

    def _substitute_params(self, html_content: str, params: dict) -> str:
        """Replace {{ params.X }} placeholders with actual values."""
        for key, value in params.items():
            pattern = r'\{\{\s*params\.' + key + r'\s*\}\}'
            html_content = re.sub(pattern, lambda _: str(escape(value)), html_content)
        return html_content

    def _read_template(self, template_file: str) -> str:
        """Read an email template file."""
        template_path = os.path.join(
            current_app.root_path, 'templates', template_file
        )
        with open(template_path, 'r', encoding='utf-8') as f:
            return f.read()

    def _save_log(self, email_log: EmailLog):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Could not write email log for {email_log.recipient_email}: {e}")

    def send_email(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        template_file: str,
        params: dict,
        email_type: str,
        guest_id: int = None,
        dry_run: bool = False
    ) -> dict:
        """
        Send an email via Brevo.

        Args:
            to_email: Recipient email address
            to_name: Recipient name
            subject: Email subject
            template_file: Path to template file (e.g., 'emails/rsvp_notification.html')
            params: Dictionary of template parameters
            email_type: Type for logging (rsvp_notification)
            guest_id: Optional guest ID to link in logs
            dry_run: If True, don't actually send (for testing)

        Returns:
            dict with 'success', 'message_id', and 'error' keys
        """
        result = {
            'success': False,
            'message_id': None,
            'error': None
        }

        # Create email log entry
        email_log = EmailLog(
            email_type=email_type,
            recipient_email=to_email,
            recipient_name=to_name,
            subject=subject,
            guest_id=guest_id,
            status='pending'
        )
        db.session.add(email_log)

        if dry_run:
            email_log.status = 'dry_run'
            email_log.error_message = 'Dry run - email not sent'
            self._save_log(email_log)
            result['success'] = True
            result['message_id'] = 'dry_run'
            return result

        try:
            # Read and process template
            raw_html = self._read_template(template_file)
            html_content = self._substitute_params(raw_html, params)

            sender = {"name": "Guest List", "email": os.environ.get('MAIL_SENDER', 'noreply@example.com')}
            to = [{"email": to_email, "name": to_name}]

            send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
                sender=sender,
                to=to,
                subject=subject,
                html_content=html_content
            )

            # Send via Brevo
            api_response = self.api_instance.send_transac_email(send_smtp_email)

            # Update log with success
            email_log.brevo_message_id = api_response.message_id
            email_log.status = 'sent'
            self._save_log(email_log)

            result['success'] = True
            result['message_id'] = api_response.message_id

        except ApiException as e:
            email_log.status = 'failed'
            email_log.error_message = str(e)
            self._save_log(email_log)

            result['error'] = str(e)
            current_app.logger.error(f"Brevo API error: {e}")

        except Exception as e:
            email_log.status = 'failed'
            email_log.error_message = str(e)
            self._save_log(email_log)

            result['error'] = str(e)
            current_app.logger.error(f"Email send error: {e}")

        return result

    def send_rsvp_notification(self, guest) -> dict:
        """Tell the host about a new or changed RSVP."""
        host_email = current_app.config.get('HOST_EMAIL')
        if not host_email:
            current_app.logger.info(f"HOST_EMAIL not set, skipping RSVP notification for guest {guest.id}")
            return {'success': False, 'message_id': None, 'error': 'HOST_EMAIL not configured'}

        now = datetime.now()
        params = {
            'HOST_NAME': current_app.config.get('HOST_NAME', 'Host'),
            'GUEST_NAME': guest.name,
            'ATTENDING': 'Yes, I will be there!' if guest.is_attending else 'Cannot make it',
            'MESSAGE': guest.message or 'No message provided',
            'DATE': now.strftime('%A, %B %d, %Y'),
            'TIME': now.strftime('%I:%M %p'),
            'ADMIN_URL': f"{current_app.config.get('APP_URL', 'http://localhost:5000')}/admin/",
        }
        status = 'Attending' if guest.is_attending else 'Not Attending'

        return self.send_email(
            to_email=host_email,
            to_name=params['HOST_NAME'],
            subject=f"New RSVP: {guest.name} - {status}",
            template_file='emails/rsvp_notification.html',
            params=params,
            email_type='rsvp_notification',
            guest_id=guest.id,
            dry_run=current_app.config.get('EMAIL_DRY_RUN', False)
        )


# Global instance
email_service = EmailService()
