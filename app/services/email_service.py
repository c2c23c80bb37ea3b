"""
AWS SES email delivery for candidate and recruiter notifications.

Templates are plain text with str.format placeholders; the HTML part wraps
the same text so both bodies always agree.
"""

import html
import logging
from typing import Dict, Optional
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from app.core.config import settings

logger = logging.getLogger(__name__)


TEMPLATES: Dict[str, Dict[str, str]] = {
    "rejection": {
        "subject": "Your application for {job_title}",
        "body": (
            "Hi {first_name},\n\n"
            "Thank you for the time you spent with us applying for {job_title}. "
            "After careful consideration we have decided not to progress your application.\n\n"
            "{message}\n\n"
            "We wish you the best of luck.\n"
        ),
    },
    "booking_confirmation": {
        "subject": "Your {interview_type} is booked",
        "body": (
            "Hi {first_name},\n\n"
            "Your {interview_type} for {job_title} is confirmed for {scheduled_for}.\n\n"
            "If you need to change it, please reply to this email.\n"
        ),
    },
    "feedback_reminder": {
        "subject": "Feedback outstanding: {candidate_name}",
        "body": (
            "The {interview_type} with {candidate_name} for {job_title} "
            "took place on {scheduled_for} and no feedback has been submitted yet.\n"
        ),
    },
}


class _Defaults(dict):
    """format_map helper leaving unknown placeholders empty."""

    def __missing__(self, key):
        return ""


class EmailService:
    """
    Sends templated emails via AWS SES.
    """

    def __init__(self):
        session_kwargs = {
            'region_name': settings.AWS_REGION,
        }

        # Explicit credentials if provided, otherwise the IAM role
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            session_kwargs['aws_access_key_id'] = settings.AWS_ACCESS_KEY_ID
            session_kwargs['aws_secret_access_key'] = settings.AWS_SECRET_ACCESS_KEY

        self.ses_client = boto3.client('ses', **session_kwargs)

    def render(self, template_type: str, context: Dict[str, object]) -> Dict[str, str]:
        """
        Render a template into subject, text and html parts.

        Raises:
            KeyError: Unknown template type
        """
        template = TEMPLATES[template_type]
        values = _Defaults({k: "" if v is None else v for k, v in context.items()})
        subject = template["subject"].format_map(values)
        text = template["body"].format_map(values)
        paragraphs = "".join(f"<p>{html.escape(p)}</p>" for p in text.split("\n\n") if p.strip())
        return {"subject": subject, "text": text, "html": f"<html><body>{paragraphs}</body></html>"}

    def send_templated_email(
        self,
        to_email: str,
        template_type: str,
        context: Optional[Dict[str, object]] = None,
    ) -> bool:
        """
        Render and send a template.

        Args:
            to_email: Recipient address
            template_type: Key of TEMPLATES
            context: Placeholder values

        Returns:
            bool: True if SES accepted the message, False otherwise
        """
        try:
            parts = self.render(template_type, context or {})
        except KeyError:
            logger.error(f"Unknown email template '{template_type}'")
            return False

        try:
            response = self.ses_client.send_email(
                Source=f"{settings.AWS_SES_FROM_NAME} <{settings.AWS_SES_FROM_EMAIL}>",
                Destination={'ToAddresses': [to_email]},
                Message={
                    'Subject': {'Data': parts["subject"], 'Charset': 'UTF-8'},
                    'Body': {
                        'Html': {'Data': parts["html"], 'Charset': 'UTF-8'},
                        'Text': {'Data': parts["text"], 'Charset': 'UTF-8'}
                    }
                }
            )
            logger.info(f"'{template_type}' email sent to {to_email} (MessageId: {response.get('MessageId')})")
            return True

        except ClientError as e:
            error = e.response['Error']
            logger.error(f"AWS SES ClientError sending '{template_type}': {error['Code']} - {error['Message']}")
            return False

        except BotoCoreError as e:
            logger.error(f"AWS BotoCoreError sending '{template_type}': {str(e)}")
            return False


# Singleton instance
email_service = EmailService()
