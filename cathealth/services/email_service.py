# services/email_service.py
import html
import os
import logging
import re
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To
from typing import Callable, List, Optional

import cathealth.db.db_access as db
from cathealth.auth.session import Identity
from cathealth.core.exceptions import UpstreamError, ValidationError
from cathealth.services.document import to_blocks

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_SENDER = "wellness@cathealth.app"


def plan_to_html(wellness_plan: str) -> str:
    """Plan markdown as simple HTML (headings, bullet lists, paragraphs)."""
    parts: List[str] = []
    in_list = False
    for block in to_blocks(wellness_plan):
        text = html.escape(block.text)
        if block.kind == "bullet":
            if not in_list:
                parts.append('<ul style="padding-left: 20px;">')
                in_list = True
            parts.append(f"<li>{html.escape(block.text[2:])}</li>")
            continue
        if in_list:
            parts.append("</ul>")
            in_list = False
        if block.kind == "heading":
            parts.append(f'<h3 style="color: #4f46e5; margin-top: 24px;">{text}</h3>')
        else:
            parts.append(f"<p>{text}</p>")
    if in_list:
        parts.append("</ul>")
    return "\n".join(parts)


def plan_to_text(wellness_plan: str) -> str:
    lines: List[str] = []
    for block in to_blocks(wellness_plan):
        if block.kind == "heading":
            lines += ["", block.text.upper(), ""]
        else:
            lines.append(block.text)
    return "\n".join(lines).strip()


def send_wellness_plan_email(recipient_email: str, cat_name: str, wellness_plan: str) -> bool:
    """
    Send a wellness plan to the given address.

    Args:
        recipient_email: The email address to send to
        cat_name: The cat the plan was written for
        wellness_plan: The plan narrative (markdown)

    Returns:
        bool: True if email was sent successfully, False otherwise
    """
    try:
        # Get SendGrid API key from environment
        sg_api_key = os.getenv('SENDGRID_API_KEY')
        if not sg_api_key:
            logger.error("SENDGRID_API_KEY not found in environment variables")
            return False

        sg = SendGridAPIClient(sg_api_key)

        from_email = Email(os.getenv("EMAIL_FROM", DEFAULT_SENDER))
        to_email = To(recipient_email)
        subject = f"{cat_name}'s Wellness & Behavior Plan"

        html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; padding: 20px; color: #374151;">
                <h2>{html.escape(cat_name)}'s Wellness &amp; Behavior Plan</h2>
                <p>Here is the personalized plan you created with CatHealth.</p>
                {plan_to_html(wellness_plan)}
                <hr>
                <p style="font-size: 12px; color: #6b7280;">
                    This plan is for informational purposes only and does not replace professional veterinary advice.
                </p>
                <p>Best regards,<br>The CatHealth Team</p>
            </body>
        </html>
        """

        plain_content = (
            f"{cat_name}'s Wellness & Behavior Plan\n\n"
            "Here is the personalized plan you created with CatHealth.\n\n"
            f"{plan_to_text(wellness_plan)}\n\n"
            "This plan is for informational purposes only and does not replace professional veterinary advice.\n\n"
            "Best regards,\nThe CatHealth Team\n"
        )

        message = Mail(
            from_email=from_email,
            to_emails=to_email,
            subject=subject,
            plain_text_content=plain_content,
            html_content=html_content
        )

        response = sg.send(message)

        logger.info(f"Wellness plan email sent successfully to {recipient_email}. Status code: {response.status_code}")
        return True

    except Exception as e:
        logger.error(f"Failed to send wellness plan email to {recipient_email}: {str(e)}")
        return False


EmailSender = Callable[[str, str, str], bool]


class PlanEmailService:
    """Validates a delivery request, sends the plan, and records the delivery on the saved plan."""

    def __init__(self, sender: Optional[EmailSender] = None):
        self.sender = sender or send_wellness_plan_email

    def send(
        self,
        identity: Identity,
        user_email: str,
        wellness_plan: str,
        plan_id: Optional[str] = None,
        cat_name: Optional[str] = None,
    ) -> str:
        user_email = (user_email or "").strip()
        if not user_email or not (wellness_plan or "").strip():
            raise ValidationError("Email and wellness plan are required", field="userEmail")
        if not EMAIL_PATTERN.match(user_email):
            raise ValidationError("Invalid email address", field="userEmail")

        if not self.sender(user_email, cat_name or "Your Cat", wellness_plan):
            raise UpstreamError("Failed to send email")

        if plan_id:
            result = db.mark_plan_emailed(plan_id, identity.user_id, user_email)
            if not result:
                logger.warning(f"Email sent but plan {plan_id} not updated: {result.message}")

        return f"Wellness plan has been sent to {user_email}"
