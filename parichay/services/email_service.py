"""
SendGrid email service for Parichay
- New lead notifications to branch contacts
- Generic HTML emails
"""

import logging
from html import escape
from datetime import datetime, timezone
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from parichay.config import SENDGRID_API_KEY, SENDER_EMAIL, SENDER_NAME

logger = logging.getLogger("email_service")


class EmailService:
    """Central service for outgoing emails"""

    def __init__(self, api_key: str = None, sender: str = None):
        self.api_key = SENDGRID_API_KEY if api_key is None else api_key
        self.sender = sender or SENDER_EMAIL

    def _send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send an email through SendGrid"""
        if not self.api_key:
            logger.error("SENDGRID_API_KEY not configured")
            return False

        try:
            message = Mail(
                from_email=Email(self.sender, SENDER_NAME),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            sg = SendGridAPIClient(self.api_key)
            response = sg.send(message)

            if response.status_code in [200, 202]:
                logger.info(f"Email sent to {to_email}: {subject}")
                return True
            else:
                logger.error(f"Email send error: {response.status_code}")
                return False

        except Exception as e:
            logger.error(f"Email send exception: {str(e)}")
            return False

    def send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        return self._send_email(to_email, subject, html_content)

    # ==================== NEW LEAD ====================

    def send_lead_notification(self, to_email: str, lead_info: dict, brand_name: str, branch_name: str) -> bool:
        """
        Notify a branch contact of a new lead.
        lead_info = {
            "lead_id": "...",
            "name": "Asha Patel",
            "email": "asha@example.com" | None,
            "phone": "+91 98765 43210" | None,
            "message": "..." | None,
            "source": "microsite_form",
            "submitted_at": "19/10/2026 10:32"
        }
        """
        subject = f"🎯 New Lead from {brand_name} - {branch_name}"
        html_content = build_lead_email_html(lead_info, brand_name, branch_name)
        return self._send_email(to_email, subject, html_content)


def build_lead_email_html(lead_info: dict, brand_name: str, branch_name: str) -> str:
    """HTML body of the new lead email. Submitted values are HTML-escaped."""
    name = escape(lead_info.get("name") or "")
    email = escape(lead_info.get("email") or "Not provided")
    phone = escape(lead_info.get("phone") or "Not provided")
    source = escape(lead_info.get("source") or "")
    message_html = ""
    if lead_info.get("message"):
        message_html = f"""
              <div class="detail-row">
                <span class="detail-label">Message:</span><br/>
                {escape(lead_info["message"])}
              </div>"""

    return f"""
    <!DOCTYPE html>
    <html>
      <head>
        <style>
          body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
          .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
          .header {{ background-color: #3B82F6; color: white; padding: 20px; text-align: center; }}
          .content {{ padding: 20px; background-color: #f9f9f9; }}
          .lead-details {{ background-color: white; padding: 15px; border-radius: 5px; margin: 20px 0; }}
          .detail-row {{ padding: 8px 0; border-bottom: 1px solid #eee; }}
          .detail-label {{ font-weight: bold; color: #666; }}
          .source-badge {{ display: inline-block; padding: 4px 12px; background-color: #10B981; color: white; border-radius: 12px; font-size: 12px; }}
          .footer {{ text-align: center; padding: 20px; font-size: 12px; color: #666; }}
        </style>
      </head>
      <body>
        <div class="container">
          <div class="header">
            <h1>🎯 New Lead Received!</h1>
          </div>
          <div class="content">
            <p><strong>Branch:</strong> {escape(branch_name)}</p>
            <p><strong>Brand:</strong> {escape(brand_name)}</p>
            <p><strong>Submitted:</strong> {escape(lead_info.get("submitted_at") or "")}</p>
            <p><strong>Source:</strong> <span class="source-badge">{source}</span></p>

            <div class="lead-details">
              <h3>Lead Details</h3>
              <div class="detail-row">
                <span class="detail-label">Name:</span> {name}
              </div>
              <div class="detail-row">
                <span class="detail-label">Email:</span> {email}
              </div>
              <div class="detail-row">
                <span class="detail-label">Phone:</span> {phone}
              </div>{message_html}
            </div>

            <p style="margin-top: 20px; padding: 15px; background-color: #FEF3C7; border-left: 4px solid #F59E0B; border-radius: 4px;">
              ⚡ <strong>Action Required:</strong> Please follow up with this lead as soon as possible to maximize conversion.
            </p>

            <p style="font-size: 12px; color: #666; margin-top: 20px;">
              Lead ID: {escape(str(lead_info.get("lead_id") or ""))}
            </p>
          </div>
          <div class="footer">
            <p>&copy; {datetime.now(timezone.utc).year} {escape(SENDER_NAME)}. All rights reserved.</p>
          </div>
        </div>
      </body>
    </html>
    """


# Global instance
email_service = EmailService()
