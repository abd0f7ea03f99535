import html
import logging
import smtplib
from email.mime.text import MIMEText

from clientdesk.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    pass


# -----------------------------
#  HTML EMAIL TEMPLATES
# -----------------------------
_LAYOUT = """
<!DOCTYPE html>
<html>
  <body style="margin:0; padding:0; font-family:Arial, Helvetica, sans-serif; background:#f4f4f4;">
    <table width="100%" cellpadding="0" cellspacing="0" style="background:#f4f4f4; padding:40px 0;">
      <tr>
        <td align="center">
          <table width="480" cellpadding="0" cellspacing="0" style="background:#ffffff; border-radius:12px; padding:30px;">
            <tr>
              <td style="font-size:15px; color:#333; line-height:1.6;">
                {{BODY}}
              </td>
            </tr>
            <tr><td style="height:24px;"></td></tr>
            <tr>
              <td style="font-size:13px; color:#999;">
                <strong>{{business_name}}</strong>
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>
"""

TEMPLATES = {
    "welcome": {
        "subject": "Welcome to {{business_name}}",
        "body": (
            "Hi {{to_name}},<br><br>"
            "An account has been created for you. Sign in with:<br><br>"
            "Email: <strong>{{to_email}}</strong><br>"
            "Password: <strong>{{password}}</strong><br><br>"
            "Please change your password from the settings page after your first login."
        ),
    },
    "client_message": {
        "subject": "{{subject}}",
        "body": "Hi {{to_name}},<br><br>{{message}}",
    },
}

DEFAULT_CLIENT_SUBJECT = "A message from {{business_name}}"

PROJECT_NOTICE_TEMPLATE = (
    "Dear Client,\n\n"
    'This is a notification regarding your project: "{project}".\n\n'
    "We have identified that there might be missing files or documents required for this project. "
    "Please review your files and upload any outstanding items to your gallery. "
    "If you have any questions, please contact us.\n\n"
    "Thank you,\n"
)


def _format_value(value) -> str:
    text = html.escape("" if value is None else str(value))
    return text.replace("\n", "<br>")


def _fill(template: str, params: dict) -> str:
    rendered = template
    for key, value in params.items():
        rendered = rendered.replace("{{" + key + "}}", _format_value(value))
    return rendered


def render_template(template_name: str, params: dict) -> tuple[str, str]:
    """Return (subject, html) for a named template filled with params."""
    template = TEMPLATES.get(template_name)
    if template is None:
        raise ValueError(f"Unknown email template: {template_name}")

    values = {"business_name": settings.BUSINESS_NAME, **params}
    subject_template = template["subject"]
    if template_name == "client_message" and not values.get("subject"):
        subject_template = DEFAULT_CLIENT_SUBJECT
    subject = html.unescape(_fill(subject_template, values))
    body = _fill(template["body"], values)
    page = _LAYOUT.replace("{{BODY}}", body).replace(
        "{{business_name}}", _format_value(settings.BUSINESS_NAME)
    )
    return subject, page


def build_project_notice(project: str) -> str:
    return PROJECT_NOTICE_TEMPLATE.format(project=project)


def send_email(to_email: str, subject: str, html_message: str) -> None:
    if not settings.SMTP_HOST or not settings.FROM_EMAIL:
        raise EmailDeliveryError("Email service not configured")

    msg = MIMEText(html_message, "html")
    msg["Subject"] = subject
    msg["From"] = settings.FROM_EMAIL
    msg["To"] = to_email

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=20) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USER:
                server.login(settings.SMTP_USER, settings.SMTP_PASS or "")
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError(f"Failed to send email to {to_email}") from exc

    logger.info("Email sent to %s subject=%s", to_email, subject)


def send_template(template_name: str, to_email: str, params: dict) -> None:
    subject, page = render_template(template_name, {"to_email": to_email, **params})
    send_email(to_email, subject, page)
