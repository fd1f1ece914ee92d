import boto3
from botocore.exceptions import ClientError
from datetime import datetime
from typing import Optional
from quizora.config import settings
from quizora.log import get_logger

logger = get_logger(__name__)

CHARSET = "UTF-8"

EMAIL_CSS_STYLES = """
    body {
        font-family: Arial, sans-serif;
        background-color: #f9f9f9;
        color: #333;
        padding: 20px;
    }
    .container {
        max-width: 600px;
        margin: 0 auto;
        background-color: #ffffff;
        border-radius: 8px;
        padding: 30px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.05);
    }
    .code {
        font-size: 24px;
        font-weight: bold;
        background-color: #eef3fb;
        padding: 12px 20px;
        border-radius: 6px;
        display: inline-block;
        margin: 20px 0;
        letter-spacing: 6px;
    }
    .footer {
        margin-top: 30px;
        font-size: 13px;
        color: #777;
    }
"""


def _get_ses_client():
    """Create and return an AWS SES client."""
    return boto3.client(
        "ses",
        region_name=settings.AWS_DEFAULT_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )


def _send_email(email: str, subject: str, body_html: str) -> bool:
    """
    Send an email using AWS SES.

    When EMAIL_ENABLED is off the message is only logged, so development and
    test environments never need AWS credentials.

    Args:
        email: Recipient email address
        subject: Email subject
        body_html: HTML body content

    Returns:
        bool: True if email sent successfully, False otherwise
    """
    if not settings.EMAIL_ENABLED:
        logger.info(f"Email delivery disabled, not sending '{subject}' to {email}")
        return True
    try:
        client = _get_ses_client()
        client.send_email(
            Destination={"ToAddresses": [email]},
            Message={
                "Body": {"Html": {"Charset": CHARSET, "Data": body_html}},
                "Subject": {"Charset": CHARSET, "Data": subject},
            },
            Source=settings.EMAIL_SENDER,
        )
        logger.info(f"Email sent successfully to {email}")
        return True
    except ClientError as e:
        error_msg = e.response["Error"]["Message"]
        logger.error(f"Failed to send email to {email}: {error_msg}")
        return False


def _create_email_template(
    title: str,
    main_content: str,
    code: Optional[str] = None,
    additional_info: str = "",
) -> str:
    """
    Create a standardized email HTML template.

    Args:
        title: Email title/heading
        main_content: Main content paragraph
        code: Optional one-time code to display
        additional_info: Additional information to include

    Returns:
        str: Complete HTML email template
    """
    current_year = datetime.now().year

    code_section = ""
    if code:
        code_section = f"""
        <p>Your verification code is:</p>
        <div class="code">{code}</div>
        """

    return f"""\
<html>
  <head>
    <style>
{EMAIL_CSS_STYLES}
    </style>
  </head>
  <body>
    <div class="container">
      <h1>{title}</h1>
      <p>{main_content}</p>
      {code_section}
      {additional_info}
      <div class="footer">
        <p>This is an automated message from {settings.PROJECT_NAME}. Please do not reply.</p>
        <p>&copy; {current_year} {settings.PROJECT_NAME}. All rights reserved.</p>
      </div>
    </div>
  </body>
</html>
"""


def send_otp_email(email: str, first_name: str, code: str, purpose: str) -> bool:
    """
    Send a one-time password for a password change or a forgotten password.

    Args:
        email: Recipient email address
        first_name: Recipient's first name
        code: The 6-digit OTP
        purpose: "password_change" or "password_reset"

    Returns:
        bool: True if email sent successfully, False otherwise
    """
    if purpose == "password_reset":
        subject = f"{settings.PROJECT_NAME} - Password Reset Code"
        main_content = f"Hi {first_name}, use the code below to reset your password."
    else:
        subject = f"{settings.PROJECT_NAME} - Password Change Verification"
        main_content = f"Hi {first_name}, use the code below to confirm your password change."

    additional_info = f"""
    <p>This code will expire in {settings.OTP_EXPIRE_MINUTES} minutes.</p>
    <p>If you did not request this, you can safely ignore this email.</p>
    """
    body_html = _create_email_template(
        title=settings.PROJECT_NAME,
        main_content=main_content,
        code=code,
        additional_info=additional_info,
    )
    return _send_email(email=email, subject=subject, body_html=body_html)


def send_welcome_email(email: str, first_name: str, role: str) -> bool:
    login_link = f"{settings.FRONTEND_URL}/login"
    additional_info = f"""
    <p>You can sign in at <a href="{login_link}">{login_link}</a> with this email address.</p>
    <p>Please change the temporary password you were given after your first login.</p>
    """
    body_html = _create_email_template(
        title=f"Welcome to {settings.PROJECT_NAME}",
        main_content=f"Hi {first_name}, an administrator has created a {role} account for you.",
        additional_info=additional_info,
    )
    return _send_email(
        email=email,
        subject=f"{settings.PROJECT_NAME} - Your account is ready",
        body_html=body_html,
    )


def send_password_changed_email(email: str, first_name: str) -> bool:
    body_html = _create_email_template(
        title=settings.PROJECT_NAME,
        main_content=f"Hi {first_name}, the password for your account was just changed.",
        additional_info="<p>If this wasn't you, contact your administrator immediately.</p>",
    )
    return _send_email(
        email=email,
        subject=f"{settings.PROJECT_NAME} - Password changed",
        body_html=body_html,
    )
