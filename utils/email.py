import html
import resend
from datetime import tzinfo
from typing import Optional
from config import config
from logging_config import get_logger
from models.task import TaskModel
from utils.clock import get_clock

logger = get_logger("email")

# Set the API key for the resend SDK
if config.RESEND_API_KEY:
    resend.api_key = config.RESEND_API_KEY

def send_email(to_email: str, subject: str, html_content: str, text_content: Optional[str] = None):
    """
    Utility function to send an email using Resend.
    Does nothing if RESEND_API_KEY is not configured. Delivery errors are logged, never raised.
    """
    if not config.RESEND_API_KEY or config.RESEND_API_KEY == "your_resend_api_key_here":
        logger.warning(f"Resend API key not configured. Mock sending email to {to_email} with subject '{subject}'")
        return None

    try:
        params = {
            "from": f"{config.MAIL_FROM_NAME} <{config.MAIL_FROM}>",
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            params["text"] = text_content
        response = resend.Emails.send(params)
        logger.info(f"Email sent successfully to {to_email}", extra={"data": {"email_id": response.get("id")}})
        return response
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
        return None


def base_email_template(title: str, preheader: str, content: str, cta_url: str = None, cta_text: str = None, footer_text: str = "") -> str:
    """
    Generates the responsive HTML skeleton shared by all Todu emails.
    """
    cta_html = f"""
    <div style="text-align: center; margin: 32px 0;">
        <a href="{cta_url}" style="background-color: #3B82F6; color: #ffffff; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 600; font-size: 15px; display: inline-block;">
            {cta_text}
        </a>
    </div>
    """ if cta_url and cta_text else ""

    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{title}</title>
    </head>
    <body style="font-family: Arial, Helvetica, sans-serif; background-color: #f3f4f6; margin: 0; padding: 0; line-height: 1.6;">
        <div style="display: none; max-height: 0px; overflow: hidden;">
            {preheader}
        </div>

        <table width="100%" cellpadding="0" cellspacing="0" border="0" style="background-color: #f3f4f6; margin: 0; padding: 40px 20px;">
            <tr>
                <td align="center">
                    <table width="100%" cellpadding="0" cellspacing="0" border="0" style="max-width: 600px; background-color: #ffffff; border-radius: 8px; overflow: hidden;">
                        <tr>
                            <td style="padding: 32px; color: #1F2937;">
                                {content}
                                {cta_html}
                            </td>
                        </tr>
                        <tr>
                            <td style="padding: 20px 32px; text-align: center; border-top: 1px solid #e5e7eb;">
                                <p style="color: #9CA3AF; font-size: 12px; margin: 0;">
                                    {footer_text}
                                </p>
                            </td>
                        </tr>
                    </table>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """


def send_task_reminder_email(to_email: str, user_name: str, task: TaskModel, frontend_url: str = None, tz: Optional[tzinfo] = None):
    """
    Sends the reminder email for a task whose reminder time has arrived.
    The due date is shown as a calendar date in ``tz`` (the scheduler clock's zone by default).
    """
    frontend_url = frontend_url or config.CLIENT_URL
    subject = "Task Reminder - Todu"
    text_content = f"Hi {user_name}, this is a reminder for your task: {task.title}"

    title = html.escape(task.title)
    description_html = f'<p style="color: #6B7280; margin: 5px 0;">{html.escape(task.description)}</p>' if task.description else ""
    due_date = task.due_date.astimezone(tz or get_clock().tz) if task.due_date else None
    due_date_html = f'<p style="color: #EF4444; margin: 5px 0;"><strong>Due:</strong> {due_date.strftime("%B %d, %Y")}</p>' if due_date else ""

    content = f"""
        <h2 style="color: #3B82F6; margin-top: 0;">Task Reminder</h2>
        <p>Hi {html.escape(user_name)},</p>
        <p>This is a reminder for your task:</p>
        <div style="background-color: #F3F4F6; padding: 15px; border-radius: 8px; margin: 20px 0;">
            <h3 style="margin: 0 0 10px 0; color: #1F2937;">{title}</h3>
            {description_html}
            {due_date_html}
            <p style="margin: 5px 0;"><strong>Priority:</strong> {task.priority.title()}</p>
        </div>
    """

    html_content = base_email_template(
        title="Task Reminder",
        preheader=f"Reminder: {title}",
        content=content,
        cta_url=f"{frontend_url}/dashboard?task={task.id}",
        cta_text="View Task",
        footer_text="You're receiving this email because you set a reminder for this task in Todu.",
    )

    return send_email(to_email, subject, html_content, text_content)
