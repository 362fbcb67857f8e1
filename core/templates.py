"""Plain-text email templates."""

from dataclasses import dataclass

from core.config import PenpalsConfig

_SIGNATURE = "{app_name} - Connect with fellow Banana Slugs, one letter at a time!"


@dataclass(frozen=True)
class EmailTemplate:
    """Rendered subject and body, ready for the gateway."""

    subject: str
    body: str
    sender: str = "notifications"


def _signed(body: str, config: PenpalsConfig) -> str:
    return f"{body}\n\n--\n{_SIGNATURE.format(app_name=config.app_name)}\n"


def verification_code(code: str, expiry_minutes: int, config: PenpalsConfig) -> EmailTemplate:
    return EmailTemplate(
        subject=f"Your Verification Code - {config.app_name}",
        body=_signed(
            "Enter this code to verify your email:\n\n"
            f"    {code}\n\n"
            f"This code expires in {expiry_minutes} minutes.",
            config,
        ),
        sender="verification",
    )


def match_notification(partner_intro: str, config: PenpalsConfig) -> EmailTemplate:
    """Sent to each side of a new match, carrying the other side's intro verbatim."""
    hours = config.delivery_delay_minutes / 60
    delay = f"{hours:g} hours" if hours >= 1 else f"{config.delivery_delay_minutes} minutes"
    return EmailTemplate(
        subject=f"You've Been Matched! - {config.app_name}",
        body=_signed(
            "Great news! You've been paired with a fellow Banana Slug.\n\n"
            "Your penpal's introduction:\n\n"
            f'"{partner_intro}"\n\n'
            f"Write your first letter: {config.website_url}\n\n"
            f"Remember: letters take {delay} to deliver, just like real mail!",
            config,
        ),
    )


def message_delivered(config: PenpalsConfig) -> EmailTemplate:
    """Carries no message content; safe to send even after a conversation ended."""
    return EmailTemplate(
        subject=f"You Have a New Letter! - {config.app_name}",
        body=_signed(
            "Your penpal's letter has arrived and is ready to read.\n\n"
            f"Read your letter: {config.website_url}",
            config,
        ),
    )


def admin_new_signup(email: str, intro: str, config: PenpalsConfig) -> EmailTemplate:
    return EmailTemplate(
        subject=f"New User Signup - {config.app_name}",
        body=_signed(
            "A new user is waiting for a match.\n\n"
            f"Email: {email}\n\n"
            "Introduction:\n\n"
            f'"{intro}"\n\n'
            f"Log in to match this user with a penpal: {config.website_url}",
            config,
        ),
    )
