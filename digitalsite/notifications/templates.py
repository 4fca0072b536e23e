"""Transactional email content. Pure formatting, no I/O."""

from dataclasses import dataclass
from datetime import datetime
from html import escape


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


TEMPLATES = {
    "account_verification": {
        "subject": "Welcome to Digitalsite, verify your email",
        "body": (
            "Hi {first_name},\n\n"
            "Thank you for subscribing to the {plan_name}. Your account is ready.\n\n"
            "Username: {username}\n"
            "Temporary password: {temporary_password}\n\n"
            "Please verify your email within 24 hours using the link below, "
            "where you can also choose your own password:\n"
            "{verification_url}\n\n"
            "Best regards,\nDigitalsite"
        ),
    },
    "affiliate_congratulations": {
        "subject": "New Affiliate Subscription",
        "body": (
            "Hi {first_name},\n\n"
            "Congratulations! Someone just subscribed through your affiliate link.\n"
            "Commission earned: {commission} {currency}\n\n"
            "Keep sharing your link to earn more.\n\n"
            "Best regards,\nDigitalsite"
        ),
    },
    "addon_confirmation": {
        "subject": "Add-on Activated: {addon_name}",
        "body": (
            "Hi {first_name},\n\n"
            "Your {addon_name} add-on is now active until {ends_at}.\n\n"
            "Subscription ID: {subscription_id}\n\n"
            "Best regards,\nDigitalsite"
        ),
    },
    "subscription_renewal": {
        "subject": "Subscription Renewed: {subscription_name}",
        "body": (
            "Hi {first_name},\n\n"
            "Your {subscription_name} subscription ({subscription_id}) has been renewed.\n\n"
            "Your access now runs until {ends_at}.\n\n"
            "Best regards,\nDigitalsite"
        ),
    },
    "subscription_cancellation": {
        "subject": "Subscription Cancelled: {subscription_name}",
        "body": (
            "Hi {first_name},\n\n"
            "Your {subscription_name} subscription ({subscription_id}) has been cancelled.\n\n"
            "You will keep full access until {ends_at}. "
            "No further charges will be made.\n\n"
            "Best regards,\nDigitalsite"
        ),
    },
}

SUBSCRIPTION_NAMES = {
    "FREE": "Free Plan",
    "BUSINESS": "Business Plan",
    "AGENCY": "Partner Plan",
    "EXTRA_WORKSPACE": "Extra Workspace",
    "EXTRA_ADMIN": "Additional Team Member",
    "EXTRA_FUNNEL": "Additional Funnel",
    "EXTRA_PAGE": "Extra Pages",
    "EXTRA_SUBDOMAIN": "Additional Subdomain",
    "EXTRA_CUSTOM_DOMAIN": "Additional Custom Domain",
}


def format_date(value: datetime) -> str:
    """Human-readable date, e.g. ``January 5, 2026``."""
    return f"{value:%B} {value.day}, {value.year}"


def subscription_display_name(kind: str | None) -> str:
    if kind is None:
        return "Subscription"
    return SUBSCRIPTION_NAMES.get(str(kind), str(kind).replace("_", " ").title())


def _to_html(text: str) -> str:
    paragraphs = (escape(block).replace("\n", "<br>") for block in text.split("\n\n"))
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">'
        f"{body}</div>"
    )


def render(template: str, **fields: object) -> EmailContent:
    """Render one of ``TEMPLATES`` with the given fields."""
    template_def = TEMPLATES[template]
    text = template_def["body"].format(**fields)
    return EmailContent(subject=template_def["subject"].format(**fields), text=text, html=_to_html(text))
