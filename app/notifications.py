import logging

import requests

from settings import get_frontend_url, get_mail_settings

logger = logging.getLogger(__name__)

MAIL_TIMEOUT = 10


def send_email(to, subject, text):
    """Deliver one message through the mail relay.

    Returns True when the relay accepted it, or when no relay is configured
    (the message is only logged). Delivery failures are logged and reported
    as False; they never abort the calling request.
    """
    mail = get_mail_settings()
    if not mail["url"]:
        logger.info(f"Email not sent (relay disabled): to={to} subject={subject!r}")
        return True
    try:
        resp = requests.post(
            mail["url"],
            auth=("api", mail["api_key"] or ""),
            data={"from": mail["sender"], "to": to, "subject": subject, "text": text},
            timeout=MAIL_TIMEOUT,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to send email to {to}: {e}")
        return False
    logger.info(f"Email sent to {to}: {subject!r}")
    return True


def notify_campsite_approved(owner, campsite):
    return send_email(
        owner.email,
        "Campsite Approved",
        f'Your campsite "{campsite.name}" has been approved and is now visible to the public.',
    )


def notify_campsite_rejected(owner, campsite, reason):
    return send_email(
        owner.email,
        "Campsite Rejected",
        f'Your campsite "{campsite.name}" was not approved. Reason: {reason}',
    )


def notify_owner_request_approved(user, owner_request):
    return send_email(
        user.email,
        "Owner Request Approved",
        f'Your request to become an owner for "{owner_request.business_name}" has been approved. '
        "You can now create campsites.",
    )


def notify_owner_request_rejected(user, owner_request, reason):
    return send_email(
        user.email,
        "Owner Request Rejected",
        f'Your request to become an owner for "{owner_request.business_name}" was not approved. '
        f"Reason: {reason}",
    )


def notify_review_hidden(user, campsite, reason):
    return send_email(
        user.email,
        "Review Hidden",
        f'Your review for "{campsite.name}" has been hidden by a moderator. Reason: {reason}',
    )


def notify_new_inquiry(owner, campsite, inquiry):
    dashboard_url = f"{get_frontend_url()}/dashboard/inquiries/{inquiry.id}"
    lines = [
        f'New inquiry for "{campsite.name}" from {inquiry.guest_name} <{inquiry.guest_email}>.',
        "",
        inquiry.message,
    ]
    if inquiry.check_in:
        lines.append(f"Check-in: {inquiry.check_in.isoformat()}")
    if inquiry.check_out:
        lines.append(f"Check-out: {inquiry.check_out.isoformat()}")
    lines += ["", f"Reply from your dashboard: {dashboard_url}"]
    return send_email(owner.email, f"New inquiry: {campsite.name}", "\n".join(lines))


def notify_inquiry_reply(inquiry, campsite):
    campsite_url = f"{get_frontend_url()}/campsites/{campsite.id}"
    text = "\n".join([
        f"Hello {inquiry.guest_name},",
        "",
        f'The owner of "{campsite.name}" replied to your inquiry:',
        "",
        inquiry.owner_reply,
        "",
        "Your original message:",
        inquiry.message,
        "",
        campsite_url,
    ])
    return send_email(inquiry.guest_email, f"Reply from {campsite.name}", text)
