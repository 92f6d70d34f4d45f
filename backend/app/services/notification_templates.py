"""Customer-facing text for payment outcome notifications."""

from decimal import Decimal

from app.models.notification import NotificationType
from app.models.payment import PaymentStatus
from app.schemas.events import PaymentEventMessage

_SUBJECTS = {
    PaymentStatus.SUCCESS: "Payment Successful - Subscription Renewed",
    PaymentStatus.FAILED: "Payment Failed - Action Required",
    PaymentStatus.PENDING: "Payment Processing - Please Wait",
}
DEFAULT_SUBJECT = "Payment Notification"
DEFAULT_CONTENT = "Payment notification"

_TYPES = {
    PaymentStatus.SUCCESS: NotificationType.PAYMENT_SUCCESS,
    PaymentStatus.FAILED: NotificationType.PAYMENT_FAILED,
    PaymentStatus.PENDING: NotificationType.PAYMENT_PENDING,
}

_SIGNATURE = "Best regards,\nSubscription System Team\n"

_SUCCESS_TEMPLATE = (
    "Dear Customer,\n\n"
    "Your payment has been processed successfully!\n\n"
    "Payment Details:\n"
    "- Amount: {amount} {currency}\n"
    "- Payment Method: {payment_method}\n"
    "- Transaction ID: {payment_id}\n"
    "- Date: {date}\n\n"
    "Your subscription has been renewed and is now active.\n\n"
    "Thank you for your business!\n\n" + _SIGNATURE
)

_FAILED_TEMPLATE = (
    "Dear Customer,\n\n"
    "We were unable to process your payment.\n\n"
    "Payment Details:\n"
    "- Amount: {amount} {currency}\n"
    "- Payment Method: {payment_method}\n"
    "- Reason: {reason}\n"
    "- Date: {date}\n\n"
    "Please update your payment information or try again.\n\n"
    "If you need assistance, please contact our support team.\n\n" + _SIGNATURE
)

_PENDING_TEMPLATE = (
    "Dear Customer,\n\n"
    "Your payment is being processed.\n\n"
    "Payment Details:\n"
    "- Amount: {amount} {currency}\n"
    "- Payment Method: {payment_method}\n"
    "- Transaction ID: {payment_id}\n"
    "- Date: {date}\n\n"
    "You will receive a confirmation once the payment is completed.\n\n" + _SIGNATURE
)

_TEMPLATES = {
    PaymentStatus.SUCCESS: _SUCCESS_TEMPLATE,
    PaymentStatus.FAILED: _FAILED_TEMPLATE,
    PaymentStatus.PENDING: _PENDING_TEMPLATE,
}


def format_amount(amount: Decimal) -> str:
    """Format as US currency, e.g. ``$1,234.56``."""
    return f"${Decimal(amount):,.2f}"


def notification_type_for(status: PaymentStatus) -> NotificationType:
    return _TYPES.get(status, NotificationType.PAYMENT_PENDING)


def render_subject(status: PaymentStatus) -> str:
    return _SUBJECTS.get(status, DEFAULT_SUBJECT)


def render_content(event: PaymentEventMessage) -> str:
    template = _TEMPLATES.get(event.status)
    if template is None:
        return DEFAULT_CONTENT
    return template.format(
        amount=format_amount(event.amount),
        currency=event.currency,
        payment_method=event.payment_method,
        payment_id=event.payment_id,
        reason=event.error_message or "Payment declined",
        date=event.event_time.isoformat(),
    )
