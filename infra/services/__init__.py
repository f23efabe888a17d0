"""External services package

- MailSender: outbound SMTP delivery (password reset links)
"""
from .mailer import MailDeliveryError, MailSender, get_mail_sender

__all__ = [
    'MailDeliveryError',
    'MailSender',
    'get_mail_sender',
]
