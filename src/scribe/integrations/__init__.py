"""Outbound integrations used by comment submission.

- reCAPTCHA verification
- Akismet spam classification
- SMTP notification emails
"""

from scribe.integrations.akismet import AkismetClient, AkismetComment
from scribe.integrations.base import IntegrationError
from scribe.integrations.mail import (
    CommentNotification,
    CommentNotifier,
    CommentSummary,
    SmtpConfig,
)
from scribe.integrations.recaptcha import RecaptchaVerifier

__all__ = [
    "AkismetClient",
    "AkismetComment",
    "CommentNotification",
    "CommentNotifier",
    "CommentSummary",
    "IntegrationError",
    "RecaptchaVerifier",
    "SmtpConfig",
]
