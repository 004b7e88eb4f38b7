"""Comment notification emails.

Sends a notice to the post's author for every accepted comment and, for
replies, to the author of the comment being replied to. Delivery runs in
a worker thread after the response has been sent; failures are logged and
never reach the commenter.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText

logger = logging.getLogger(__name__)


@dataclass
class CommentSummary:
    """Who wrote a comment and what it says."""

    author: str
    email: str | None
    website: str | None
    content: str


@dataclass
class CommentNotification:
    """Everything needed to notify people about a new comment."""

    op_email: str | None
    op_title: str
    op_url: str
    comment: CommentSummary
    op_comment: CommentSummary | None = None


@dataclass
class SmtpConfig:
    host: str | None
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True


class CommentNotifier:
    """Builds and sends comment notification emails over SMTP."""

    def __init__(self, smtp: SmtpConfig, from_email: str | None, blog_title: str):
        self.smtp = smtp
        self.from_email = from_email
        self.blog_title = blog_title

    @property
    def is_available(self) -> bool:
        return bool(self.smtp.host and self.from_email)

    def build_messages(self, notification: CommentNotification) -> list[MIMEText]:
        """Messages to send for ``notification``.

        Nobody is notified about their own comment.
        """
        commenter = (notification.comment.email or "").lower()
        messages: list[MIMEText] = []

        if notification.op_email and notification.op_email.lower() != commenter:
            messages.append(
                self._message(
                    to=notification.op_email,
                    subject=f"New comment on \"{notification.op_title}\"",
                    body=self._body(notification, "A new comment was posted on your post."),
                )
            )

        op_comment = notification.op_comment
        if (
            op_comment is not None
            and op_comment.email
            and op_comment.email.lower() != commenter
            and op_comment.email.lower() != (notification.op_email or "").lower()
        ):
            messages.append(
                self._message(
                    to=op_comment.email,
                    subject=f"New reply to your comment on \"{notification.op_title}\"",
                    body=self._body(notification, f"{notification.comment.author} replied to you."),
                )
            )

        return messages

    async def send_new_comment_notification(self, notification: CommentNotification) -> int:
        """Send every notice for ``notification``. Returns how many were sent."""
        if not self.is_available:
            return 0

        sent = 0
        for message in self.build_messages(notification):
            try:
                await asyncio.to_thread(self._send, message)
                sent += 1
            except (smtplib.SMTPException, OSError):
                logger.exception("Failed to send comment notification to %s", message["To"])
        return sent

    def _message(self, to: str, subject: str, body: str) -> MIMEText:
        message = MIMEText(body, "plain", "utf-8")
        message["Subject"] = subject
        message["From"] = f"{self.blog_title} <{self.from_email}>"
        message["To"] = to
        return message

    def _body(self, notification: CommentNotification, lead: str) -> str:
        comment = notification.comment
        lines = [lead, "", f"Post: {notification.op_title}", notification.op_url, ""]
        op_comment = notification.op_comment
        if op_comment is not None:
            lines += [f"In reply to {op_comment.author}:", op_comment.content, ""]
        author = comment.author
        if comment.website:
            author = f"{author} ({comment.website})"
        lines += [f"{author} wrote:", comment.content]
        return "\n".join(lines)

    def _send(self, message: MIMEText) -> None:
        with smtplib.SMTP(self.smtp.host or "", self.smtp.port) as server:
            if self.smtp.use_tls:
                server.starttls()
            if self.smtp.username and self.smtp.password:
                server.login(self.smtp.username, self.smtp.password)
            server.send_message(message)
