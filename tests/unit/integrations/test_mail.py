"""Tests for comment notification emails."""

from __future__ import annotations

import smtplib

import pytest

from scribe.integrations.mail import (
    CommentNotification,
    CommentNotifier,
    CommentSummary,
    SmtpConfig,
)


@pytest.fixture
def notifier() -> CommentNotifier:
    return CommentNotifier(
        smtp=SmtpConfig(host="smtp.example.com"),
        from_email="noreply@example.com",
        blog_title="Scribe",
    )


def notification(**overrides) -> CommentNotification:
    data = {
        "op_email": "ada@example.com",
        "op_title": "My Post",
        "op_url": "https://example.com/blog/2024/03/12-my-slug",
        "comment": CommentSummary(
            author="Bob", email="bob@example.com", website=None, content="Nice post"
        ),
    }
    data.update(overrides)
    return CommentNotification(**data)


class TestBuildMessages:
    """Test who gets notified."""

    def test_post_author_notified(self, notifier: CommentNotifier) -> None:
        messages = notifier.build_messages(notification())

        assert len(messages) == 1
        message = messages[0]
        assert message["To"] == "ada@example.com"
        assert message["From"] == "Scribe <noreply@example.com>"
        assert "My Post" in message["Subject"]
        body = message.get_payload(decode=True).decode("utf-8")
        assert "Bob wrote:" in body
        assert "Nice post" in body

    def test_own_comment_not_notified(self, notifier: CommentNotifier) -> None:
        """The post author commenting on their own post gets no mail."""
        own = CommentSummary(author="Ada", email="ADA@example.com", website=None, content="hi")
        assert notifier.build_messages(notification(comment=own)) == []

    def test_reply_notifies_parent_author(self, notifier: CommentNotifier) -> None:
        parent = CommentSummary(
            author="Cy", email="cy@example.com", website=None, content="First!"
        )

        messages = notifier.build_messages(notification(op_comment=parent))

        assert [m["To"] for m in messages] == ["ada@example.com", "cy@example.com"]
        assert "reply" in messages[1]["Subject"]

    def test_parent_author_same_as_post_author(self, notifier: CommentNotifier) -> None:
        """Nobody gets the same notice twice."""
        parent = CommentSummary(
            author="Ada", email="ada@example.com", website=None, content="Thanks"
        )
        messages = notifier.build_messages(notification(op_comment=parent))
        assert [m["To"] for m in messages] == ["ada@example.com"]


class TestSend:
    """Test delivery."""

    async def test_unavailable_sends_nothing(self) -> None:
        notifier = CommentNotifier(SmtpConfig(host=None), "noreply@example.com", "Scribe")
        assert await notifier.send_new_comment_notification(notification()) == 0

    async def test_sends_each_message(
        self, notifier: CommentNotifier, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        sent: list[str] = []
        monkeypatch.setattr(notifier, "_send", lambda message: sent.append(message["To"]))

        assert await notifier.send_new_comment_notification(notification()) == 1
        assert sent == ["ada@example.com"]

    async def test_smtp_failure_is_logged(
        self,
        notifier: CommentNotifier,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def fail(message) -> None:
            raise smtplib.SMTPException("relay denied")

        monkeypatch.setattr(notifier, "_send", fail)

        assert await notifier.send_new_comment_notification(notification()) == 0
        assert "Failed to send comment notification" in caplog.text
