from unittest.mock import MagicMock

import pytest
import requests

from services import email_service
from services.email_service import send_email as real_send_email
from services.errors import EmailError, EmailNotConfiguredError


@pytest.fixture
def mailjet(monkeypatch):
    post = MagicMock(return_value=MagicMock(status_code=200, text="{}"))
    monkeypatch.setattr(requests, "post", post)
    return post


def test_send_email_posts_mailjet_message(mailjet):
    real_send_email("to@example.com", "Hi", "text", "<p>html</p>", reply_to="from@example.com")

    args, kwargs = mailjet.call_args
    assert args[0] == "https://api.mailjet.com/v3.1/send"
    assert kwargs["auth"] == ("mj-key", "mj-secret")
    [message] = kwargs["json"]["Messages"]
    assert message["From"] == {"Email": "noreply@example.com", "Name": "The Virtual Armory"}
    assert message["To"] == [{"Email": "to@example.com"}]
    assert message["ReplyTo"] == {"Email": "from@example.com"}
    assert message["HTMLPart"] == "<p>html</p>"


def test_send_email_rejected(monkeypatch):
    monkeypatch.setattr(requests, "post", MagicMock(return_value=MagicMock(status_code=401, text="bad key")))
    with pytest.raises(EmailError, match="HTTP 401"):
        real_send_email("to@example.com", "Hi", "t", "h")


def test_send_email_network_error(monkeypatch):
    monkeypatch.setattr(requests, "post", MagicMock(side_effect=requests.ConnectionError("down")))
    with pytest.raises(EmailError):
        real_send_email("to@example.com", "Hi", "t", "h")


def test_send_email_not_configured(monkeypatch, mailjet):
    monkeypatch.setenv("MAILJET_API_KEY", "")
    with pytest.raises(EmailNotConfiguredError):
        real_send_email("to@example.com", "Hi", "t", "h")
    mailjet.assert_not_called()


def test_verification_link_uses_base_url(no_outgoing_email):
    email_service.send_verification_email("a@example.com", "tok123")
    [sent] = no_outgoing_email
    assert "http://testserver/verify-email?token=tok123" in sent["text"]


def test_contact_email_goes_to_admin_with_reply_to(no_outgoing_email):
    email_service.send_contact_email("Sam", "sam@example.com", "Question", "<b>hi</b>")
    [sent] = no_outgoing_email
    assert sent["to"] == "owner@example.com"
    assert sent["subject"] == "Contact Form: Question"
    assert sent["reply_to"] == "sam@example.com"


def test_contact_email_needs_admin_address(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "")
    with pytest.raises(EmailNotConfiguredError):
        email_service.send_contact_email("Sam", "sam@example.com", "Q", "m")
