from __future__ import annotations

import dataclasses

import pytest

from mail_relay.domain.models.email_message import Attachment, EmailMessage
from mail_relay.domain.value_objects.email_address import is_valid_email_address, join_addresses


def make_fields(**overrides):
    fields = {"to": ["a@b.com"], "subject": "Hi", "text": "hello"}
    fields.update(overrides)
    return fields


@pytest.mark.parametrize(
    "address",
    ["a@b.com", "first.last@sub.example.org", "user+tag@example.co.uk"],
)
def test_valid_addresses_pass(address):
    assert is_valid_email_address(address)


@pytest.mark.parametrize(
    "address",
    [
        "",
        "plain",
        "a@b",
        "a@@b.com",
        "a@b@c.com",
        "a b@c.com",
        "a@b .com",
        "@b.com",
        "a@b.com\n",
        None,
        42,
    ],
)
def test_invalid_addresses_fail(address):
    assert not is_valid_email_address(address)


def test_join_addresses():
    assert join_addresses(["a@b.com", "c@d.com"]) == "a@b.com, c@d.com"
    assert join_addresses("a@b.com") == "a@b.com"


def test_valid_message_passes():
    report = EmailMessage.create(make_fields()).validate()
    assert report.is_valid
    assert report.errors == ()


def test_create_copies_fields_and_sets_created_at():
    message = EmailMessage.create(
        make_fields(**{"from": "me@example.com", "cc": ["c@d.com"], "bcc": []})
    )
    assert message.to == ("a@b.com",)
    assert message.from_email == "me@example.com"
    assert message.cc == ("c@d.com",)
    assert message.bcc == ()
    assert message.html is None
    assert message.created_at.tzinfo is not None


def test_message_is_immutable():
    message = EmailMessage.create(make_fields())
    with pytest.raises(dataclasses.FrozenInstanceError):
        message.subject = "changed"  # type: ignore[misc]


def test_empty_recipients_reported():
    report = EmailMessage.create(make_fields(to=[])).validate()
    assert not report.is_valid
    assert report.errors == ("Recipients (to) are required and must be a non-empty array",)


def test_non_list_recipients_reported():
    report = EmailMessage.create(make_fields(to="a@b.com")).validate()
    assert "Recipients (to) are required and must be a non-empty array" in report.errors


def test_missing_content_reported_even_when_rest_is_valid():
    report = EmailMessage.create(make_fields(text=None, html="")).validate()
    assert not report.is_valid
    assert report.errors == ("Either text or html content is required",)


def test_html_only_is_enough():
    report = EmailMessage.create(make_fields(text=None, html="<p>hi</p>")).validate()
    assert report.is_valid


def test_blank_and_long_subjects():
    assert EmailMessage.create(make_fields(subject="   ")).validate().errors == (
        "Subject is required",
    )
    assert EmailMessage.create(make_fields(subject="x" * 201)).validate().errors == (
        "Subject cannot exceed 200 characters",
    )
    assert EmailMessage.create(make_fields(subject="x" * 200)).validate().is_valid


def test_all_errors_collected_in_order():
    message = EmailMessage.create(
        {
            "to": ["ok@example.com", "broken"],
            "subject": "",
            "cc": ["bad cc@example.com"],
            "bcc": ["nope"],
        }
    )
    report = message.validate()
    assert report.errors == (
        "Subject is required",
        "Either text or html content is required",
        "Invalid email format at index 1: broken",
        "Invalid CC email format at index 0: bad cc@example.com",
        "Invalid BCC email format at index 0: nope",
    )


def test_empty_payload_reports_everything():
    report = EmailMessage.create({}).validate()
    assert report.errors == (
        "Recipients (to) are required and must be a non-empty array",
        "Subject is required",
        "Either text or html content is required",
    )


def test_attachments_are_converted():
    message = EmailMessage.create(
        make_fields(
            attachments=[
                {
                    "filename": "a.txt",
                    "content": "aGk=",
                    "contentType": "text/plain",
                    "encoding": "base64",
                }
            ]
        )
    )
    assert message.attachments == (
        Attachment(filename="a.txt", content="aGk=", content_type="text/plain", encoding="base64"),
    )
    assert message.to_dict()["attachments"] == [
        {"filename": "a.txt", "content": "aGk=", "contentType": "text/plain", "encoding": "base64"}
    ]


def test_attachment_without_filename_is_rejected():
    with pytest.raises(ValueError, match="filename"):
        EmailMessage.create(make_fields(attachments=[{"content": "x"}]))


def test_to_dict_uses_wire_names():
    payload = EmailMessage.create(make_fields(**{"from": "me@example.com"})).to_dict()
    assert payload["from"] == "me@example.com"
    assert payload["to"] == ["a@b.com"]
    assert "createdAt" in payload


def test_trailing_newline_recipient_is_rejected():
    report = EmailMessage.create(make_fields(to=["a@b.com\n"])).validate()
    assert report.errors == ("Invalid email format at index 0: a@b.com\n",)
