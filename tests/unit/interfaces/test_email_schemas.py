from __future__ import annotations

import pytest
from pydantic import ValidationError

from mail_relay.interfaces.http.schemas.email import SendEmailRequest
from mail_relay.interfaces.middleware.error_handler import format_validation_errors


def messages_for(payload) -> list[str]:
    with pytest.raises(ValidationError) as exc_info:
        SendEmailRequest.model_validate(payload)
    return format_validation_errors(exc_info.value.errors())


def test_unknown_fields_are_stripped():
    request = SendEmailRequest.model_validate(
        {"to": ["a@b.com"], "subject": "Hi", "text": "hello", "priority": "high"}
    )
    assert request.to_fields() == {"to": ["a@b.com"], "subject": "Hi", "text": "hello"}


def test_to_fields_uses_wire_names():
    request = SendEmailRequest.model_validate(
        {
            "to": ["a@b.com"],
            "subject": "Hi",
            "html": "<p>hi</p>",
            "from": "me@example.com",
            "attachments": [
                {"filename": "a.pdf", "content": "abc", "contentType": "application/pdf"}
            ],
        }
    )
    fields = request.to_fields()
    assert fields["from"] == "me@example.com"
    assert fields["attachments"] == [
        {"filename": "a.pdf", "content": "abc", "contentType": "application/pdf"}
    ]


def test_all_field_violations_are_collected():
    messages = messages_for(
        {"to": ["ok@example.com", "broken"], "subject": "x" * 201, "cc": ["also broken"]}
    )
    assert messages == [
        "Invalid email format at to[1]: broken",
        "Subject cannot exceed 200 characters",
        "Invalid email format at cc[0]: also broken",
    ]


def test_missing_required_fields():
    assert messages_for({}) == ["Recipients are required", "Subject is required"]


def test_empty_recipient_list():
    assert messages_for({"to": [], "subject": "Hi", "text": "x"}) == [
        "At least one recipient is required"
    ]


def test_blank_subject():
    assert messages_for({"to": ["a@b.com"], "subject": "   ", "text": "x"}) == [
        "Subject cannot be empty"
    ]


def test_content_required():
    assert messages_for({"to": ["a@b.com"], "subject": "Hi", "text": ""}) == [
        "Either text or html content must be provided"
    ]


def test_invalid_sender():
    assert messages_for({"to": ["a@b.com"], "subject": "Hi", "text": "x", "from": "me"}) == [
        "Invalid email format at from: me"
    ]


def test_attachment_rules():
    messages = messages_for(
        {
            "to": ["a@b.com"],
            "subject": "Hi",
            "text": "x",
            "attachments": [
                {"content": "abc"},
                {"filename": "b.bin", "content": "***", "encoding": "base64"},
            ],
        }
    )
    assert messages == [
        "attachments[0].filename: Field required",
        "Attachment b.bin content is not valid base64",
    ]


@pytest.mark.parametrize("encoding", ["binary", "7bit", "rot13"])
def test_unsupported_attachment_encoding(encoding):
    messages = messages_for(
        {
            "to": ["a@b.com"],
            "subject": "Hi",
            "text": "x",
            "attachments": [{"filename": "a.bin", "content": "abc", "encoding": encoding}],
        }
    )
    assert messages == [f"Attachment a.bin has unsupported encoding {encoding}"]


def test_invalid_hex_attachment():
    messages = messages_for(
        {
            "to": ["a@b.com"],
            "subject": "Hi",
            "text": "x",
            "attachments": [{"filename": "a.bin", "content": "zz", "encoding": "hex"}],
        }
    )
    assert messages == ["Attachment a.bin content is not valid hex"]


def test_attachment_content_outside_charset():
    messages = messages_for(
        {
            "to": ["a@b.com"],
            "subject": "Hi",
            "text": "x",
            "attachments": [{"filename": "a.txt", "content": "héllo", "encoding": "ascii"}],
        }
    )
    assert messages == ["Attachment a.txt content cannot be encoded as ascii"]


def test_supported_attachment_encodings_pass():
    request = SendEmailRequest.model_validate(
        {
            "to": ["a@b.com"],
            "subject": "Hi",
            "text": "x",
            "attachments": [
                {"filename": "a.bin", "content": "6869", "encoding": "hex"},
                {"filename": "b.txt", "content": "hi", "encoding": "latin-1"},
                {"filename": "c.txt", "content": "aGk=", "encoding": "BASE64"},
            ],
        }
    )
    assert len(request.attachments) == 3


def test_trailing_newline_address_is_rejected():
    assert messages_for({"to": ["a@b.com\n"], "subject": "Hi", "text": "x"}) == [
        "Invalid email format at to[0]: a@b.com\n"
    ]
