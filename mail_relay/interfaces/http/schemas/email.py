from __future__ import annotations

import base64
import binascii
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from mail_relay.domain.models.email_message import SUBJECT_MAX_LENGTH
from mail_relay.domain.value_objects.email_address import is_valid_email_address


def _check_address(value: str) -> str:
    if not is_valid_email_address(value):
        raise PydanticCustomError("email_format", "Invalid email format: {value}", {"value": value})
    return value


EmailAddress = Annotated[str, AfterValidator(_check_address)]


class AttachmentSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(min_length=1, examples=["document.pdf"])
    # Base64 payloads must say so through ``encoding``
    content: str
    content_type: str | None = Field(
        default=None, alias="contentType", examples=["application/pdf"]
    )
    encoding: str | None = Field(default=None, examples=["base64"])

    @model_validator(mode="after")
    def check_encoded_content(self) -> AttachmentSchema:
        encoding = (self.encoding or "").lower()
        if not encoding:
            return self
        if encoding in ("base64", "hex"):
            try:
                if encoding == "base64":
                    base64.b64decode(self.content, validate=True)
                else:
                    bytes.fromhex(self.content)
            except (binascii.Error, ValueError) as exc:
                raise PydanticCustomError(
                    "attachment_encoding",
                    "Attachment {filename} content is not valid {encoding}",
                    {"filename": self.filename, "encoding": encoding},
                ) from exc
            return self
        # Anything else is a text codec applied by str.encode
        try:
            self.content.encode(encoding)
        except LookupError as exc:
            raise PydanticCustomError(
                "attachment_encoding",
                "Attachment {filename} has unsupported encoding {encoding}",
                {"filename": self.filename, "encoding": self.encoding},
            ) from exc
        except UnicodeEncodeError as exc:
            raise PydanticCustomError(
                "attachment_encoding",
                "Attachment {filename} content cannot be encoded as {encoding}",
                {"filename": self.filename, "encoding": self.encoding},
            ) from exc
        return self


class SendEmailRequest(BaseModel):
    # Unknown fields are dropped
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "to": ["recipient@example.com"],
                    "subject": "Hello World",
                    "text": "This is a simple email message.",
                },
                {
                    "to": ["recipient@example.com"],
                    "cc": ["cc@example.com"],
                    "bcc": ["bcc@example.com"],
                    "subject": "Complete Email Example",
                    "text": "Plain text content",
                    "html": "<h1>HTML Content</h1><p>This email has both text and HTML.</p>",
                    "from": "custom-sender@example.com",
                },
            ]
        },
    )

    to: list[EmailAddress] = Field(min_length=1)
    subject: str = Field(min_length=1, max_length=SUBJECT_MAX_LENGTH)
    text: str | None = None
    html: str | None = None
    from_: EmailAddress | None = Field(default=None, alias="from")
    cc: list[EmailAddress] | None = None
    bcc: list[EmailAddress] | None = None
    attachments: list[AttachmentSchema] | None = None

    @field_validator("subject")
    @classmethod
    def subject_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("subject_blank", "Subject cannot be empty")
        return value

    @model_validator(mode="after")
    def require_content(self) -> SendEmailRequest:
        if not self.text and not self.html:
            raise PydanticCustomError(
                "content_required", "Either text or html content must be provided"
            )
        return self

    def to_fields(self) -> dict[str, Any]:
        """Fields for the send operation, keyed by their wire names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SentEmailSchema(BaseModel):
    message_id: str = Field(serialization_alias="messageId")
    to: list[str]
    subject: str
    sent_at: str = Field(serialization_alias="sentAt")


class SendEmailResponse(BaseModel):
    success: bool = True
    message: str
    data: SentEmailSchema


class EnvelopeResponse(BaseModel):
    success: bool
    message: str


class ErrorResponse(EnvelopeResponse):
    error: str | None = None
    errors: list[str] | None = None


class HealthResponse(EnvelopeResponse):
    timestamp: str
    version: str
