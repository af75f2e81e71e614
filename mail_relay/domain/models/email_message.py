from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from mail_relay.domain.value_objects.email_address import is_valid_email_address

SUBJECT_MAX_LENGTH = 200


@dataclass(frozen=True, slots=True)
class Attachment:
    filename: str
    content: str | bytes
    content_type: str | None = None
    encoding: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | Attachment) -> Attachment:
        if isinstance(data, Attachment):
            return data
        if not isinstance(data, Mapping):
            raise ValueError("Attachment must be an object")
        filename = data.get("filename")
        if not filename:
            raise ValueError("Attachment filename is required")
        if data.get("content") is None:
            raise ValueError(f"Attachment content is required: {filename}")
        return cls(
            filename=filename,
            content=data["content"],
            content_type=data.get("contentType") or data.get("content_type"),
            encoding=data.get("encoding"),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"filename": self.filename, "content": self.content}
        if self.content_type:
            payload["contentType"] = self.content_type
        if self.encoding:
            payload["encoding"] = self.encoding
        return payload


@dataclass(frozen=True, slots=True)
class ValidationReport:
    is_valid: bool
    errors: tuple[str, ...] = ()


def _freeze(value: Any) -> Any:
    # Lists become tuples; anything else is kept as given so validate() can flag it
    if isinstance(value, list):
        return tuple(value)
    return value


@dataclass(frozen=True, slots=True)
class EmailMessage:
    to: Sequence[str] | None
    subject: str | None
    text: str | None = None
    html: str | None = None
    from_email: str | None = None
    cc: Sequence[str] | None = None
    bcc: Sequence[str] | None = None
    attachments: tuple[Attachment, ...] | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, fields: Mapping[str, Any]) -> EmailMessage:
        """Build a message from request fields (wire names, ``from`` included).

        Values are copied as supplied; only ``created_at`` is filled in.
        """
        attachments = fields.get("attachments")
        if attachments is not None:
            attachments = tuple(Attachment.from_mapping(item) for item in attachments)
        return cls(
            to=_freeze(fields.get("to")),
            subject=fields.get("subject"),
            text=fields.get("text"),
            html=fields.get("html"),
            from_email=fields.get("from", fields.get("from_email")),
            cc=_freeze(fields.get("cc")),
            bcc=_freeze(fields.get("bcc")),
            attachments=attachments,
            created_at=datetime.now(timezone.utc),
        )

    def validate(self) -> ValidationReport:
        errors: list[str] = []
        recipients_ok = isinstance(self.to, (list, tuple)) and len(self.to) > 0
        if not recipients_ok:
            errors.append("Recipients (to) are required and must be a non-empty array")

        if not isinstance(self.subject, str) or not self.subject.strip():
            errors.append("Subject is required")
        elif len(self.subject) > SUBJECT_MAX_LENGTH:
            errors.append(f"Subject cannot exceed {SUBJECT_MAX_LENGTH} characters")

        if not self.text and not self.html:
            errors.append("Either text or html content is required")

        if isinstance(self.to, (list, tuple)):
            errors.extend(_address_errors(self.to, "Invalid email format"))
        if isinstance(self.cc, (list, tuple)):
            errors.extend(_address_errors(self.cc, "Invalid CC email format"))
        if isinstance(self.bcc, (list, tuple)):
            errors.extend(_address_errors(self.bcc, "Invalid BCC email format"))

        return ValidationReport(is_valid=not errors, errors=tuple(errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "to": list(self.to) if isinstance(self.to, tuple) else self.to,
            "subject": self.subject,
            "text": self.text,
            "html": self.html,
            "from": self.from_email,
            "cc": list(self.cc) if isinstance(self.cc, tuple) else self.cc,
            "bcc": list(self.bcc) if isinstance(self.bcc, tuple) else self.bcc,
            "attachments": [a.to_dict() for a in self.attachments]
            if self.attachments is not None
            else None,
            "createdAt": self.created_at.isoformat(),
        }


def _address_errors(addresses: Sequence[Any], label: str) -> list[str]:
    return [
        f"{label} at index {index}: {address}"
        for index, address in enumerate(addresses)
        if not is_valid_email_address(address)
    ]
