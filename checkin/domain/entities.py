from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal


@dataclass(frozen=True)
class RegistrationFields:
    name: str
    email: str
    company: str
    phone: str

    def __post_init__(self):
        if not self.email:
            raise ValueError("email is required")

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RegistrationFields":
        return cls(
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            company=str(data.get("company") or ""),
            phone=str(data.get("phone") or ""),
        )


@dataclass
class VisitorProfile:
    email: str
    name: str | None = None
    company: str | None = None
    phone: str | None = None
    cid: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    expires_at: datetime | None = None

    def __post_init__(self):
        if not self.email or not self.email.strip():
            raise ValueError("email is required")


@dataclass(frozen=True)
class InvitationToken:
    token: str
    visitor_email: str


@dataclass(frozen=True)
class SubmitResult:
    transaction_id: str
    qr_code: str
    deep_link: str


@dataclass(frozen=True)
class VerifierStatus:
    state: Literal["pending", "completed"]
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.state == "completed"


@dataclass(frozen=True)
class CorrelationResult:
    """Outcome of one poll: `completed` with the verifier payload, or `waiting`."""

    state: Literal["waiting", "completed"]
    payload: dict[str, Any] | None = None

    @property
    def completed(self) -> bool:
        return self.state == "completed"
