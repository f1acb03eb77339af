# herbaltrace/models/auth/auth_models.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from herbaltrace.constants.choices import COLLECTOR_ROLES
from herbaltrace.models.forms import FormModel


def _loose_email(v: str) -> str:
    v = (v or "").strip().lower()
    if "@" not in v or " " in v:
        raise ValueError("invalid email format (expected something like user@host)")
    return v


class SignInModel(FormModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _loose_email(v)


class SignUpModel(FormModel):
    email: str
    password: str = Field(..., min_length=6)
    full_name: str = ""
    phone: Optional[str] = None
    role: str
    organization: Optional[str] = None
    aadhaar_id: Optional[str] = None
    cooperative_group: Optional[str] = None
    location: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _loose_email(v)

    @field_validator("role")
    @classmethod
    def _lower_role(cls, v: str) -> str:
        return (v or "").strip().lower()

    def profile_fields(self) -> Dict[str, Any]:
        """Profile row fields; Aadhaar / cooperative only kept for collector roles."""
        is_collector = self.role in COLLECTOR_ROLES
        return {
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone or None,
            "role": self.role,
            "organization": self.organization or None,
            "location": self.location or None,
            "aadhaar_id": (self.aadhaar_id or None) if is_collector else None,
            "cooperative_group": (self.cooperative_group or None) if is_collector else None,
        }


@dataclass
class PortalContext:
    """Who is acting. Built per request and passed into every portal service call."""

    profile_id: str
    role: str
    profile: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_collector(self) -> bool:
        return self.role in COLLECTOR_ROLES
