"""Profile records as seen by the rest of the application."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class ProfileCompleteness(str, Enum):
    STORED = "stored"
    FULL = "full"
    MINIMAL = "minimal"
    IDENTIFIER = "identifier"
    SYNTHETIC = "synthetic"
    DEMO = "demo"


# Defaults shown wherever a degraded profile lacks a field.
PLACEHOLDERS: Dict[str, Any] = {
    "email": "unknown",
    "phone": "",
    "first_name": "User",
    "last_name": "",
    "user_type": "retailer",
    "location": "Kenya",
    "verification_level": "basic",
    "kyc_status": "pending",
    "is_active": True,
}


@dataclass
class Profile:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)
    completeness: ProfileCompleteness = ProfileCompleteness.STORED

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("profile id must be non-empty")

    def get(self, key: str, default: Any = None) -> Any:
        value = self.data.get(key)
        if value is None:
            return PLACEHOLDERS.get(key, default) if default is None else default
        return value

    @property
    def user_type(self) -> str:
        # Demo issuers use camelCase keys.
        return self.data.get("user_type") or self.data.get("userType") or PLACEHOLDERS["user_type"]

    @property
    def display_name(self) -> str:
        first = self.data.get("first_name") or self.data.get("firstName") or PLACEHOLDERS["first_name"]
        last = self.data.get("last_name") or self.data.get("lastName") or ""
        return f"{first} {last}".strip()

    @property
    def is_persisted(self) -> bool:
        return self.completeness not in (ProfileCompleteness.SYNTHETIC, ProfileCompleteness.DEMO)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)


__all__ = ["Profile", "ProfileCompleteness", "PLACEHOLDERS"]
