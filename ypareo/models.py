"""
Identity models: the logged-in ``User`` and its ``Registration`` list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Registration:
    """One enrolment (training programme + academic year)."""
    code: int
    name: str
    year: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.year})" if self.year else self.name

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name, "year": self.year}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registration":
        return cls(code=int(data["code"]), name=data.get("name", ""), year=data.get("year", ""))


@dataclass(frozen=True)
class User:
    """Identity of the connected account. Replaced wholesale, never mutated."""
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    registrations: List[Registration] = field(default_factory=list)

    @property
    def first_name(self) -> Optional[str]:
        if not self.full_name:
            return None
        return self.full_name.split(" ")[0]

    @property
    def last_name(self) -> Optional[str]:
        if not self.full_name:
            return None
        parts = self.full_name.split(" ")
        return " ".join(parts[1:]) if len(parts) > 1 else None

    @property
    def default_registration(self) -> Optional[Registration]:
        return self.registrations[0] if self.registrations else None

    def __str__(self) -> str:
        return self.full_name or self.username

    def to_dict(self) -> dict:
        """Plain data for session persistence."""
        return {
            "username": self.username,
            "fullName": self.full_name,
            "avatarUrl": self.avatar_url,
            "registrations": [r.to_dict() for r in self.registrations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            username=data["username"],
            full_name=data.get("fullName"),
            avatar_url=data.get("avatarUrl"),
            registrations=[Registration.from_dict(r) for r in data.get("registrations") or []],
        )
