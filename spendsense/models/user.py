"""
User and consent models.

``ConsentStatus`` is embedded on the ``User`` and is the single field the
consent guardrail reads. ``Consent`` is the standalone audit record stored
per user (who granted, when, from where).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class ConsentStatus(BaseModel):
    """Current data-processing consent state for a user."""

    model_config = ConfigDict(frozen=True)

    active: bool = False
    granted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None


class User(BaseModel):
    """A SpendSense user.

    Attributes:
        user_id: Unique user identifier.
        email: Contact email.
        first_name: Given name.
        last_name: Family name.
        created_at: Account creation time (UTC).
        consent_status: Embedded consent state.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    consent_status: ConsentStatus = ConsentStatus()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def has_consent(self) -> bool:
        return self.consent_status.active


class Consent(BaseModel):
    """Stored consent record for one user.

    An active consent must carry ``granted_at``; a revoked one must carry
    ``revoked_at``.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    active: bool
    granted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @model_validator(mode="after")
    def validate_timestamps(self) -> "Consent":
        if self.active and self.granted_at is None:
            raise ValueError("Active consent requires granted_at.")
        if not self.active and self.revoked_at is None and self.granted_at is not None:
            raise ValueError("Inactive consent that was once granted requires revoked_at.")
        return self

    def to_status(self) -> ConsentStatus:
        """Project this record onto the ``ConsentStatus`` embedded in ``User``."""
        return ConsentStatus(
            active=self.active,
            granted_at=self.granted_at,
            revoked_at=self.revoked_at,
        )
