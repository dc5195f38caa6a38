"""
Persona assignment model.

One ``PersonaAssignment`` is produced per matched persona per run. A user's
assignments are always stored and returned sorted by ``priority``.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spendsense.models.signal import Window
from spendsense.taxonomy.persona_taxonomy import PersonaType


class PersonaAssignment(BaseModel):
    """A persona matched for a user, with the evidence that matched it.

    Attributes:
        user_id: The user.
        persona_type: Matched persona.
        priority: Fixed persona priority (1 = most urgent).
        rationale: Human-readable explanation built from signal values.
        matched_criteria: Short labels for audit display.
        signal_window: Window of the ``SignalResult`` that was evaluated.
        assigned_at: When the assignment was made (UTC).
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    persona_type: PersonaType
    priority: int = Field(ge=1, le=5)
    rationale: str
    matched_criteria: list[str] = Field(default_factory=list)
    signal_window: Window
    assigned_at: datetime

    @field_validator("rationale")
    @classmethod
    def validate_rationale(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("rationale must not be empty.")
        return v
