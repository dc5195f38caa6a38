"""
Persona assignment.

``assign_personas`` evaluates every criterion in ``PERSONA_CRITERIA``
independently and returns all matches sorted by priority. Nothing is
assigned when nothing matches; callers treat an empty list as "no persona".
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from spendsense.models.persona import PersonaAssignment
from spendsense.models.signal import SignalResult
from spendsense.personas.criteria import PERSONA_CRITERIA
from spendsense.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def assign_personas(
    user_id: str,
    signal_result: Union[SignalResult, Mapping[str, Any]],
    assigned_at: Optional[datetime] = None,
) -> list[PersonaAssignment]:
    """Assign every persona whose criteria the signals satisfy.

    Args:
        user_id: User the assignments belong to.
        signal_result: A ``SignalResult``, or a mapping that validates as one
            (e.g. a decoded JSON payload).
        assigned_at: Assignment timestamp; defaults to now (UTC).

    Returns:
        Assignments sorted ascending by priority (index 0 is primary).

    Raises:
        pydantic.ValidationError: If ``signal_result`` is a mapping that is
            not a valid ``SignalResult`` (e.g. missing ``window``).
        ValueError: If the signals belong to a different user.
    """
    signals = (
        signal_result
        if isinstance(signal_result, SignalResult)
        else SignalResult.model_validate(signal_result)
    )
    if signals.user_id != user_id:
        raise ValueError(
            f"SignalResult belongs to user '{signals.user_id}', not '{user_id}'."
        )

    assigned_at = assigned_at or utcnow()
    assignments: list[PersonaAssignment] = []
    for criterion in PERSONA_CRITERIA:
        if not criterion.matches(signals):
            continue
        rationale, labels = criterion.explain(signals)
        assignments.append(
            PersonaAssignment(
                user_id=user_id,
                persona_type=criterion.persona_type,
                priority=criterion.priority,
                rationale=rationale,
                matched_criteria=labels,
                signal_window=signals.window,
                assigned_at=assigned_at,
            )
        )

    assignments.sort(key=lambda a: a.priority)
    logger.debug(
        "Personas for %s [%s]: %s",
        user_id, signals.window, [a.persona_type.value for a in assignments],
    )
    return assignments


def primary_persona(assignments: list[PersonaAssignment]) -> Optional[PersonaAssignment]:
    """Return the most urgent assignment, or ``None`` if there are none."""
    if not assignments:
        return None
    return min(assignments, key=lambda a: a.priority)
