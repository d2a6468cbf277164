"""Ordered write attempts with a "first success wins, stop on decisive failure" policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from savanna.core.auth.backend import StoreError, StoreErrorKind, StoreResult
from savanna.core.profiles.models import ProfileCompleteness

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    ACCEPT_STORED = "accept_stored"
    ACCEPT_ATTEMPTED = "accept_attempted"
    NEXT = "next"
    ABORT = "abort"


@dataclass(frozen=True)
class Attempt:
    name: str
    payload: Dict[str, Any]
    completeness: ProfileCompleteness


@dataclass
class LadderOutcome:
    """Result of running the ladder; ``data`` is None when nothing was accepted."""

    data: Optional[Dict[str, Any]] = None
    accepted: Optional[Attempt] = None
    decision: Optional[Decision] = None
    tried: List[str] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        return self.decision == Decision.ABORT


_DECISIONS = {
    StoreErrorKind.DUPLICATE_KEY: Decision.ACCEPT_ATTEMPTED,
    StoreErrorKind.UNKNOWN_COLUMN: Decision.NEXT,
    StoreErrorKind.ACCESS_DENIED: Decision.ABORT,
    StoreErrorKind.TABLE_MISSING: Decision.ABORT,
    StoreErrorKind.TIMEOUT: Decision.NEXT,
    StoreErrorKind.NO_ROWS: Decision.NEXT,
    StoreErrorKind.OTHER: Decision.NEXT,
}


def classify_insert(result: StoreResult) -> Decision:
    """Map one insert result to the ladder's next move."""
    if result.ok:
        return Decision.ACCEPT_STORED
    return _DECISIONS[result.error.kind]


def _stored_row(result: StoreResult, attempt: Attempt) -> Dict[str, Any]:
    data = result.data
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        # Stores that do not echo rows back: the attempted shape is what was written.
        return dict(attempt.payload)
    return dict(data)


def run_ladder(
    attempts: Sequence[Attempt],
    execute: Callable[[Attempt], StoreResult],
    classify: Callable[[StoreResult], Decision] = classify_insert,
) -> LadderOutcome:
    """Run attempts strictly in order until one is accepted or a decisive failure occurs."""
    outcome = LadderOutcome()
    for attempt in attempts:
        outcome.tried.append(attempt.name)
        try:
            result = execute(attempt)
        except Exception as exc:
            logger.warning("Profile write %r raised; trying next shape", attempt.name, exc_info=True)
            result = StoreResult(error=StoreError.from_exception(exc))

        decision = classify(result)
        if decision == Decision.ACCEPT_STORED:
            logger.info("Profile created with %s shape", attempt.name)
            outcome.data = _stored_row(result, attempt)
        elif decision == Decision.ACCEPT_ATTEMPTED:
            logger.info("Profile already exists (duplicate key on %s shape)", attempt.name)
            outcome.data = dict(attempt.payload)
        elif decision == Decision.ABORT:
            logger.warning(
                "Profile write %r refused (%s); skipping remaining writes",
                attempt.name,
                result.error.kind.value,
            )
        else:
            logger.info(
                "Profile write %r failed (%s: %s); trying next shape",
                attempt.name,
                result.error.kind.value if result.error else "unknown",
                result.error.message if result.error else "",
            )
            continue

        outcome.decision = decision
        if decision != Decision.ABORT:
            outcome.accepted = attempt
        return outcome

    logger.warning("All profile write attempts failed: %s", ", ".join(outcome.tried))
    return outcome


__all__ = ["Attempt", "Decision", "LadderOutcome", "classify_insert", "run_ladder"]
