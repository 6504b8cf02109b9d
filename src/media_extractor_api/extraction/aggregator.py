"""Partial-result aggregation over an extractor's field accessors.

Every accessor runs inside its own failure boundary and its result is
captured as a ``FieldOutcome``. The outcomes are folded into a
``FieldAccumulator`` in declaration order, and the uploader-group policy in
``resolve_group_errors`` decides which group failures reach the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .cancel import CancelToken
from .exceptions import CriticalExtractionError, FieldExtractionError, NetworkError

logger = logging.getLogger(__name__)

# Fewer group failures than this are reported even when nothing else failed.
UPLOADER_GROUP_THRESHOLD = 3


class FieldKind(Enum):
    CRITICAL = "critical"
    OPTIONAL = "optional"
    UPLOADER_GROUP = "uploader_group"


@dataclass(frozen=True)
class FieldStep:
    """One named field extraction: which accessor to call and how to treat failure."""
    name: str
    accessor: str
    kind: FieldKind = FieldKind.OPTIONAL
    default: Any = ""

    def read(self, extractor: Any) -> Any:
        return getattr(extractor, self.accessor)()


@dataclass(frozen=True)
class FieldOutcome:
    """Result of a single step: either ``value`` or ``error`` is meaningful."""
    step: FieldStep
    value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FieldAccumulator:
    """Values and failures gathered from a run of field steps."""
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[Exception] = field(default_factory=list)
    group_errors: List[Exception] = field(default_factory=list)

    def add(self, outcome: FieldOutcome) -> None:
        step = outcome.step
        if outcome.ok:
            self.values[step.name] = outcome.value
            return

        if step.kind is FieldKind.CRITICAL:
            raise CriticalExtractionError(
                step.name, f"Could not extract required field '{step.name}': {outcome.error}"
            ) from outcome.error

        self.values[step.name] = step.default
        wrapped = FieldExtractionError(
            step.name, f"Could not extract field '{step.name}': {outcome.error}"
        )
        wrapped.__cause__ = outcome.error
        if step.kind is FieldKind.UPLOADER_GROUP:
            self.group_errors.append(wrapped)
        else:
            self.errors.append(wrapped)

    def surfaced_errors(self, threshold: int = UPLOADER_GROUP_THRESHOLD) -> List[Exception]:
        """Errors the caller should see, in declaration order of their groups."""
        return self.errors + resolve_group_errors(self.errors, self.group_errors, threshold)


def resolve_group_errors(
    other_errors: List[Exception],
    group_errors: List[Exception],
    threshold: int = UPLOADER_GROUP_THRESHOLD,
) -> List[Exception]:
    """Decide whether uploader-group failures are reported.

    A target with no uploader legitimately fails most of the group at once.
    Group failures are therefore hidden when nothing else failed and at least
    ``threshold`` of them failed together; otherwise they are all reported.
    """
    if not group_errors:
        return []
    if other_errors or len(group_errors) < threshold:
        return list(group_errors)
    logger.info(
        "Suppressing %d uploader field errors: target appears to have no uploader",
        len(group_errors),
    )
    return []


def run_step(extractor: Any, step: FieldStep) -> FieldOutcome:
    """Call one accessor, capturing any parsing failure as data.

    Transport failures (including cancellation) are not captured.
    """
    try:
        return FieldOutcome(step=step, value=step.read(extractor))
    except NetworkError:
        raise
    except Exception as e:
        logger.debug("Field '%s' failed: %s", step.name, e)
        return FieldOutcome(step=step, error=e)


def aggregate(
    extractor: Any,
    steps: Iterable[FieldStep],
    target: Any = None,
    cancel_token: Optional[CancelToken] = None,
) -> FieldAccumulator:
    """Run ``steps`` against ``extractor`` and optionally copy the values onto ``target``.

    Raises:
        CriticalExtractionError: If a CRITICAL step fails.
        NetworkError: If an accessor hits a transport failure or the call is cancelled.
    """
    if cancel_token is None:
        cancel_token = getattr(extractor, "cancel_token", None)

    accumulator = FieldAccumulator()
    for step in steps:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        accumulator.add(run_step(extractor, step))

    if target is not None:
        for name, value in accumulator.values.items():
            setattr(target, name, value)
    return accumulator
