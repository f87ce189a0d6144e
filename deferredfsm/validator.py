"""Structural checks run once when a machine is built."""

import logging
from typing import List, Optional

from deferredfsm.errors import InvalidTargetsError, MissingStartError, ValidationError
from deferredfsm.types import Spec

logger = logging.getLogger(__name__)


def collect_targets(spec: Spec) -> List[str]:
    """Return every transition target in ``spec``, deduplicated, in first-seen order."""
    seen = set()
    targets = []
    for definition in spec.values():
        for transition in (definition.transitions or {}).values():
            if transition.target not in seen:
                seen.add(transition.target)
                targets.append(transition.target)
    return targets


def check_spec(spec: Spec, start: str, end: str) -> Optional[ValidationError]:
    """
    Check a specification without raising.

    The end state is always a valid target, declared or not.

    Returns:
        None if the spec is sound, otherwise the ValidationError describing
        the first problem class found (a missing start takes precedence).
    """
    valid = set(spec.keys())
    valid.add(end)

    if start not in valid:
        return MissingStartError(start)

    invalid = [t for t in collect_targets(spec) if t not in valid]
    if invalid:
        return InvalidTargetsError(invalid)

    return None


def validate(spec: Spec, start: str, end: str) -> None:
    """
    Validate a specification.

    Raises:
        MissingStartError: If ``start`` is neither declared nor ``end``.
        InvalidTargetsError: If any transition names an unknown target.
    """
    error = check_spec(spec, start, end)
    if error is not None:
        logger.debug(f"Spec rejected: {error.message}")
        raise error
