"""Input-edge validation for scoresheet fields.

The form clamps every keyed-in value to its rule-table range and step.
Storage rejects entries that still hold out-of-range or off-step values.
"""

from .aggregator import round2
from .models import ScoreEntry
from .scoring_rules import DEDUCTION_COUNTERS, SCORE_FIELDS, UnknownRuleError, range_for

_STEP_TOLERANCE = 1e-6


class ScoreRangeError(ValueError):
    """Raised when an entry is saved with values outside the rule table."""

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__('; '.join(violations))


def clamp_score(field: str, value: float) -> float:
    """Clamp a value to the field's range and snap it to the step grid."""
    rng = range_for(field)
    value = min(max(value, rng.min), rng.max)
    steps = round((value - rng.min) / rng.step)
    return min(round2(rng.min + steps * rng.step), rng.max)


def apply_score(entry: ScoreEntry, field: str, value: float) -> float:
    """Clamp and store a score field. Returns the stored value."""
    stored = clamp_score(field, float(value))
    setattr(entry, field, stored)
    return stored


def set_deduction(entry: ScoreEntry, kind: str, count: int) -> int:
    """Store a deduction counter, never below zero. Returns the stored count.

    Raises ValueError for a count that is not a whole number.
    """
    try:
        counter = DEDUCTION_COUNTERS[kind]
    except KeyError:
        raise UnknownRuleError(f'Unknown deduction kind: {kind!r}') from None
    whole = isinstance(count, int) or (isinstance(count, float) and count.is_integer())
    if isinstance(count, bool) or not whole:
        raise ValueError(f'Deduction count must be a whole number, got {count!r}')
    stored = max(0, int(count))
    setattr(entry, counter, stored)
    return stored


def _off_step(value: float, start: float, step: float) -> bool:
    steps = (value - start) / step
    return abs(steps - round(steps)) > _STEP_TOLERANCE


def find_violations(entry: ScoreEntry) -> list[str]:
    """List every score field or counter the rule table would not accept."""
    violations = []
    for name in SCORE_FIELDS:
        value = getattr(entry, name)
        rng = range_for(name)
        if not rng.contains(value):
            violations.append(f'{name}={value} outside [{rng.min}, {rng.max}]')
        elif _off_step(value, rng.min, rng.step):
            violations.append(f'{name}={value} not a multiple of {rng.step} from {rng.min}')

    for counter in DEDUCTION_COUNTERS.values():
        count = getattr(entry, counter)
        if count < 0:
            violations.append(f'{counter}={count} is negative')
    return violations


def validate_entry(entry: ScoreEntry) -> None:
    violations = find_violations(entry)
    if violations:
        raise ScoreRangeError(violations)
