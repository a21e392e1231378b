"""United Scoring System 2025-2026 rule table.

Pure data plus lookups:
  - Per-field input ranges (min, max, step) for every judged score field
  - Per-category maximums, with the Level 1 (no tosses) adjustment
  - Fixed point value per deduction occurrence
  - Quantity chart (majority/most/max) by roster size
"""

from dataclasses import dataclass


class UnknownRuleError(KeyError):
    """Raised when a field, category or deduction kind is not in the rule table."""


@dataclass(frozen=True)
class ScoreRange:
    min: float
    max: float
    step: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class QuantityChart:
    majority: int
    most: int
    max: int

    @property
    def description(self) -> str:
        return f'MAJ: {self.majority}  MOST: {self.most}  MAX: {self.max}'


_CREATIVITY = ScoreRange(1.5, 2.0, 0.01)
_SHOWMANSHIP = ScoreRange(1.0, 2.0, 0.01)

# Field order here is the scoresheet order, grouped by judge panel.
BUILDING_FIELDS = {
    'stunt_difficulty': ScoreRange(2.5, 4.5, 0.5),
    'stunt_execution': ScoreRange(2.8, 4.0, 0.1),
    'stunt_driver_degree': ScoreRange(0.0, 0.8, 0.1),
    'stunt_driver_max_part': ScoreRange(0.0, 0.7, 0.1),
    'pyramid_difficulty': ScoreRange(2.0, 4.0, 0.1),
    'pyramid_execution': ScoreRange(2.8, 4.0, 0.1),
    'pyramid_drivers': ScoreRange(0.0, 0.0, 0.1),  # legacy, held at zero
    'toss_difficulty': ScoreRange(1.0, 2.0, 0.5),
    'toss_execution': ScoreRange(1.3, 2.0, 0.1),
    'building_creativity': _CREATIVITY,
    'building_showmanship': _SHOWMANSHIP,
}

TUMBLING_FIELDS = {
    'standing_difficulty': ScoreRange(1.5, 3.0, 0.5),
    'standing_execution': ScoreRange(2.8, 4.0, 0.1),
    'standing_drivers': ScoreRange(0.0, 1.0, 0.1),
    'running_difficulty': ScoreRange(1.5, 3.0, 0.5),
    'running_execution': ScoreRange(2.8, 4.0, 0.1),
    'running_drivers': ScoreRange(0.0, 0.5, 0.1),
    'running_driver_max_part': ScoreRange(0.0, 0.5, 0.1),
    'jumps_difficulty': ScoreRange(0.5, 2.0, 0.5),
    'jumps_execution': ScoreRange(1.3, 2.0, 0.1),
    'tumbling_creativity': _CREATIVITY,
    'tumbling_showmanship': _SHOWMANSHIP,
}

OVERALL_FIELDS = {
    'dance_difficulty': ScoreRange(0.5, 1.0, 0.1),
    'dance_execution': ScoreRange(0.5, 1.0, 0.1),
    'formations': ScoreRange(1.0, 2.0, 0.1),
    'overall_creativity': _CREATIVITY,
    'overall_showmanship': _SHOWMANSHIP,
}

SCORE_RANGES = {**BUILDING_FIELDS, **TUMBLING_FIELDS, **OVERALL_FIELDS}
SCORE_FIELDS = list(SCORE_RANGES)

CATEGORY_MAXIMUMS = {
    'stunt': 10.0,
    'pyramid': 8.0,
    'toss': 4.0,
    'building': 22.0,
    'standing': 8.0,
    'running': 8.0,
    'jumps': 4.0,
    'tumbling': 20.0,
    'dance': 2.0,
    'formations': 2.0,
    'creativity': 2.0,
    'showmanship': 2.0,
    'overall': 8.0,
    'total': 50.0,
}

# Level 1 teams do not perform tosses.
NO_TOSS_LEVELS = {'L1'}

# (kind, ScoreEntry counter attribute, points per occurrence), in display order
DEDUCTIONS = [
    ('athlete_fall', 'athlete_falls', 0.15),
    ('major_athlete_fall', 'major_athlete_falls', 0.25),
    ('building_bobble', 'building_bobbles', 0.25),
    ('building_fall', 'building_falls', 0.75),
    ('major_building_fall', 'major_building_falls', 1.25),
    ('boundary_violation', 'boundary_violations', 0.05),
    ('time_limit_violation', 'time_limit_violations', 0.05),
]
DEDUCTION_KINDS = [kind for kind, _, _ in DEDUCTIONS]
DEDUCTION_COUNTERS = {kind: counter for kind, counter, _ in DEDUCTIONS}
DEDUCTION_POINTS = {kind: points for kind, _, points in DEDUCTIONS}

DEDUCTION_LABELS = {
    'athlete_fall': 'Athlete Falls',
    'major_athlete_fall': 'Major Athlete Falls',
    'building_bobble': 'Building Bobbles',
    'building_fall': 'Building Falls',
    'major_building_fall': 'Major Building Falls',
    'boundary_violation': 'Boundary Violations',
    'time_limit_violation': 'Time Limit Violations',
}

# (lower bound inclusive, chart), evaluated top-down
_QUANTITY_THRESHOLDS = [
    (31, QuantityChart(5, 6, 7)),
    (23, QuantityChart(4, 5, 6)),
    (18, QuantityChart(3, 4, 5)),
    (12, QuantityChart(2, 3, 4)),
]
_QUANTITY_FLOOR = QuantityChart(1, 2, 3)


def range_for(field: str) -> ScoreRange:
    """Return the legal input range for a score field."""
    try:
        return SCORE_RANGES[field]
    except KeyError:
        raise UnknownRuleError(f'Unknown score field: {field!r}') from None


def max_for(category: str, level: str | None = None) -> float:
    """Return the maximum achievable score for a category.

    Only 'building' and 'total' depend on level.
    """
    if category == 'building':
        return building_max(level)
    if category == 'total':
        return max_score(level)
    try:
        return CATEGORY_MAXIMUMS[category]
    except KeyError:
        raise UnknownRuleError(f'Unknown score category: {category!r}') from None


def building_max(level: str | None) -> float:
    if level in NO_TOSS_LEVELS:
        return CATEGORY_MAXIMUMS['building'] - CATEGORY_MAXIMUMS['toss']
    return CATEGORY_MAXIMUMS['building']


def max_score(level: str | None) -> float:
    if level in NO_TOSS_LEVELS:
        return CATEGORY_MAXIMUMS['total'] - CATEGORY_MAXIMUMS['toss']
    return CATEGORY_MAXIMUMS['total']


def point_value(kind: str) -> float:
    try:
        return DEDUCTION_POINTS[kind]
    except KeyError:
        raise UnknownRuleError(f'Unknown deduction kind: {kind!r}') from None


def quantity_chart(athlete_count: int) -> QuantityChart:
    """Majority/most/max subgroup counts for a roster size.

    Judges' reference only; never used in score arithmetic.
    """
    for lower, chart in _QUANTITY_THRESHOLDS:
        if athlete_count >= lower:
            return chart
    return _QUANTITY_FLOOR
