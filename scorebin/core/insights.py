"""Team, gym and competition analytics over saved scoresheets.

All functions are pure: they take lists of ScoreEntry (as loaded from the
repository) and compute from the aggregator. Averages and percentages are
rounded for display.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

from .aggregator import building_total, final_score, overall_total, round2, tumbling_total
from .models import ScoreEntry, Team
from .scoring_rules import CATEGORY_MAXIMUMS, DEDUCTION_LABELS, DEDUCTIONS, building_max


@dataclass(frozen=True)
class ScoreDataPoint:
    date: datetime
    score: float
    label: str


@dataclass(frozen=True)
class CategoryBreakdown:
    category: str
    score: float
    max_score: float
    percentage: float


@dataclass(frozen=True)
class DeductionPattern:
    category: str
    total_count: int
    total_points: float


@dataclass(frozen=True)
class LevelStats:
    level: str
    average_score: float
    team_count: int
    entry_count: int


@dataclass(frozen=True)
class Standing:
    place: int
    entry: ScoreEntry
    final_score: float


# --- Score summaries ---

def score_history(entries: list[ScoreEntry]) -> list[ScoreDataPoint]:
    """Final scores in chronological order, labelled by competition."""
    return [
        ScoreDataPoint(
            date=e.created_at,
            score=final_score(e),
            label=e.competition.name if e.competition else 'Practice',
        )
        for e in sorted(entries, key=lambda e: e.created_at)
    ]


def average_score(entries: list[ScoreEntry]) -> float:
    if not entries:
        return 0.0
    return round2(sum(final_score(e) for e in entries) / len(entries))


def best_score(entries: list[ScoreEntry]) -> float:
    return max((final_score(e) for e in entries), default=0.0)


def lowest_score(entries: list[ScoreEntry]) -> float:
    return min((final_score(e) for e in entries), default=0.0)


def score_improvement(entries: list[ScoreEntry]) -> float:
    """Latest final score minus earliest; 0 with fewer than two scoresheets."""
    if len(entries) < 2:
        return 0.0
    ordered = sorted(entries, key=lambda e: e.created_at)
    return round2(final_score(ordered[-1]) - final_score(ordered[0]))


def entries_by_round(entries: list[ScoreEntry]) -> dict[str, list[ScoreEntry]]:
    grouped = defaultdict(list)
    for e in entries:
        grouped[e.round].append(e)
    return dict(grouped)


def recent_entries(entries: list[ScoreEntry], limit: int = 5) -> list[ScoreEntry]:
    return sorted(entries, key=lambda e: e.created_at, reverse=True)[:limit]


def rank_entries(entries: list[ScoreEntry]) -> list[Standing]:
    """Standings by rounded final score, highest first. Equal scores share a place."""
    scored = sorted(((round2(final_score(e)), e) for e in entries),
                    key=lambda pair: -pair[0])
    standings = []
    for i, (score, e) in enumerate(scored):
        if standings and standings[-1].final_score == score:
            place = standings[-1].place
        else:
            place = i + 1
        standings.append(Standing(place=place, entry=e, final_score=score))
    return standings


# --- Category breakdown ---

def _breakdown(building: float, tumbling: float, overall: float,
               level: str | None) -> list[CategoryBreakdown]:
    rows = [
        ('Building', building, building_max(level)),
        ('Tumbling', tumbling, CATEGORY_MAXIMUMS['tumbling']),
        ('Overall', overall, CATEGORY_MAXIMUMS['overall']),
    ]
    return [CategoryBreakdown(category=name, score=round2(score), max_score=maximum,
                              percentage=round2(score / maximum * 100))
            for name, score, maximum in rows]


def category_breakdown(entry: ScoreEntry) -> list[CategoryBreakdown]:
    """Building/Tumbling/Overall against their level-aware maximums."""
    return _breakdown(building_total(entry), tumbling_total(entry),
                      overall_total(entry), entry.level)


def average_category_breakdown(entries: list[ScoreEntry],
                               level: str | None) -> list[CategoryBreakdown]:
    if not entries:
        return _breakdown(0.0, 0.0, 0.0, level)
    n = len(entries)
    return _breakdown(
        sum(building_total(e) for e in entries) / n,
        sum(tumbling_total(e) for e in entries) / n,
        sum(overall_total(e) for e in entries) / n,
        level,
    )


# --- Deductions ---

def deduction_patterns(entries: list[ScoreEntry]) -> list[DeductionPattern]:
    """Total occurrences and points lost per deduction kind, worst first."""
    patterns = []
    for kind, counter, points in DEDUCTIONS:
        count = sum(getattr(e, counter) for e in entries)
        if count > 0:
            patterns.append(DeductionPattern(category=DEDUCTION_LABELS[kind],
                                             total_count=count,
                                             total_points=round2(count * points)))
    patterns.sort(key=lambda p: -p.total_points)
    return patterns


# --- Gym analytics ---

def stats_per_level(teams: list[Team], entries: list[ScoreEntry]) -> list[LevelStats]:
    """Average final score per level across a gym's teams."""
    teams_by_level = defaultdict(list)
    for team in teams:
        teams_by_level[team.level].append(team)

    entries_by_team = defaultdict(list)
    for e in entries:
        if e.team:
            entries_by_team[e.team.id].append(e)

    stats = []
    for level, level_teams in teams_by_level.items():
        level_entries = [e for t in level_teams for e in entries_by_team[t.id]]
        stats.append(LevelStats(level=level,
                                average_score=average_score(level_entries),
                                team_count=len(level_teams),
                                entry_count=len(level_entries)))
    stats.sort(key=lambda s: s.level)
    return stats
