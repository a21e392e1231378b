"""Flat payloads for storage, upload and copy-out.

to_payload() produces the grouped scoresheet record the backend consumes:
  team_info, performance, scores_building, scores_tumbling, scores_overall,
  deductions (non-zero kinds only)

The *_payload() helpers flatten gyms, teams and competitions the same way
for their own backend tables.
"""

import json
from datetime import datetime

from .aggregator import ScoreTotals, compute_totals, round2
from .input_validator import validate_entry
from .models import Competition, Gym, ScoreEntry, Team
from .scoring_rules import DEDUCTIONS, SCORE_FIELDS


def _iso(ts: datetime) -> str:
    return ts.isoformat()


def _deductions(entry: ScoreEntry) -> list[dict]:
    return [{'category': kind, 'count': getattr(entry, counter)}
            for kind, counter, _ in DEDUCTIONS
            if getattr(entry, counter) > 0]


def to_payload(entry: ScoreEntry, totals: ScoreTotals | None = None) -> dict:
    """Build the backend record for a scoresheet.

    Raw inputs are exported unrounded; computed scores are rounded to
    2 places. A missing team or competition exports as empty strings / 0.

    Raises ScoreRangeError if any field or counter is outside the rule
    table. Values are never clamped on the way out.
    """
    validate_entry(entry)
    if totals is None:
        totals = compute_totals(entry)
    team = entry.team
    gym = team.gym if team else None
    e = entry

    return {
        'team_info': {
            'name': team.name if team else '',
            'program': gym.name if gym else '',
            'level': team.level if team else '',
            'age_division': team.age_division if team else '',
            'tier': team.tier if team else '',
            'athlete_count': team.athlete_count if team else 0,
        },
        'performance': {
            'competition_name': entry.competition.name if entry.competition else '',
            'round': entry.round,
            'raw_score': round2(totals.raw_score),
            'total_deductions': round2(totals.deductions),
            'final_score': round2(totals.final_score),
        },
        'scores_building': {
            'stunt_difficulty': e.stunt_difficulty,
            'stunt_execution': e.stunt_execution,
            'stunt_driver_degree': e.stunt_driver_degree,
            'stunt_driver_max_part': e.stunt_driver_max_part,
            'pyramid_difficulty': e.pyramid_difficulty,
            'pyramid_execution': e.pyramid_execution,
            'pyramid_drivers': e.pyramid_drivers,
            'toss_difficulty': e.toss_difficulty,
            'toss_execution': e.toss_execution,
            'creativity_score': e.building_creativity,
            'showmanship_score': e.building_showmanship,
        },
        'scores_tumbling': {
            'standing_difficulty': e.standing_difficulty,
            'standing_execution': e.standing_execution,
            'standing_drivers': e.standing_drivers,
            'running_difficulty': e.running_difficulty,
            'running_execution': e.running_execution,
            'running_drivers': e.running_drivers,
            'running_driver_max_part': e.running_driver_max_part,
            'jumps_difficulty': e.jumps_difficulty,
            'jumps_execution': e.jumps_execution,
            'creativity_score': e.tumbling_creativity,
            'showmanship_score': e.tumbling_showmanship,
        },
        'scores_overall': {
            'dance_difficulty': e.dance_difficulty,
            'dance_execution': e.dance_execution,
            'formations_score': e.formations,
            'creativity_score': e.overall_creativity,
            'showmanship_score': e.overall_showmanship,
        },
        'deductions': _deductions(entry),
    }


def export_json(entry: ScoreEntry) -> str:
    """Pretty-printed JSON of to_payload(), for copy-out. Same validation."""
    return json.dumps(to_payload(entry), indent=2)


def gym_payload(gym: Gym) -> dict:
    return {
        'id': gym.id,
        'name': gym.name,
        'location': gym.location,
        'created_at': _iso(gym.created_at),
    }


def team_payload(team: Team) -> dict:
    return {
        'id': team.id,
        'name': team.name,
        'gym_id': team.gym.id if team.gym else None,
        'level': team.level,
        'age_division': team.age_division,
        'tier': team.tier,
        'athlete_count': team.athlete_count,
        'created_at': _iso(team.created_at),
    }


def competition_payload(competition: Competition) -> dict:
    return {
        'id': competition.id,
        'name': competition.name,
        'date': _iso(competition.date),
        'location': competition.location,
        'notes': competition.notes,
        'created_at': _iso(competition.created_at),
    }


def score_entry_row(entry: ScoreEntry) -> dict:
    """Flat scoresheet row: every raw field, every counter, rounded scores."""
    totals = compute_totals(entry)
    row = {
        'id': entry.id,
        'team_id': entry.team.id if entry.team else None,
        'competition_id': entry.competition.id if entry.competition else None,
        'round': entry.round,
        'created_at': _iso(entry.created_at),
    }
    for name in SCORE_FIELDS:
        row[name] = getattr(entry, name)
    for _, counter, _ in DEDUCTIONS:
        row[counter] = getattr(entry, counter)
    row['raw_score'] = round2(totals.raw_score)
    row['total_deductions'] = round2(totals.deductions)
    row['final_score'] = round2(totals.final_score)
    row['sync_status'] = entry.sync_status
    row['remote_id'] = entry.remote_id
    return row
