"""Data models for the cheer competition scoring system."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from .scoring_rules import SCORE_RANGES


SYNC_PENDING = 'pending'
SYNC_SYNCED = 'synced'
SYNC_FAILED = 'failed'
SYNC_STATUSES = (SYNC_PENDING, SYNC_SYNCED, SYNC_FAILED)

ROUND_TYPES = ('Day 1', 'Day 2', 'Finals', 'Exhibition')

LEVELS = ('L1', 'L2', 'L3', 'L4', 'L4.2', 'L5', 'L6', 'L7')
AGE_DIVISIONS = ('youth', 'junior', 'senior', 'open')
TIERS = ('elite', 'premier', 'recreation')


def _new_id() -> str:
    return str(uuid.uuid4())


def _max(name: str) -> float:
    return SCORE_RANGES[name].max


@dataclass
class Gym:
    """A cheer program. Owns its teams (cascade delete)."""
    name: str
    location: str = ''
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)
    sync_status: str = SYNC_PENDING


@dataclass
class Team:
    name: str
    gym: Gym | None = None
    level: str = 'L2'             # one of LEVELS
    age_division: str = 'senior'  # youth, junior, senior, open
    tier: str = 'elite'           # elite, premier, recreation
    athlete_count: int = 20
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)
    sync_status: str = SYNC_PENDING


@dataclass
class Competition:
    name: str
    date: datetime = field(default_factory=datetime.now)
    location: str = ''
    notes: str = ''
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)
    sync_status: str = SYNC_PENDING


@dataclass
class ScoreEntry:
    """One team's scoresheet for one round of one competition.

    Score fields start at their rule-table maximum; judges deduct from the
    ceiling. Team and competition are non-owning references and may be
    None (practice scoresheets).
    """
    team: Team | None = None
    competition: Competition | None = None
    round: str = ROUND_TYPES[0]   # free text, usually one of ROUND_TYPES
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=datetime.now)
    sync_status: str = SYNC_PENDING
    remote_id: str | None = None

    # Building judge
    stunt_difficulty: float = _max('stunt_difficulty')
    stunt_execution: float = _max('stunt_execution')
    stunt_driver_degree: float = _max('stunt_driver_degree')
    stunt_driver_max_part: float = _max('stunt_driver_max_part')
    pyramid_difficulty: float = _max('pyramid_difficulty')
    pyramid_execution: float = _max('pyramid_execution')
    pyramid_drivers: float = _max('pyramid_drivers')
    toss_difficulty: float = _max('toss_difficulty')
    toss_execution: float = _max('toss_execution')
    building_creativity: float = _max('building_creativity')
    building_showmanship: float = _max('building_showmanship')

    # Tumbling judge
    standing_difficulty: float = _max('standing_difficulty')
    standing_execution: float = _max('standing_execution')
    standing_drivers: float = _max('standing_drivers')
    running_difficulty: float = _max('running_difficulty')
    running_execution: float = _max('running_execution')
    running_drivers: float = _max('running_drivers')
    running_driver_max_part: float = _max('running_driver_max_part')
    jumps_difficulty: float = _max('jumps_difficulty')
    jumps_execution: float = _max('jumps_execution')
    tumbling_creativity: float = _max('tumbling_creativity')
    tumbling_showmanship: float = _max('tumbling_showmanship')

    # Overall judge
    dance_difficulty: float = _max('dance_difficulty')
    dance_execution: float = _max('dance_execution')
    formations: float = _max('formations')
    overall_creativity: float = _max('overall_creativity')
    overall_showmanship: float = _max('overall_showmanship')

    # Deduction counters
    athlete_falls: int = 0
    major_athlete_falls: int = 0
    building_bobbles: int = 0
    building_falls: int = 0
    major_building_falls: int = 0
    boundary_violations: int = 0
    time_limit_violations: int = 0

    @property
    def level(self) -> str | None:
        return self.team.level if self.team else None
