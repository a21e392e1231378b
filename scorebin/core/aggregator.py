"""Score roll-up for a single scoresheet.

Every total is a plain sum over the entry's fields:

  stunt + pyramid + toss             -> building
  standing + running + jumps         -> tumbling
  dance + formations + creativity avg + showmanship avg -> overall
  building + tumbling + overall      -> raw score
  raw score - deductions             -> final score

Sums are carried at full float precision. round2() is applied only when a
value is presented or exported, never between steps of the chain.
"""

import math
from dataclasses import dataclass, fields, replace

from .models import ScoreEntry
from .scoring_rules import DEDUCTIONS

# Beyond this magnitude a float has no hundredths left to round.
_ROUNDING_LIMIT = 2 ** 52 / 100


def round2(value: float) -> float:
    """Round to 2 decimal places, halves away from zero."""
    if not math.isfinite(value) or abs(value) >= _ROUNDING_LIMIT:
        return value
    scaled = abs(value) * 100
    whole = math.floor(scaled)
    # scaled - whole is exact
    if scaled - whole >= 0.5:
        whole += 1
    return math.copysign(whole, value) / 100


# --- Building ---

def stunt_total(e: ScoreEntry) -> float:
    return e.stunt_difficulty + e.stunt_execution + e.stunt_driver_degree + e.stunt_driver_max_part


def pyramid_total(e: ScoreEntry) -> float:
    return e.pyramid_difficulty + e.pyramid_execution + e.pyramid_drivers


def toss_total(e: ScoreEntry) -> float:
    return e.toss_difficulty + e.toss_execution


def building_total(e: ScoreEntry) -> float:
    return stunt_total(e) + pyramid_total(e) + toss_total(e)


# --- Tumbling ---

def standing_total(e: ScoreEntry) -> float:
    return e.standing_difficulty + e.standing_execution + e.standing_drivers


def running_total(e: ScoreEntry) -> float:
    return e.running_difficulty + e.running_execution + e.running_drivers + e.running_driver_max_part


def jumps_total(e: ScoreEntry) -> float:
    return e.jumps_difficulty + e.jumps_execution


def tumbling_total(e: ScoreEntry) -> float:
    return standing_total(e) + running_total(e) + jumps_total(e)


# --- Overall ---

def dance_total(e: ScoreEntry) -> float:
    return e.dance_difficulty + e.dance_execution


def creativity_average(e: ScoreEntry) -> float:
    """Mean of the three panels' creativity scores."""
    return (e.building_creativity + e.tumbling_creativity + e.overall_creativity) / 3


def showmanship_average(e: ScoreEntry) -> float:
    """Mean of the three panels' showmanship scores."""
    return (e.building_showmanship + e.tumbling_showmanship + e.overall_showmanship) / 3


def overall_total(e: ScoreEntry) -> float:
    return dance_total(e) + e.formations + creativity_average(e) + showmanship_average(e)


# --- Final ---

def total_deductions(e: ScoreEntry) -> float:
    return sum(getattr(e, counter) * points for _, counter, points in DEDUCTIONS)


def raw_score(e: ScoreEntry) -> float:
    return building_total(e) + tumbling_total(e) + overall_total(e)


def final_score(e: ScoreEntry) -> float:
    return raw_score(e) - total_deductions(e)


@dataclass(frozen=True)
class ScoreTotals:
    """Every derived value for one scoresheet."""
    stunt: float
    pyramid: float
    toss: float
    building: float
    standing: float
    running: float
    jumps: float
    tumbling: float
    dance: float
    creativity: float
    showmanship: float
    overall: float
    deductions: float
    raw_score: float
    final_score: float

    def rounded(self) -> 'ScoreTotals':
        """Presentation copy with every value passed through round2()."""
        return replace(self, **{f.name: round2(getattr(self, f.name)) for f in fields(self)})


def compute_totals(e: ScoreEntry) -> ScoreTotals:
    """Recompute every total from the entry. Does not modify the entry."""
    return ScoreTotals(
        stunt=stunt_total(e),
        pyramid=pyramid_total(e),
        toss=toss_total(e),
        building=building_total(e),
        standing=standing_total(e),
        running=running_total(e),
        jumps=jumps_total(e),
        tumbling=tumbling_total(e),
        dance=dance_total(e),
        creativity=creativity_average(e),
        showmanship=showmanship_average(e),
        overall=overall_total(e),
        deductions=total_deductions(e),
        raw_score=raw_score(e),
        final_score=final_score(e),
    )
