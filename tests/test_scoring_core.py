"""Tests for the rule table, aggregator, input validation and export payload."""

import json
import os
import sys
from dataclasses import replace

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from scorebin.core import aggregator as agg
from scorebin.core.aggregator import compute_totals, round2
from scorebin.core.export_formatter import (
    competition_payload, export_json, gym_payload, score_entry_row, team_payload, to_payload
)
from scorebin.core.input_validator import (
    ScoreRangeError, apply_score, clamp_score, find_violations, set_deduction, validate_entry
)
from scorebin.core.models import Competition, Gym, ScoreEntry, Team
from scorebin.core.scoring_rules import (
    BUILDING_FIELDS, OVERALL_FIELDS, SCORE_FIELDS, TUMBLING_FIELDS, UnknownRuleError,
    building_max, max_for, max_score, point_value, quantity_chart, range_for
)


def _sum_max(*names):
    return sum(range_for(n).max for n in names)


# ─── Rule table ─────────────────────────────────────────────────────

class TestRuleTable:
    def test_field_count(self):
        assert len(SCORE_FIELDS) == 27
        assert len(BUILDING_FIELDS) == 11
        assert len(TUMBLING_FIELDS) == 11
        assert len(OVERALL_FIELDS) == 5

    def test_known_ranges(self):
        rng = range_for('stunt_difficulty')
        assert (rng.min, rng.max, rng.step) == (2.5, 4.5, 0.5)
        rng = range_for('overall_creativity')
        assert (rng.min, rng.max, rng.step) == (1.5, 2.0, 0.01)
        rng = range_for('toss_difficulty')
        assert (rng.min, rng.max, rng.step) == (1.0, 2.0, 0.5)

    def test_unknown_field_fails_loudly(self):
        with pytest.raises(UnknownRuleError):
            range_for('backflip_style')
        with pytest.raises(KeyError):
            range_for('')

    def test_unknown_category_fails_loudly(self):
        with pytest.raises(UnknownRuleError):
            max_for('pom')

    def test_unknown_deduction_fails_loudly(self):
        with pytest.raises(UnknownRuleError):
            point_value('dropped_pom')

    @pytest.mark.parametrize('kind,points', [
        ('athlete_fall', 0.15),
        ('major_athlete_fall', 0.25),
        ('building_bobble', 0.25),
        ('building_fall', 0.75),
        ('major_building_fall', 1.25),
        ('boundary_violation', 0.05),
        ('time_limit_violation', 0.05),
    ])
    def test_point_values(self, kind, points):
        assert point_value(kind) == points

    def test_level_aware_maximums(self):
        assert building_max('L1') == 18.0
        assert building_max('L2') == 22.0
        assert building_max(None) == 22.0
        assert max_score('L1') == 46.0
        for level in ('L2', 'L4.2', 'L7', None, 'unknown'):
            assert max_score(level) == 50.0
        assert max_for('building', 'L1') == 18.0
        assert max_for('total', 'L1') == 46.0
        assert max_for('tumbling', 'L1') == 20.0

    def test_section_maximums_match_field_maximums(self):
        assert _sum_max('stunt_difficulty', 'stunt_execution',
                        'stunt_driver_degree', 'stunt_driver_max_part') == pytest.approx(max_for('stunt'))
        assert _sum_max('pyramid_difficulty', 'pyramid_execution',
                        'pyramid_drivers') == pytest.approx(max_for('pyramid'))
        assert _sum_max('toss_difficulty', 'toss_execution') == pytest.approx(max_for('toss'))
        assert _sum_max('standing_difficulty', 'standing_execution',
                        'standing_drivers') == pytest.approx(max_for('standing'))
        assert _sum_max('running_difficulty', 'running_execution', 'running_drivers',
                        'running_driver_max_part') == pytest.approx(max_for('running'))
        assert _sum_max('jumps_difficulty', 'jumps_execution') == pytest.approx(max_for('jumps'))
        assert _sum_max('dance_difficulty', 'dance_execution') == pytest.approx(max_for('dance'))

    def test_category_maximums_add_up(self):
        assert max_for('stunt') + max_for('pyramid') + max_for('toss') == max_for('building')
        assert max_for('standing') + max_for('running') + max_for('jumps') == max_for('tumbling')
        assert (max_for('dance') + max_for('formations') + max_for('creativity')
                + max_for('showmanship')) == max_for('overall')
        assert max_for('building') + max_for('tumbling') + max_for('overall') == max_for('total')
        assert max_for('building', 'L1') + max_for('tumbling') + max_for('overall') == max_for('total', 'L1')


class TestQuantityChart:
    @pytest.mark.parametrize('count,expected', [
        (0, (1, 2, 3)),
        (11, (1, 2, 3)),
        (12, (2, 3, 4)),
        (17, (2, 3, 4)),
        (18, (3, 4, 5)),
        (22, (3, 4, 5)),
        (23, (4, 5, 6)),
        (30, (4, 5, 6)),
        (31, (5, 6, 7)),
        (100, (5, 6, 7)),
    ])
    def test_thresholds(self, count, expected):
        chart = quantity_chart(count)
        assert (chart.majority, chart.most, chart.max) == expected

    def test_monotonic(self):
        previous = quantity_chart(0)
        for count in range(1, 60):
            chart = quantity_chart(count)
            assert chart.majority >= previous.majority
            assert chart.most >= previous.most
            assert chart.max >= previous.max
            previous = chart

    def test_description(self):
        assert quantity_chart(20).description == 'MAJ: 3  MOST: 4  MAX: 5'


# ─── Aggregator ─────────────────────────────────────────────────────

def _custom_entry() -> ScoreEntry:
    return ScoreEntry(
        stunt_difficulty=3.5, stunt_execution=3.3, stunt_driver_degree=0.4,
        stunt_driver_max_part=0.2, pyramid_difficulty=3.1, pyramid_execution=3.6,
        toss_difficulty=1.5, toss_execution=1.7, building_creativity=1.8,
        building_showmanship=1.6, standing_difficulty=2.0, standing_execution=3.2,
        standing_drivers=0.6, running_difficulty=2.5, running_execution=3.4,
        running_drivers=0.3, running_driver_max_part=0.2, jumps_difficulty=1.5,
        jumps_execution=1.6, tumbling_creativity=1.75, tumbling_showmanship=1.45,
        dance_difficulty=0.8, dance_execution=0.9, formations=1.7,
        overall_creativity=1.9, overall_showmanship=1.55,
        athlete_falls=1, building_bobbles=2, time_limit_violations=1,
    )


class TestAggregator:
    def test_default_entry_scores_the_grand_maximum(self):
        entry = ScoreEntry(team=Team(name='Senior Elite', level='L5'))
        totals = compute_totals(entry)
        assert totals.deductions == 0
        assert round2(totals.raw_score) == 50.0
        assert round2(totals.final_score) == 50.0
        assert totals.raw_score == pytest.approx(max_for('total', 'L5'))

    def test_default_section_totals_are_at_maximum(self):
        totals = compute_totals(ScoreEntry())
        for category in ('stunt', 'pyramid', 'toss', 'building', 'standing', 'running',
                         'jumps', 'tumbling', 'dance', 'creativity', 'showmanship', 'overall'):
            assert getattr(totals, category) == pytest.approx(max_for(category)), category

    def test_deduction_total(self):
        entry = ScoreEntry(athlete_falls=2, building_falls=1)
        assert agg.total_deductions(entry) == pytest.approx(1.05)
        assert round2(agg.total_deductions(entry)) == 1.05

    def test_every_deduction_kind_counts(self):
        entry = ScoreEntry(athlete_falls=1, major_athlete_falls=1, building_bobbles=1,
                           building_falls=1, major_building_falls=1,
                           boundary_violations=1, time_limit_violations=1)
        assert agg.total_deductions(entry) == pytest.approx(2.75)

    def test_panel_totals_are_sums_of_sections(self):
        e = _custom_entry()
        assert agg.building_total(e) == agg.stunt_total(e) + agg.pyramid_total(e) + agg.toss_total(e)
        assert agg.tumbling_total(e) == (agg.standing_total(e) + agg.running_total(e)
                                         + agg.jumps_total(e))
        assert agg.overall_total(e) == (agg.dance_total(e) + e.formations
                                        + agg.creativity_average(e) + agg.showmanship_average(e))
        assert agg.raw_score(e) == agg.building_total(e) + agg.tumbling_total(e) + agg.overall_total(e)

    def test_final_is_raw_minus_deductions(self):
        e = _custom_entry()
        assert abs(agg.final_score(e) - (agg.raw_score(e) - agg.total_deductions(e))) < 1e-9

    def test_custom_values(self):
        e = _custom_entry()
        assert agg.stunt_total(e) == pytest.approx(7.4)
        assert agg.pyramid_total(e) == pytest.approx(6.7)
        assert agg.running_total(e) == pytest.approx(6.4)
        assert agg.creativity_average(e) == pytest.approx((1.8 + 1.75 + 1.9) / 3)
        assert agg.showmanship_average(e) == pytest.approx((1.6 + 1.45 + 1.55) / 3)
        assert agg.total_deductions(e) == pytest.approx(0.15 + 0.5 + 0.05)

    def test_optional_driver_terms_are_included(self):
        e = ScoreEntry(pyramid_drivers=0.3, running_driver_max_part=0.0)
        assert agg.pyramid_total(e) == pytest.approx(8.3)
        assert agg.running_total(e) == pytest.approx(7.5)

    def test_out_of_range_values_still_compute(self):
        e = ScoreEntry(stunt_difficulty=-10.0, formations=99.0, athlete_falls=-3)
        totals = compute_totals(e)
        assert totals.final_score == pytest.approx(totals.raw_score - totals.deductions)
        assert totals.deductions == pytest.approx(-0.45)

    def test_compute_does_not_mutate(self):
        e = _custom_entry()
        before = replace(e)
        compute_totals(e)
        assert e == before

    def test_rounded_totals(self):
        e = _custom_entry()
        totals = compute_totals(e)
        shown = totals.rounded()
        assert shown.creativity == round2(totals.creativity)
        assert shown.final_score == round2(totals.final_score)
        assert shown.raw_score == round2(totals.raw_score)


class TestRound2:
    def test_halves_round_away_from_zero(self):
        assert round2(0.125) == 0.13
        assert round2(-0.125) == -0.13
        assert round2(2.5) == 2.5

    def test_just_below_half_rounds_down(self):
        # 0.0049999999999999994 * 100 == 0.49999999999999994
        assert round2(0.0049999999999999994) == 0.0
        assert round2(-0.0049999999999999994) == 0.0
        assert round2(0.005) == 0.01

    def test_basic(self):
        assert round2(1 / 3) == 0.33
        assert round2(2 / 3) == 0.67
        assert round2(49.999) == 50.0
        assert round2(0.0) == 0.0

    @pytest.mark.parametrize('value', [
        0.0, 1 / 3, 2 / 3, 0.125, 49.999, -1.2345, 17.105, 123456.789,
        1e-9, -1e-9, 1e13, 1e20, -7.5e300,
    ])
    def test_idempotent(self, value):
        once = round2(value)
        assert round2(once) == once

    def test_non_finite_passthrough(self):
        assert round2(float('inf')) == float('inf')


# ─── Input validation ───────────────────────────────────────────────

class TestInputValidation:
    def test_clamp_to_bounds(self):
        assert clamp_score('stunt_execution', 9.9) == 4.0
        assert clamp_score('stunt_execution', 0.0) == 2.8
        assert clamp_score('standing_drivers', -1.0) == 0.0

    def test_snap_to_step(self):
        assert clamp_score('stunt_execution', 3.37) == 3.4
        assert clamp_score('stunt_difficulty', 3.2) == 3.0
        assert clamp_score('stunt_difficulty', 3.3) == 3.5
        assert clamp_score('overall_creativity', 1.777) == 1.78

    def test_apply_score(self):
        entry = ScoreEntry()
        assert apply_score(entry, 'toss_execution', 1.0) == 1.3
        assert entry.toss_execution == 1.3
        assert apply_score(entry, 'formations', '1.5') == 1.5

    def test_apply_unknown_field(self):
        with pytest.raises(UnknownRuleError):
            apply_score(ScoreEntry(), 'pom_spirit', 1.0)

    def test_set_deduction(self):
        entry = ScoreEntry()
        assert set_deduction(entry, 'building_fall', 2) == 2
        assert entry.building_falls == 2
        assert set_deduction(entry, 'athlete_fall', -4) == 0
        assert entry.athlete_falls == 0
        with pytest.raises(UnknownRuleError):
            set_deduction(entry, 'dropped_sign', 1)

    def test_fractional_deduction_count_rejected(self):
        entry = ScoreEntry()
        with pytest.raises(ValueError):
            set_deduction(entry, 'athlete_fall', 2.9)
        assert entry.athlete_falls == 0
        with pytest.raises(ValueError):
            set_deduction(entry, 'athlete_fall', float('nan'))
        with pytest.raises(ValueError):
            set_deduction(entry, 'athlete_fall', '2')
        assert set_deduction(entry, 'athlete_fall', 3.0) == 3
        assert isinstance(entry.athlete_falls, int)

    def test_default_entry_is_valid(self):
        assert find_violations(ScoreEntry()) == []
        validate_entry(ScoreEntry())

    def test_violations_reported(self):
        entry = ScoreEntry(stunt_execution=4.5, stunt_difficulty=3.2, boundary_violations=-1)
        violations = find_violations(entry)
        assert len(violations) == 3
        assert any(v.startswith('stunt_execution=4.5 outside') for v in violations)
        assert any(v.startswith('stunt_difficulty=3.2 not a multiple') for v in violations)
        assert any(v.startswith('boundary_violations=-1') for v in violations)

    def test_validate_raises(self):
        entry = ScoreEntry(formations=0.2)
        with pytest.raises(ScoreRangeError) as exc_info:
            validate_entry(entry)
        assert len(exc_info.value.violations) == 1
        assert isinstance(exc_info.value, ValueError)

    def test_clamped_values_always_validate(self):
        entry = ScoreEntry()
        for i, name in enumerate(SCORE_FIELDS):
            apply_score(entry, name, 1.234 + i * 0.37)
        assert find_violations(entry) == []


# ─── Export payload ─────────────────────────────────────────────────

@pytest.fixture
def full_entry():
    gym = Gym(name='Cheer Athletics', location='Plano, TX')
    team = Team(name='Panthers', gym=gym, level='L6', age_division='open',
                tier='elite', athlete_count=24)
    competition = Competition(name='NCA All-Star Nationals', location='Dallas')
    entry = _custom_entry()
    entry.team = team
    entry.competition = competition
    entry.round = 'Finals'
    return entry


class TestExportPayload:
    def test_groups(self, full_entry):
        payload = to_payload(full_entry)
        assert list(payload) == ['team_info', 'performance', 'scores_building',
                                 'scores_tumbling', 'scores_overall', 'deductions']

    def test_team_info(self, full_entry):
        info = to_payload(full_entry)['team_info']
        assert info == {
            'name': 'Panthers',
            'program': 'Cheer Athletics',
            'level': 'L6',
            'age_division': 'open',
            'tier': 'elite',
            'athlete_count': 24,
        }

    def test_missing_associations_default(self):
        payload = to_payload(ScoreEntry())
        assert payload['team_info'] == {
            'name': '', 'program': '', 'level': '', 'age_division': '',
            'tier': '', 'athlete_count': 0,
        }
        assert payload['performance']['competition_name'] == ''
        assert payload['performance']['round'] == 'Day 1'

    def test_team_without_gym(self):
        entry = ScoreEntry(team=Team(name='Solo'))
        assert to_payload(entry)['team_info']['program'] == ''

    def test_performance_is_rounded(self, full_entry):
        perf = to_payload(full_entry)['performance']
        totals = compute_totals(full_entry)
        assert perf['competition_name'] == 'NCA All-Star Nationals'
        assert perf['round'] == 'Finals'
        assert perf['raw_score'] == round2(totals.raw_score)
        assert perf['total_deductions'] == round2(totals.deductions)
        assert perf['final_score'] == round2(totals.final_score)

    def test_raw_inputs_are_exported_as_entered(self):
        entry = ScoreEntry(building_creativity=1.77, formations=1.3)
        payload = to_payload(entry)
        assert payload['scores_building']['creativity_score'] == 1.77
        assert payload['scores_overall']['formations_score'] == 1.3

    def test_out_of_range_entry_is_not_exported(self):
        entry = ScoreEntry(stunt_execution=9.0)
        with pytest.raises(ScoreRangeError) as exc_info:
            to_payload(entry)
        assert exc_info.value.violations[0].startswith('stunt_execution=9.0 outside')
        with pytest.raises(ScoreRangeError):
            export_json(entry)

    def test_off_step_and_negative_counts_are_not_exported(self):
        with pytest.raises(ScoreRangeError):
            to_payload(ScoreEntry(building_creativity=1.777))
        with pytest.raises(ScoreRangeError):
            to_payload(ScoreEntry(athlete_falls=-1))

    def test_score_groups_cover_every_field(self, full_entry):
        payload = to_payload(full_entry)
        exported = (len(payload['scores_building']) + len(payload['scores_tumbling'])
                    + len(payload['scores_overall']))
        assert exported == len(SCORE_FIELDS)
        assert payload['scores_building']['pyramid_drivers'] == 0.0
        assert payload['scores_tumbling']['running_driver_max_part'] == 0.2

    def test_zero_count_deductions_omitted(self):
        entry = ScoreEntry(boundary_violations=3)
        assert to_payload(entry)['deductions'] == [
            {'category': 'boundary_violation', 'count': 3},
        ]

    def test_no_deductions(self):
        assert to_payload(ScoreEntry())['deductions'] == []

    def test_deduction_order(self, full_entry):
        assert to_payload(full_entry)['deductions'] == [
            {'category': 'athlete_fall', 'count': 1},
            {'category': 'building_bobble', 'count': 2},
            {'category': 'time_limit_violation', 'count': 1},
        ]

    def test_supplied_totals_are_used(self):
        entry = ScoreEntry()
        totals = replace(compute_totals(entry), raw_score=12.3456, final_score=12.0)
        perf = to_payload(entry, totals)['performance']
        assert perf['raw_score'] == 12.35
        assert perf['final_score'] == 12.0

    def test_export_json(self, full_entry):
        text = export_json(full_entry)
        assert text.startswith('{\n  "team_info"')
        assert json.loads(text) == to_payload(full_entry)


class TestEntityPayloads:
    def test_gym(self):
        gym = Gym(name='Stingray Allstars', location='Marietta, GA')
        payload = gym_payload(gym)
        assert payload['id'] == gym.id
        assert payload['created_at'] == gym.created_at.isoformat()

    def test_team(self):
        team = Team(name='Peach', gym=Gym(name='Stingray Allstars'))
        assert team_payload(team)['gym_id'] == team.gym.id
        assert team_payload(Team(name='Orphans'))['gym_id'] is None

    def test_competition(self):
        competition = Competition(name='Worlds', notes='Day 2 only')
        payload = competition_payload(competition)
        assert payload['date'] == competition.date.isoformat()
        assert payload['notes'] == 'Day 2 only'

    def test_score_entry_row(self, full_entry):
        row = score_entry_row(full_entry)
        assert row['team_id'] == full_entry.team.id
        assert row['competition_id'] == full_entry.competition.id
        assert row['building_bobbles'] == 2
        assert row['final_score'] == round2(agg.final_score(full_entry))
        assert all(name in row for name in SCORE_FIELDS)
