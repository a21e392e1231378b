#!/usr/bin/env python3
"""CLI entry point for keeping cheer scoresheets in a local database.

Usage:
    python scorebin/process_scoresheet.py --db scores.db add-gym "Cheer Athletics"
    python scorebin/process_scoresheet.py --db scores.db add-team "Panthers" \\
        --gym <gym id> --level L5 --athletes 24
    python scorebin/process_scoresheet.py --db scores.db score --team <team id> \\
        --competition <competition id> --round Finals \\
        --set stunt_execution=3.6 --deduct building_fall=1
    python scorebin/process_scoresheet.py --db scores.db export <scoresheet id>
    python scorebin/process_scoresheet.py --db scores.db sync --outbox ./outbox/
"""

import argparse
import datetime
import os
import sqlite3
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scorebin.adapters.dry_run_uploader import DryRunUploader
from scorebin.adapters.outbox_uploader import OutboxUploader
from scorebin.core.aggregator import compute_totals
from scorebin.core.config import AppConfig
from scorebin.core.export_formatter import export_json
from scorebin.core.input_validator import ScoreRangeError, apply_score, set_deduction
from scorebin.core.log_setup import setup_logging
from scorebin.core.models import (
    AGE_DIVISIONS, LEVELS, ROUND_TYPES, TIERS, Competition, Gym, ScoreEntry, Team
)
from scorebin.core.output_generator import generate_results_csv
from scorebin.core.pdf_generator import generate_scoresheet_pdf
from scorebin.core.repository import ScoreRepository
from scorebin.core.scoring_rules import max_for, quantity_chart
from scorebin.core.sync_manager import SyncManager


def _parse_pairs(pairs: list[str], convert) -> dict:
    """Parse ['name=value', ...] into {name: convert(value)}."""
    result = {}
    for pair in pairs or []:
        name, sep, value = pair.partition('=')
        if not sep:
            raise ValueError(f'Expected name=value, got {pair!r}')
        result[name.strip()] = convert(value.strip())
    return result


def _require(entity, kind: str, entity_id: str):
    if entity is None:
        print(f'No {kind} with id {entity_id}')
        sys.exit(1)
    return entity


def print_summary(entry: ScoreEntry):
    totals = compute_totals(entry).rounded()
    level = entry.level
    team = entry.team
    print(f'Scoresheet {entry.id}')
    print(f'  Team:        {team.name if team else "-"} ({level or "no level"})')
    print(f'  Competition: {entry.competition.name if entry.competition else "Practice"}'
          f' / {entry.round}')
    if team:
        print(f'  Quantity:    {quantity_chart(team.athlete_count).description}')
    print(f'  Building:    {totals.building:6.2f} / {max_for("building", level):.2f}')
    print(f'  Tumbling:    {totals.tumbling:6.2f} / {max_for("tumbling"):.2f}')
    print(f'  Overall:     {totals.overall:6.2f} / {max_for("overall"):.2f}')
    print(f'  Raw score:   {totals.raw_score:6.2f} / {max_for("total", level):.2f}')
    print(f'  Deductions:  {-totals.deductions:6.2f}')
    print(f'  FINAL:       {totals.final_score:6.2f}')


def main():
    config = AppConfig.from_env()

    parser = argparse.ArgumentParser(description='Cheer competition scoresheets')
    parser.add_argument('--db', default=config.db_path,
                        help=f'Path to the SQLite database (default: {config.db_path})')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('add-gym', help='Create a gym')
    p.add_argument('name')
    p.add_argument('--location', default='')

    p = sub.add_parser('add-team', help='Create a team')
    p.add_argument('name')
    p.add_argument('--gym', default=None, help='Gym id')
    p.add_argument('--level', default='L2', choices=LEVELS)
    p.add_argument('--division', default='senior', choices=AGE_DIVISIONS)
    p.add_argument('--tier', default='elite', choices=TIERS)
    p.add_argument('--athletes', type=int, default=20)

    p = sub.add_parser('add-competition', help='Create a competition')
    p.add_argument('name')
    p.add_argument('--date', default=None, help='YYYY-MM-DD (default: today)')
    p.add_argument('--location', default='')
    p.add_argument('--notes', default='')

    p = sub.add_parser('score', help='Enter a new scoresheet')
    p.add_argument('--team', default=None, help='Team id')
    p.add_argument('--competition', default=None, help='Competition id')
    p.add_argument('--round', default=ROUND_TYPES[0],
                   help=f'Round label (usually one of: {", ".join(ROUND_TYPES)})')
    p.add_argument('--set', nargs='*', metavar='FIELD=VALUE',
                   help='Score field values; clamped to the rule table')
    p.add_argument('--deduct', nargs='*', metavar='KIND=COUNT',
                   help='Deduction counts, e.g. athlete_fall=2')

    p = sub.add_parser('show', help='Print totals for a scoresheet')
    p.add_argument('id')

    p = sub.add_parser('export', help='Print the export JSON for a scoresheet')
    p.add_argument('id')
    p.add_argument('--output', default=None, help='Write to this file instead of stdout')

    p = sub.add_parser('pdf', help='Render a scoresheet to PDF')
    p.add_argument('id')
    p.add_argument('--output', required=True)

    p = sub.add_parser('results', help='Standings CSV for a competition')
    p.add_argument('competition')
    p.add_argument('--output', required=True)

    p = sub.add_parser('sync', help='Upload pending records')
    p.add_argument('--outbox', default=config.outbox_dir,
                   help=f'Write payloads to this directory (default: {config.outbox_dir})')
    p.add_argument('--dry-run', action='store_true',
                   help='Only log what would be uploaded')
    p.add_argument('--retry-failed', action='store_true',
                   help='Re-queue previously failed records first')

    args = parser.parse_args()
    setup_logging(args.verbose)

    with ScoreRepository(args.db) as repo:
        if args.command == 'add-gym':
            gym = repo.save_gym(Gym(name=args.name, location=args.location))
            print(f'Created gym {gym.id}')

        elif args.command == 'add-team':
            gym = _require(repo.get_gym(args.gym), 'gym', args.gym) if args.gym else None
            team = repo.save_team(Team(name=args.name, gym=gym, level=args.level,
                                       age_division=args.division, tier=args.tier,
                                       athlete_count=args.athletes))
            print(f'Created team {team.id}')

        elif args.command == 'add-competition':
            date = (datetime.datetime.strptime(args.date, '%Y-%m-%d')
                    if args.date else datetime.datetime.now())
            competition = repo.save_competition(Competition(
                name=args.name, date=date, location=args.location, notes=args.notes))
            print(f'Created competition {competition.id}')

        elif args.command == 'score':
            entry = ScoreEntry(round=args.round)
            if args.team:
                entry.team = _require(repo.get_team(args.team), 'team', args.team)
            if args.competition:
                entry.competition = _require(repo.get_competition(args.competition),
                                             'competition', args.competition)
            try:
                for field, value in _parse_pairs(args.set, float).items():
                    stored = apply_score(entry, field, value)
                    if stored != value:
                        print(f'  {field}: {value} clamped to {stored}')
                for kind, count in _parse_pairs(args.deduct, int).items():
                    set_deduction(entry, kind, count)
            except (KeyError, ValueError) as e:
                print(f'Invalid input: {e}')
                sys.exit(1)
            try:
                repo.save_score_entry(entry)
            except ScoreRangeError as e:
                print(f'Scoresheet rejected: {e}')
                sys.exit(1)
            except sqlite3.Error as e:
                print(f'Could not save scoresheet: {e}')
                sys.exit(1)
            print_summary(entry)

        elif args.command == 'show':
            print_summary(_require(repo.get_score_entry(args.id), 'scoresheet', args.id))

        elif args.command == 'export':
            entry = _require(repo.get_score_entry(args.id), 'scoresheet', args.id)
            text = export_json(entry)
            if args.output:
                with open(args.output, 'w') as f:
                    f.write(text)
                print(f'Generated {args.output}')
            else:
                print(text)

        elif args.command == 'pdf':
            entry = _require(repo.get_score_entry(args.id), 'scoresheet', args.id)
            generate_scoresheet_pdf(entry, args.output)
            print(f'Generated {args.output}')

        elif args.command == 'results':
            _require(repo.get_competition(args.competition), 'competition', args.competition)
            entries = repo.list_score_entries(competition_id=args.competition)
            generate_results_csv(entries, args.output)
            print(f'Generated {args.output} ({len(entries)} scoresheets)')

        elif args.command == 'sync':
            uploader = DryRunUploader() if args.dry_run else OutboxUploader(args.outbox)
            manager = SyncManager(repo, uploader)
            if args.retry_failed:
                print(f'Re-queued {manager.retry_failed()} failed records')
            report = manager.sync_all()
            print(f'Synced {report.total_synced} records, {report.total_failed} failed')
            if report.total_failed:
                sys.exit(1)


if __name__ == '__main__':
    main()
