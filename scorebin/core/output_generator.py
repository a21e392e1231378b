"""Results CSV for a set of scoresheets (usually one competition)."""

import csv

from .aggregator import compute_totals, round2
from .insights import rank_entries
from .models import ScoreEntry

FIELDNAMES = ['place', 'team', 'program', 'level', 'round',
              'raw score', 'deductions', 'final score']


def generate_results_csv(entries: list[ScoreEntry], output_path: str):
    """Write standings sorted by final score, highest first.

    Tied final scores share a place; the next place skips accordingly.
    """
    rows = []
    for standing in rank_entries(entries):
        e = standing.entry
        totals = compute_totals(e)
        team = e.team
        rows.append({
            'place': standing.place,
            'team': team.name if team else '',
            'program': team.gym.name if team and team.gym else '',
            'level': team.level if team else '',
            'round': e.round,
            'raw score': f'{round2(totals.raw_score):.2f}',
            'deductions': f'{round2(totals.deductions):.2f}',
            'final score': f'{standing.final_score:.2f}',
        })

    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
