"""SQLite store for gyms, teams, competitions and scoresheets.

Tables mirror the backend schema. Foreign keys cascade:
  gym -> teams, team -> scoresheets, competition -> scoresheets

Scoresheets are validated against the rule table before they are written.
Every save puts the record back in the pending sync state.
"""

import logging
import sqlite3
from datetime import datetime

from .export_formatter import score_entry_row
from .input_validator import validate_entry
from .models import Competition, Gym, ScoreEntry, Team, SYNC_PENDING, SYNC_STATUSES
from .scoring_rules import DEDUCTIONS, SCORE_FIELDS

logger = logging.getLogger(__name__)

ENTITY_TABLES = {
    'gym': 'gyms',
    'team': 'teams',
    'competition': 'competitions',
    'score_entry': 'scoresheets',
}

_SCORE_COLUMNS = ',\n'.join(f'    {name} REAL' for name in SCORE_FIELDS)
_COUNTER_COLUMNS = ',\n'.join(f'    {counter} INTEGER DEFAULT 0' for _, counter, _ in DEDUCTIONS)

_SCHEMA = f'''
CREATE TABLE IF NOT EXISTS gyms (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    location TEXT,
    created_at TEXT,
    sync_status TEXT DEFAULT 'pending'
);

CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    gym_id TEXT REFERENCES gyms(id) ON DELETE CASCADE,
    level TEXT NOT NULL,
    age_division TEXT NOT NULL,
    tier TEXT NOT NULL,
    athlete_count INTEGER NOT NULL,
    created_at TEXT,
    sync_status TEXT DEFAULT 'pending'
);

CREATE TABLE IF NOT EXISTS competitions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    date TEXT NOT NULL,
    location TEXT,
    notes TEXT,
    created_at TEXT,
    sync_status TEXT DEFAULT 'pending'
);

CREATE TABLE IF NOT EXISTS scoresheets (
    id TEXT PRIMARY KEY,
    team_id TEXT REFERENCES teams(id) ON DELETE CASCADE,
    competition_id TEXT REFERENCES competitions(id) ON DELETE CASCADE,
    round TEXT NOT NULL,
    created_at TEXT,
{_SCORE_COLUMNS},
{_COUNTER_COLUMNS},
    raw_score REAL,
    total_deductions REAL,
    final_score REAL,
    sync_status TEXT DEFAULT 'pending',
    remote_id TEXT
);

CREATE INDEX IF NOT EXISTS idx_scoresheets_team ON scoresheets(team_id);
CREATE INDEX IF NOT EXISTS idx_scoresheets_competition ON scoresheets(competition_id);
CREATE INDEX IF NOT EXISTS idx_teams_gym ON teams(gym_id);
'''


def _table_for(kind: str) -> str:
    try:
        return ENTITY_TABLES[kind]
    except KeyError:
        raise ValueError(f'Unknown entity kind: {kind!r}') from None


def _upsert_sql(table: str, columns: list[str]) -> str:
    placeholders = ', '.join('?' for _ in columns)
    updates = ', '.join(f'{c} = excluded.{c}' for c in columns if c != 'id')
    return (f'INSERT INTO {table} ({", ".join(columns)}) VALUES ({placeholders}) '
            f'ON CONFLICT(id) DO UPDATE SET {updates}')


class ScoreRepository:
    """Persistence for the scoring core.

    Usage:
        with ScoreRepository('scores.db') as repo:
            repo.save_score_entry(entry)
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None

    def open(self) -> 'ScoreRepository':
        if self.conn is None:
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute('PRAGMA foreign_keys = ON')
            self.conn.executescript(_SCHEMA)
        return self

    def close(self):
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _db(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError('Repository is not open')
        return self.conn

    def _write(self, table: str, row: dict, insert_only: bool = False):
        columns = list(row)
        if insert_only:
            sql = (f'INSERT INTO {table} ({", ".join(columns)}) '
                   f'VALUES ({", ".join("?" for _ in columns)}) ON CONFLICT(id) DO NOTHING')
        else:
            sql = _upsert_sql(table, columns)
        self._db().execute(sql, [row[c] for c in columns])

    # --- Gyms ---

    def _gym_row(self, gym: Gym) -> dict:
        return {
            'id': gym.id, 'name': gym.name, 'location': gym.location,
            'created_at': gym.created_at.isoformat(), 'sync_status': gym.sync_status,
        }

    def save_gym(self, gym: Gym) -> Gym:
        gym.sync_status = SYNC_PENDING
        with self._db():
            self._write('gyms', self._gym_row(gym))
        return gym

    def get_gym(self, gym_id: str) -> Gym | None:
        row = self._db().execute('SELECT * FROM gyms WHERE id = ?', (gym_id,)).fetchone()
        return self._gym_from_row(row) if row else None

    def list_gyms(self) -> list[Gym]:
        rows = self._db().execute('SELECT * FROM gyms ORDER BY name').fetchall()
        return [self._gym_from_row(r) for r in rows]

    def delete_gym(self, gym_id: str):
        with self._db():
            self._db().execute('DELETE FROM gyms WHERE id = ?', (gym_id,))

    @staticmethod
    def _gym_from_row(row) -> Gym:
        return Gym(
            id=row['id'], name=row['name'], location=row['location'] or '',
            created_at=datetime.fromisoformat(row['created_at']),
            sync_status=row['sync_status'],
        )

    # --- Teams ---

    def _team_row(self, team: Team) -> dict:
        return {
            'id': team.id, 'name': team.name,
            'gym_id': team.gym.id if team.gym else None,
            'level': team.level, 'age_division': team.age_division, 'tier': team.tier,
            'athlete_count': team.athlete_count,
            'created_at': team.created_at.isoformat(), 'sync_status': team.sync_status,
        }

    def save_team(self, team: Team) -> Team:
        team.sync_status = SYNC_PENDING
        with self._db():
            if team.gym:
                self._write('gyms', self._gym_row(team.gym), insert_only=True)
            self._write('teams', self._team_row(team))
        return team

    def get_team(self, team_id: str) -> Team | None:
        row = self._db().execute('SELECT * FROM teams WHERE id = ?', (team_id,)).fetchone()
        return self._team_from_row(row) if row else None

    def list_teams(self, gym_id: str | None = None) -> list[Team]:
        if gym_id is None:
            rows = self._db().execute('SELECT * FROM teams ORDER BY name').fetchall()
        else:
            rows = self._db().execute('SELECT * FROM teams WHERE gym_id = ? ORDER BY name',
                                      (gym_id,)).fetchall()
        return [self._team_from_row(r) for r in rows]

    def delete_team(self, team_id: str):
        with self._db():
            self._db().execute('DELETE FROM teams WHERE id = ?', (team_id,))

    def _team_from_row(self, row) -> Team:
        return Team(
            id=row['id'], name=row['name'],
            gym=self.get_gym(row['gym_id']) if row['gym_id'] else None,
            level=row['level'], age_division=row['age_division'], tier=row['tier'],
            athlete_count=row['athlete_count'],
            created_at=datetime.fromisoformat(row['created_at']),
            sync_status=row['sync_status'],
        )

    # --- Competitions ---

    def _competition_row(self, competition: Competition) -> dict:
        return {
            'id': competition.id, 'name': competition.name,
            'date': competition.date.isoformat(),
            'location': competition.location, 'notes': competition.notes,
            'created_at': competition.created_at.isoformat(),
            'sync_status': competition.sync_status,
        }

    def save_competition(self, competition: Competition) -> Competition:
        competition.sync_status = SYNC_PENDING
        with self._db():
            self._write('competitions', self._competition_row(competition))
        return competition

    def get_competition(self, competition_id: str) -> Competition | None:
        row = self._db().execute('SELECT * FROM competitions WHERE id = ?',
                                 (competition_id,)).fetchone()
        return self._competition_from_row(row) if row else None

    def list_competitions(self) -> list[Competition]:
        rows = self._db().execute('SELECT * FROM competitions ORDER BY date DESC').fetchall()
        return [self._competition_from_row(r) for r in rows]

    def delete_competition(self, competition_id: str):
        with self._db():
            self._db().execute('DELETE FROM competitions WHERE id = ?', (competition_id,))

    @staticmethod
    def _competition_from_row(row) -> Competition:
        return Competition(
            id=row['id'], name=row['name'],
            date=datetime.fromisoformat(row['date']),
            location=row['location'] or '', notes=row['notes'] or '',
            created_at=datetime.fromisoformat(row['created_at']),
            sync_status=row['sync_status'],
        )

    # --- Scoresheets ---

    def save_score_entry(self, entry: ScoreEntry) -> ScoreEntry:
        """Validate and write a scoresheet.

        Referenced team/competition rows are created if missing but never
        overwritten here. Raises ScoreRangeError without writing anything
        if the entry breaks the rule table.
        """
        validate_entry(entry)
        entry.sync_status = SYNC_PENDING
        try:
            with self._db():
                if entry.team:
                    if entry.team.gym:
                        self._write('gyms', self._gym_row(entry.team.gym), insert_only=True)
                    self._write('teams', self._team_row(entry.team), insert_only=True)
                if entry.competition:
                    self._write('competitions', self._competition_row(entry.competition),
                                insert_only=True)
                self._write('scoresheets', score_entry_row(entry))
        except sqlite3.Error as e:
            logger.error('Failed to save scoresheet %s: %s', entry.id, e)
            raise
        return entry

    def get_score_entry(self, entry_id: str) -> ScoreEntry | None:
        row = self._db().execute('SELECT * FROM scoresheets WHERE id = ?',
                                 (entry_id,)).fetchone()
        return self._score_entry_from_row(row, {}, {}) if row else None

    def list_score_entries(self, team_id: str | None = None,
                           competition_id: str | None = None) -> list[ScoreEntry]:
        """Scoresheets, oldest first, optionally filtered by team and/or competition."""
        clauses, params = [], []
        if team_id is not None:
            clauses.append('team_id = ?')
            params.append(team_id)
        if competition_id is not None:
            clauses.append('competition_id = ?')
            params.append(competition_id)
        where = f'WHERE {" AND ".join(clauses)}' if clauses else ''
        rows = self._db().execute(f'SELECT * FROM scoresheets {where} ORDER BY created_at',
                                  params).fetchall()
        teams, competitions = {}, {}
        return [self._score_entry_from_row(r, teams, competitions) for r in rows]

    def delete_score_entry(self, entry_id: str):
        with self._db():
            self._db().execute('DELETE FROM scoresheets WHERE id = ?', (entry_id,))

    def _score_entry_from_row(self, row, teams: dict, competitions: dict) -> ScoreEntry:
        team_id = row['team_id']
        if team_id and team_id not in teams:
            teams[team_id] = self.get_team(team_id)
        competition_id = row['competition_id']
        if competition_id and competition_id not in competitions:
            competitions[competition_id] = self.get_competition(competition_id)

        values = {name: row[name] for name in SCORE_FIELDS}
        values.update({counter: row[counter] for _, counter, _ in DEDUCTIONS})
        return ScoreEntry(
            id=row['id'],
            team=teams.get(team_id) if team_id else None,
            competition=competitions.get(competition_id) if competition_id else None,
            round=row['round'],
            created_at=datetime.fromisoformat(row['created_at']),
            sync_status=row['sync_status'],
            remote_id=row['remote_id'],
            **values,
        )

    # --- Sync status ---

    def list_by_sync_status(self, kind: str, status: str) -> list:
        table = _table_for(kind)
        rows = self._db().execute(f'SELECT id FROM {table} WHERE sync_status = ? '
                                  f'ORDER BY created_at', (status,)).fetchall()
        getter = {
            'gym': self.get_gym,
            'team': self.get_team,
            'competition': self.get_competition,
            'score_entry': self.get_score_entry,
        }[kind]
        return [getter(r['id']) for r in rows]

    def set_sync_status(self, kind: str, entity_id: str, status: str):
        if status not in SYNC_STATUSES:
            raise ValueError(f'Unknown sync status: {status!r}')
        table = _table_for(kind)
        with self._db():
            self._db().execute(f'UPDATE {table} SET sync_status = ? WHERE id = ?',
                               (status, entity_id))
