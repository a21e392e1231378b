"""Push locally stored records to the remote store.

Pending records are uploaded parents-first (gyms, teams, competitions,
scoresheets) so remote foreign keys resolve. A failed upload marks that
record 'failed' and the run continues; retry_failed() re-queues them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from scorebin.adapters.base import BaseUploader, TABLES
from .export_formatter import competition_payload, gym_payload, team_payload, to_payload
from .models import SYNC_FAILED, SYNC_PENDING, SYNC_SYNCED
from .repository import ENTITY_TABLES, ScoreRepository

logger = logging.getLogger(__name__)

_PAYLOAD_BUILDERS = {
    'gym': gym_payload,
    'team': team_payload,
    'competition': competition_payload,
    'score_entry': to_payload,
}
SYNC_ORDER = ['gym', 'team', 'competition', 'score_entry']


@dataclass
class SyncReport:
    synced: dict = field(default_factory=dict)   # kind -> count
    failed: dict = field(default_factory=dict)   # kind -> [ids]

    @property
    def total_synced(self) -> int:
        return sum(self.synced.values())

    @property
    def total_failed(self) -> int:
        return sum(len(ids) for ids in self.failed.values())


def resolve_conflict(local, remote, local_ts: datetime, remote_ts: datetime):
    """Last write wins; ties keep the local copy."""
    return remote if remote_ts > local_ts else local


class SyncManager:
    """Uploads pending records through an uploader.

    Construct one per repository/uploader pair and pass it to whatever
    needs to trigger a sync.
    """

    def __init__(self, repository: ScoreRepository, uploader: BaseUploader,
                 is_online: bool = True):
        self.repository = repository
        self.uploader = uploader
        self.is_online = is_online
        self.is_syncing = False
        self.last_sync_at: datetime | None = None
        self.pending_changes = 0

    def sync_all(self) -> SyncReport:
        report = SyncReport()
        if not self.is_online or self.is_syncing:
            logger.info('Sync skipped (online=%s, syncing=%s)', self.is_online, self.is_syncing)
            return report

        self.is_syncing = True
        try:
            for kind in SYNC_ORDER:
                self._sync_kind(kind, report)
            self.pending_changes = 0
        finally:
            self.is_syncing = False
            self.last_sync_at = datetime.now()

        logger.info('Sync finished: %d synced, %d failed',
                    report.total_synced, report.total_failed)
        return report

    def _sync_kind(self, kind: str, report: SyncReport):
        table = ENTITY_TABLES[kind]
        build = _PAYLOAD_BUILDERS[kind]
        pending = self.repository.list_by_sync_status(kind, SYNC_PENDING)
        synced = 0
        for entity in pending:
            try:
                self.uploader.upload(table, entity.id, build(entity))
            except Exception as e:
                logger.warning('Upload of %s %s failed: %s', kind, entity.id, e)
                self.repository.set_sync_status(kind, entity.id, SYNC_FAILED)
                report.failed.setdefault(kind, []).append(entity.id)
                continue
            self.repository.set_sync_status(kind, entity.id, SYNC_SYNCED)
            synced += 1
        report.synced[kind] = synced

    def mark_for_sync(self, kind: str, entity_id: str):
        self.repository.set_sync_status(kind, entity_id, SYNC_PENDING)
        self.pending_changes += 1

    def retry_failed(self) -> int:
        """Move every failed record back to pending. Returns how many moved."""
        count = 0
        for kind in SYNC_ORDER:
            for entity in self.repository.list_by_sync_status(kind, SYNC_FAILED):
                self.mark_for_sync(kind, entity.id)
                count += 1
        return count

    def pull_remote(self) -> dict[str, int]:
        """Fetch every remote table; returns record counts per table."""
        if not self.is_online:
            return {}
        counts = {}
        for table in TABLES:
            try:
                counts[table] = len(self.uploader.fetch(table))
            except Exception as e:
                logger.warning('Fetching %s failed: %s', table, e)
        logger.info('Pulled %s', ', '.join(f'{n} {t}' for t, n in counts.items()))
        return counts
