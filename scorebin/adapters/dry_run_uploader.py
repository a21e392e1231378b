"""Uploader that only logs what it would send.

Stands in for the hosted backend until a client for it is configured.
"""

import json
import logging

from .base import BaseUploader

logger = logging.getLogger(__name__)


class DryRunUploader(BaseUploader):
    def __init__(self):
        self.uploaded: list[tuple[str, str]] = []

    def upload(self, table: str, record_id: str, payload: dict) -> None:
        logger.info('Would upload %s/%s: %s', table, record_id,
                    json.dumps(payload, sort_keys=True))
        self.uploaded.append((table, record_id))

    def fetch(self, table: str) -> list[dict]:
        return []
