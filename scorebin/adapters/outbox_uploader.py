"""Uploader that writes each record to a local outbox directory.

Layout: {outbox_dir}/{table}/{record_id}.json

An upload to the same id overwrites the previous file. fetch() reads a
table back in filename order.
"""

import glob
import json
import os

from .base import BaseUploader, TABLES


class OutboxUploader(BaseUploader):
    def __init__(self, outbox_dir: str):
        self.outbox_dir = outbox_dir

    def _table_dir(self, table: str) -> str:
        if table not in TABLES:
            raise ValueError(f'Unknown table: {table!r}')
        return os.path.join(self.outbox_dir, table)

    def upload(self, table: str, record_id: str, payload: dict) -> None:
        table_dir = self._table_dir(table)
        os.makedirs(table_dir, exist_ok=True)
        path = os.path.join(table_dir, f'{record_id}.json')
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({'id': record_id, **payload}, f, indent=2)

    def fetch(self, table: str) -> list[dict]:
        records = []
        for fpath in sorted(glob.glob(os.path.join(self._table_dir(table), '*.json'))):
            with open(fpath, 'r', encoding='utf-8') as f:
                records.append(json.load(f))
        return records
