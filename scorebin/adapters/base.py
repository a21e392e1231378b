"""Abstract base uploader for pushing records to the remote store."""

from abc import ABC, abstractmethod


TABLES = ['gyms', 'teams', 'competitions', 'scoresheets']


class BaseUploader(ABC):
    @abstractmethod
    def upload(self, table: str, record_id: str, payload: dict) -> None:
        """Persist one record remotely.

        table is one of TABLES. Any exception means the upload failed and
        the record stays unsynced.
        """
        pass

    @abstractmethod
    def fetch(self, table: str) -> list[dict]:
        """Return every record the remote store holds for a table."""
        pass
