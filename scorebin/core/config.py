"""Application configuration."""

import os
from dataclasses import dataclass

PLACEHOLDER_URL = 'YOUR_SUPABASE_URL'
PLACEHOLDER_KEY = 'YOUR_SUPABASE_ANON_KEY'


@dataclass
class AppConfig:
    """Where scores are stored locally and where they sync to."""
    supabase_url: str = PLACEHOLDER_URL    # hosted backend project URL
    supabase_key: str = PLACEHOLDER_KEY    # anon/public API key
    db_path: str = 'scorebin.db'           # local SQLite store
    outbox_dir: str = 'outbox'             # OutboxUploader target

    @classmethod
    def from_env(cls, environ=None) -> 'AppConfig':
        env = os.environ if environ is None else environ
        return cls(
            supabase_url=env.get('SUPABASE_URL', PLACEHOLDER_URL),
            supabase_key=env.get('SUPABASE_ANON_KEY', PLACEHOLDER_KEY),
            db_path=env.get('SCOREBIN_DB', 'scorebin.db'),
            outbox_dir=env.get('SCOREBIN_OUTBOX', 'outbox'),
        )

    @property
    def is_remote_configured(self) -> bool:
        return (bool(self.supabase_url) and bool(self.supabase_key)
                and self.supabase_url != PLACEHOLDER_URL
                and self.supabase_key != PLACEHOLDER_KEY)
