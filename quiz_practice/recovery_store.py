"""One resumable practice-session snapshot per subject."""
from __future__ import annotations

import json
import logging

from quiz_practice.errors import CorruptPersistedState
from quiz_practice.models import PersistedSession, SessionMode
from quiz_practice.storage import Storage, progress_key

log = logging.getLogger("quiz_practice.recovery")


class SessionRecoveryStore:
    def __init__(self, storage: Storage):
        self.storage = storage

    def has_saved(self, subject_id: str) -> bool:
        return self.storage.get(progress_key(subject_id)) is not None

    def save(self, snapshot: PersistedSession) -> None:
        if snapshot.mode is not SessionMode.PRACTICE:
            raise ValueError("only practice sessions can be saved")
        self.storage.set(progress_key(snapshot.subject), json.dumps(snapshot.to_dict()))
        log.info("Saved %s session at question %d/%d", snapshot.subject,
                 snapshot.state.current_index + 1, len(snapshot.state.questions))

    def load(self, subject_id: str) -> PersistedSession | None:
        """Return the saved snapshot, or None if there is none.

        Raises CorruptPersistedState when the blob is not a well-formed
        practice snapshot. The blob itself is left in storage.
        """
        key = progress_key(subject_id)
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            snapshot = PersistedSession.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("Failed to load session %s: %s", key, e)
            raise CorruptPersistedState(key, str(e)) from e
        if snapshot.mode is not SessionMode.PRACTICE:
            raise CorruptPersistedState(key, f"unexpected {snapshot.mode.value} snapshot")
        if not snapshot.state.questions:
            raise CorruptPersistedState(key, "snapshot has no questions")
        return snapshot

    def clear(self, subject_id: str) -> None:
        self.storage.delete(progress_key(subject_id))
