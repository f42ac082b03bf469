from __future__ import annotations


class GenerationFailure(Exception):
    """The question provider raised or returned no questions."""


class CorruptPersistedState(Exception):
    """A stored session snapshot could not be parsed."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason
