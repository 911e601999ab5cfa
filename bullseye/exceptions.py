class ScoringError(Exception):
    pass


class CapacityExceeded(ScoringError):
    """Shot appended to an end that already holds arrows_per_end shots."""


class EndNotComplete(ScoringError):
    """Forward advance requested while the current end is still open."""


class IndexOutOfRange(ScoringError, IndexError):
    pass


class PersistenceCorrupt(ScoringError, ValueError):
    """Stored snapshot could not be parsed or failed validation."""
