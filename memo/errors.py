"""Exception types shared across Memo.

Input errors subclass ValueError so callers can tell a bad request apart from
a runtime failure (persistence, transport).
"""


class MemoError(Exception):
    """Base class for all Memo errors."""


class InvalidInputError(MemoError, ValueError):
    """Input rejected before any scheduling or storage happened."""


class InvalidRatingError(InvalidInputError):
    """Rating is not one of Again, Hard, Good or Easy."""


class InvalidStateError(InvalidInputError):
    """State token is not a known lifecycle phase."""


class InvalidTimestampError(InvalidInputError):
    """Timestamp is malformed or lacks a timezone."""


class InvalidMemoryStateError(InvalidInputError):
    """Memory state violates one of its invariants."""


class CardNotFoundError(MemoError, LookupError):
    """No card with the requested ID."""


class DeckNotFoundError(MemoError, LookupError):
    """No deck with the requested ID."""


class PersistenceError(MemoError):
    """Writing the updated memory state failed."""


class ReviewSubmitError(MemoError):
    """A study-session review could not be saved; the card stays at the head."""


class SubmitInFlightError(MemoError):
    """Another review submission for this session has not finished yet."""


class SessionFinishedError(MemoError):
    """The study session has no cards left to rate."""
