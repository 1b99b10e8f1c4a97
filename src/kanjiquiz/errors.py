class QuizError(Exception):
    """Base class for quiz engine errors."""


class NotFound(QuizError):
    """A set, session or order that the caller required does not exist."""


class StaleOrder(QuizError):
    """A saved question order no longer matches the items of its set."""


class UngradeableItem(QuizError):
    """An item lacks the attributes needed to build any question."""


class PersistenceFailure(QuizError):
    """Reading from or writing to the session database failed."""


class InvalidTransition(QuizError):
    """A controller operation was called in a state that does not allow it."""
