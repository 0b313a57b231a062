"""Domain errors raised by the gamification pipeline."""


class GamificationError(Exception):
    pass


class UnknownEventError(GamificationError):
    def __init__(self, event_type):
        self.event_type = event_type
        super().__init__(f"Unknown gamification event: {event_type!r}")


class GamificationPersistenceError(GamificationError):
    """
    The user's record could not be written.
    The computed (unsaved) result is kept on `result` so callers can still report it.
    """

    def __init__(self, message, result=None):
        super().__init__(message)
        self.result = result
