"""Exceptions raised by the scheduler, the bracket engine and the app layer."""


class TriviaArenaError(Exception):
    """Base class for caller errors. None of these are worth retrying."""


class InvalidQualityScore(TriviaArenaError, ValueError):
    def __init__(self, quality):
        super().__init__(f"Quality must be an integer from 0 to 5, got {quality!r}")
        self.quality = quality


class InsufficientParticipants(TriviaArenaError):
    def __init__(self, count: int):
        super().__init__(f"Need at least 2 participants, got {count}")
        self.count = count


class BracketAlreadyGenerated(TriviaArenaError):
    pass


class MatchNotFound(TriviaArenaError):
    pass


class MatchNotReady(TriviaArenaError):
    pass


class BracketStateError(TriviaArenaError):
    """The stored bracket contradicts its own structure."""


class NotFound(TriviaArenaError):
    pass


class RegistrationClosed(TriviaArenaError):
    pass


class TournamentFull(TriviaArenaError):
    pass


class AlreadyJoined(TriviaArenaError):
    pass


class InvalidFlashcard(TriviaArenaError, ValueError):
    pass


class InvalidTournament(TriviaArenaError, ValueError):
    pass
