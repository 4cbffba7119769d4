"""Engine error taxonomy. All of these are recoverable."""


class GameError(Exception):
    """Base class for round engine errors."""


class ExhaustedCatalog(GameError):
    def __init__(self, difficulty: int):
        super().__init__(f'No words available for difficulty {difficulty}, try another difficulty')
        self.difficulty = difficulty


class InvalidTransition(GameError):
    """A trigger arrived for a phase that cannot accept it."""

    def __init__(self, phase, trigger):
        super().__init__(f'Cannot apply {trigger} while in {phase}')
        self.phase = phase
        self.trigger = trigger


class NoActiveRound(GameError):
    def __init__(self, operation: str):
        super().__init__(f'No active round for {operation}')
        self.operation = operation


class InvalidStroke(GameError):
    """A stroke payload that cannot be drawn. Nothing is stored."""

    def __init__(self, reason: str):
        super().__init__(f'Invalid stroke: {reason}')
        self.reason = reason
