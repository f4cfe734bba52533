from .actions import ActionError


class InvalidPositionError(IndexError):
    """Raised when a position does not address an existing group and member."""

    def __init__(self, message: str = "Invalid position"):
        super().__init__(message)
        self.error = ActionError.INVALID_POSITION


class GeneratorConfigError(ValueError):
    """Raised when a swap generator is built over fewer than two non-empty groups."""

    pass
