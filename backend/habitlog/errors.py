class GatewayError(Exception):
    """A persistence call failed. `message` is safe to show to the user."""

    def __init__(self, message: str = "Failed to reach the store"):
        super().__init__(message)
        self.message = message


class NotAuthenticated(GatewayError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class OwnerNotFound(GatewayError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class ConstraintViolation(GatewayError):
    pass


class TransientIO(GatewayError):
    pass


class UnknownEntity(KeyError):
    """No local entity with that id in the live session."""


class SessionInactive(RuntimeError):
    """No workout has been started or loaded for today."""


class MissingRecord(ConstraintViolation):
    """The referenced row does not exist or belongs to someone else."""
