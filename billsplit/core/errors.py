"""Domain errors raised by bill services and translated to HTTP by the endpoints."""


class BillError(Exception):
    """Base class for bill domain errors."""
    pass


class UnauthenticatedError(BillError):
    """No acting user is established for an operation that needs one."""
    pass


class BillNotFoundError(BillError):
    def __init__(self, bill_id: str):
        super().__init__(f"Bill {bill_id} not found")
        self.bill_id = bill_id


class BillValidationError(BillError):
    """Bill payload is malformed (negative amounts, empty split, ...)."""
    pass


class ForbiddenError(BillError):
    """The acting user may not perform this operation on the bill."""
    pass


class InvalidTransitionError(BillError):
    """The participant is not in a state from which the transition applies."""
    pass
