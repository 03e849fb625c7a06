"""Domain errors raised by the services and turned into JSON by app.py."""


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(DomainError):
    status_code = 400


class Unauthenticated(DomainError):
    status_code = 401


class Forbidden(DomainError):
    status_code = 403


class NotFound(DomainError):
    status_code = 404


class SlotNotFound(NotFound):
    def __init__(self, message: str = "Slot not found"):
        super().__init__(message)


class BarberNotFound(NotFound):
    def __init__(self, message: str = "Barber not found"):
        super().__init__(message)


class ReservationNotFound(NotFound):
    def __init__(self, message: str = "Reservation not found"):
        super().__init__(message)


class Conflict(DomainError):
    status_code = 409


class CapacityExhausted(Conflict):
    def __init__(self, message: str = "No capacity left for this slot"):
        super().__init__(message)


class InternalFailure(DomainError):
    status_code = 500
