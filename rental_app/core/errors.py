"""Failure kinds raised by the services.

Every operation either returns its result or raises exactly one of these.
The boundary layer maps ``kind`` to a status code; services only attach a
short diagnostic ``detail``.
"""


class DomainError(Exception):
    kind = "DomainError"
    status_code = 500

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.kind
        super().__init__(self.detail)


class NotFound(DomainError):
    kind = "NotFound"
    status_code = 404


class NotAuthorized(DomainError):
    kind = "NotAuthorized"
    status_code = 403


class InvalidCredentials(NotAuthorized):
    status_code = 401


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = 409


class PropertyUnavailable(InvalidTransition):
    pass


class AlreadyExists(DomainError):
    kind = "AlreadyExists"
    status_code = 409


class InvalidInput(DomainError):
    kind = "InvalidInput"
    status_code = 400


class InvalidStatus(InvalidInput):
    pass


class Conflict(DomainError):
    kind = "Conflict"
    status_code = 409


class HasActiveAgreements(Conflict):
    pass


class HasActiveRental(Conflict):
    pass
