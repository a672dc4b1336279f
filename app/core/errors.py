"""
Errores de dominio.

Cada tipo lleva un ``code`` estable y el ``status_code`` HTTP con el que se
publica, para que el front pueda ramificar por identidad del error y no
por el texto del mensaje.
"""


class DomainError(Exception):
    code = "error"
    status_code = 400
    default_message = "Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    code = "validation_error"
    status_code = 400
    default_message = "Invalid data"


class PastDateError(ValidationError):
    code = "past_date"
    default_message = "Cannot set match date in the past"


class InvalidIdError(ValidationError):
    code = "invalid_id"
    default_message = "Invalid match ID"


class NotFoundError(DomainError):
    code = "not_found"
    status_code = 404
    default_message = "Match not found"


class UnauthorizedError(DomainError):
    code = "unauthorized"
    status_code = 403
    default_message = "Only the creator can modify this match"


class MatchFullError(DomainError):
    code = "match_full"
    status_code = 409
    default_message = "Match is full"


class AlreadyJoinedError(DomainError):
    code = "already_joined"
    status_code = 409
    default_message = "Already joined this match"
