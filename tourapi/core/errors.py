# tourapi/core/errors.py
"""
Errores de dominio. Los servicios los lanzan; main.py los traduce a
respuestas JSON con la forma {"error": <detail>}.
"""
from __future__ import annotations

TOUR_ENDED_MESSAGE = "This tour has ended and is now read-only"


class DomainError(Exception):
    status_code: int = 400
    detail: str = "Bad request"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class BadRequest(DomainError):
    status_code = 400


class NotFound(DomainError):
    status_code = 404
    detail = "Not found"


class SurveyNotFound(NotFound):
    detail = "Survey not found"


class TourEnded(DomainError):
    # Los clientes buscan este texto literal; no cambiarlo.
    status_code = 403
    detail = TOUR_ENDED_MESSAGE


class InvalidToken(DomainError):
    status_code = 400
    detail = "Invalid or expired public survey token"


class InvalidEmail(DomainError):
    status_code = 400
    detail = "Invalid email format"


class InvalidAnswer(DomainError):
    status_code = 400
    detail = "Invalid answer"


class InvalidTransition(DomainError):
    status_code = 409
    detail = "Invalid status transition"


class DuplicateResponse(DomainError):
    """Carrera en el índice único (survey_id, user_id). Nunca llega al cliente."""
    status_code = 409
    detail = "Duplicate survey response"
