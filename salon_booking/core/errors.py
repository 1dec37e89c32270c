"""Erros de negócio do agendamento.

Cada erro tem um ``kind`` estável (usado pelo cliente para decidir entre
"escolher outro horário", "corrigir o input" ou "falar com o salão") e o
status HTTP correspondente.
"""

from typing import Any, Dict, Optional


class BookingError(Exception):
    kind = "booking_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message, "details": self.details}


class InvalidInput(BookingError):
    kind = "invalid_input"
    status_code = 400


class InvalidRange(InvalidInput):
    kind = "invalid_range"


class InvalidFormat(InvalidInput):
    kind = "invalid_format"


class RangeTooLarge(BookingError):
    kind = "range_too_large"
    status_code = 400


class NotFound(BookingError):
    kind = "not_found"
    status_code = 404


class Conflict(BookingError):
    kind = "conflict"
    status_code = 409
