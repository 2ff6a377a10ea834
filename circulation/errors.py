from __future__ import annotations


class CirculationError(Exception):
    """
    Base de los errores de dominio. `code` viaja en la respuesta JSON como `error`.
    """

    status_code = 400
    code = "circulation_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class NotFound(CirculationError):
    status_code = 404
    code = "not_found"


class Unavailable(CirculationError):
    status_code = 409
    code = "unavailable"


class Conflict(CirculationError):
    status_code = 409
    code = "conflict"


class InvalidState(CirculationError):
    status_code = 400
    code = "invalid_state"
