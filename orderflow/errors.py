"""
Errors — tagged failure kinds for the order engine.

Every failure the engine surfaces is an OrderFlowError subclass. The kind
tag (not the presence of a driver error code) decides how a caller or
the HTTP layer treats it.

    ValidationError  — bad input or a business rule refused (400)
    NotFoundError    — unknown order, coupon, product or cart line (404)
    ServiceError     — illegal state change or unavailable collaborator
                       (409 / 503)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError


# ═══════════════════════════════════════════════════════════════════════════════
# Kinds
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorKind(Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SERVICE = "service"


# ═══════════════════════════════════════════════════════════════════════════════
# Error Classes
# ═══════════════════════════════════════════════════════════════════════════════


class OrderFlowError(Exception):
    """Base for every error the engine surfaces to callers."""

    kind: ClassVar[ErrorKind]
    default_status: ClassVar[int]
    default_message: ClassVar[str]
    default_action: ClassVar[str]

    def __init__(
        self,
        message: str | None = None,
        action: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.action = action or self.default_action
        self.status_code = status_code or self.default_status
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "action": self.action,
            "status_code": self.status_code,
        }


class ValidationError(OrderFlowError):
    kind = ErrorKind.VALIDATION
    default_status = 400
    default_message = "Erro de validação nos dados fornecidos."
    default_action = "Ajuste os dados enviados e tente novamente."


class NotFoundError(OrderFlowError):
    kind = ErrorKind.NOT_FOUND
    default_status = 404
    default_message = "Recurso não encontrado no sistema."
    default_action = "Verifique se o identificador informado está correto."


class ServiceError(OrderFlowError):
    kind = ErrorKind.SERVICE
    default_status = 409
    default_message = "A operação não pode ser concluída no estado atual."
    default_action = "Verifique o estado do recurso e tente novamente."


# ═══════════════════════════════════════════════════════════════════════════════
# Storage Translation
# ═══════════════════════════════════════════════════════════════════════════════


def translate_storage_error(exc: SQLAlchemyError) -> OrderFlowError:
    """
    Map a SQLAlchemy failure onto the domain taxonomy.

    Raw driver errors never leave the unit of work; callers only see
    ValidationError or ServiceError.
    """
    detail = str(getattr(exc, "orig", None) or exc).lower()

    if isinstance(exc, IntegrityError):
        if "not null" in detail:
            return ValidationError(
                "A operação falhou porque um campo obrigatório está nulo.",
            )
        if "unique" in detail or "duplicate" in detail:
            return ServiceError(
                "Já existe um registro com esse valor. O campo deve ser único.",
            )
        if "foreign key" in detail:
            return ServiceError(
                "A operação falhou pois referencia um registro que não existe.",
            )
        return ServiceError("A operação violou uma restrição do banco de dados.")

    if isinstance(exc, DataError):
        return ValidationError("O formato de um dos dados enviados é inválido.")

    return ServiceError(
        "Erro na conexão com o banco ou na consulta.",
        action="Tente novamente mais tarde.",
        status_code=503,
    )


__all__ = (
    "ErrorKind",
    "OrderFlowError",
    "ValidationError",
    "NotFoundError",
    "ServiceError",
    "translate_storage_error",
)
