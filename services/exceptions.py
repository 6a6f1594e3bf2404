import logging
from contextlib import contextmanager
from enum import Enum
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"
    HTTP = "HTTP_ERROR"


class ServiceError(Exception):
    """Erro de domínio com tipo e status HTTP conhecidos."""

    kind = ErrorKind.INTERNAL
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class DomainValidationError(ServiceError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class InternalError(ServiceError):
    kind = ErrorKind.INTERNAL
    status_code = 500


@contextmanager
def persistence_errors(db: Session, operacao: str):
    """
    Desfaz a transação e converte falhas do banco em erros tipados.

    Erros de domínio levantados dentro do bloco também disparam o rollback,
    mas são repassados sem alteração.
    """
    try:
        yield
    except ServiceError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning("%s: violação de integridade (%s)", operacao, e.orig)
        raise ConflictError(f"{operacao}: registro conflitante ou referência inválida") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s: falha no banco de dados", operacao)
        raise InternalError(f"{operacao}: {e}") from e
