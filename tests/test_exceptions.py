import logging
from unittest.mock import MagicMock
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError, OperationalError
from main import app
from services.exceptions import (
    ConflictError,
    ErrorKind,
    InternalError,
    NotFoundError,
    persistence_errors
)


def test_integrity_error_becomes_conflict():
    db = MagicMock()

    with pytest.raises(ConflictError) as excinfo:
        with persistence_errors(db, "Erro ao criar evento"):
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    db.rollback.assert_called_once()
    assert excinfo.value.status_code == 409
    assert excinfo.value.kind == ErrorKind.CONFLICT
    assert excinfo.value.message.startswith("Erro ao criar evento")


def test_other_database_errors_become_internal():
    db = MagicMock()

    with pytest.raises(InternalError) as excinfo:
        with persistence_errors(db, "Erro ao buscar eventos"):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

    db.rollback.assert_called_once()
    assert excinfo.value.status_code == 500


def test_service_errors_pass_through_after_rollback():
    db = MagicMock()
    error = NotFoundError("Evento não encontrado")

    with pytest.raises(NotFoundError) as excinfo:
        with persistence_errors(db, "Erro ao atualizar evento"):
            raise error

    assert excinfo.value is error
    db.rollback.assert_called_once()


def test_success_does_not_roll_back():
    db = MagicMock()

    with persistence_errors(db, "Erro ao criar evento"):
        pass

    db.rollback.assert_not_called()


def test_unhandled_errors_use_the_envelope(client, monkeypatch):
    from services import calendar_service

    def explode(db):
        raise RuntimeError("falha inesperada")

    monkeypatch.setattr(calendar_service, "list_events", explode)
    error_client = TestClient(app, raise_server_exceptions=False)

    response = error_client.get("/api/calendar")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "INTERNAL"
    assert body["method"] == "GET"
    assert body["message"] == "Erro interno do servidor"


def test_unhandled_errors_are_logged_by_the_request_log(client, monkeypatch, caplog):
    from services import calendar_service

    def explode(db):
        raise RuntimeError("falha inesperada")

    monkeypatch.setattr(calendar_service, "list_events", explode)
    error_client = TestClient(app, raise_server_exceptions=False)

    with caplog.at_level(logging.INFO, logger="innerview"):
        response = error_client.get("/api/calendar")

    assert response.status_code == 500
    request_logs = [
        record for record in caplog.records
        if record.name == "innerview" and record.getMessage().startswith("GET /api/calendar 500")
    ]
    assert len(request_logs) == 1
    assert request_logs[0].levelno == logging.ERROR


def test_unknown_route_uses_the_envelope(client):
    response = client.get("/api/nao-existe")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["statusCode"] == 404
    assert body["error"] == "NOT_FOUND"
    assert body["path"] == "/api/nao-existe"
    assert body["method"] == "GET"
    assert "detail" not in body


def test_method_not_allowed_uses_the_envelope(client):
    response = client.put("/api/calendar", json={})

    assert response.status_code == 405
    body = response.json()
    assert body["error"] == "HTTP_ERROR"
    assert body["statusCode"] == 405
    assert body["method"] == "PUT"
    assert "GET" in response.headers["allow"]
