"""
Tests for the error code system: registry loading/validation, the error
classes, and the FastAPI handlers.
"""

import json
import os
import tempfile
from unittest.mock import MagicMock, patch

import pytest
import yaml
from starlette.exceptions import HTTPException as StarletteHTTPException

from agentation.core.errors import AgentationError, CODE_PATTERN, NotFoundError, ValidationError
from agentation.core.errors.middleware import agentation_error_handler, http_exception_handler
from agentation.core.errors.registry import ErrorRegistry, RegistryValidationError, VALID_DOMAINS


def _entry(**overrides):
    entry = {
        "code": "AGT-API-001",
        "domain": "API",
        "title": "test",
        "severity": "WARN",
        "retryable": False,
        "user_action_required": False,
        "http_status": 400,
        "safe_message": "test",
        "remediation": [],
    }
    entry.update(overrides)
    return entry


def _load(registry, entries):
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump({"schema_version": 1, "errors": entries}, f)
    try:
        registry.load(f.name)
    finally:
        os.unlink(f.name)


class TestErrorRegistryLoading:
    def test_load_real_registry(self):
        registry = ErrorRegistry()
        registry.load()
        assert registry.schema_version == 1
        assert {"AGT-API-404", "AGT-SES-001", "AGT-ANN-001", "AGT-SYS-001"} <= set(registry.all_codes())
        assert "AGT-API-405" not in registry.all_codes()

    def test_every_code_in_known_domain(self):
        registry = ErrorRegistry()
        registry.load()
        for code in registry.all_codes():
            assert CODE_PATTERN.match(code)
            assert code.split("-")[1] in VALID_DOMAINS

    def test_get_existing_code(self):
        registry = ErrorRegistry()
        entry = registry.get("AGT-SES-001")
        assert entry.http_status == 404
        assert entry.safe_message == "Session not found"

    def test_get_returns_none_for_missing(self):
        assert ErrorRegistry().get("AGT-ZZZ-999") is None

    def test_rejects_bad_code_format(self):
        with pytest.raises(RegistryValidationError, match="Invalid code format"):
            _load(ErrorRegistry(), [_entry(code="BAD-FORMAT")])

    def test_rejects_duplicate_codes(self):
        with pytest.raises(RegistryValidationError, match="Duplicate code"):
            _load(ErrorRegistry(), [_entry(), _entry()])

    def test_rejects_domain_mismatch(self):
        with pytest.raises(RegistryValidationError, match="doesn't match code prefix"):
            _load(ErrorRegistry(), [_entry(domain="SES")])

    def test_rejects_unknown_severity(self):
        with pytest.raises(RegistryValidationError, match="unknown severity"):
            _load(ErrorRegistry(), [_entry(severity="LOUD")])

    def test_rejects_missing_fields(self):
        entry = _entry()
        del entry["safe_message"]
        with pytest.raises(RegistryValidationError, match="missing fields"):
            _load(ErrorRegistry(), [entry])


class TestAgentationError:
    def test_valid_code(self):
        err = AgentationError("AGT-SYS-001", detail="socket closed")
        assert err.code == "AGT-SYS-001"
        assert err.detail == "socket closed"
        assert str(err) == "AGT-SYS-001: socket closed"

    def test_invalid_code_raises(self):
        with pytest.raises(ValueError, match="Invalid error code format"):
            AgentationError("BAD")

    def test_default_codes(self):
        assert ValidationError().code == "AGT-API-001"
        assert NotFoundError().kind == "not_found"

    def test_context_dict(self):
        err = NotFoundError("AGT-ANN-001", context={"annotation.id": "a1"})
        assert err.context == {"annotation.id": "a1"}


class TestErrorHandlers:
    @pytest.mark.asyncio
    async def test_known_code_uses_caller_message(self):
        exc = ValidationError("AGT-API-002", message="url is required", detail="internal detail")
        response = await agentation_error_handler(MagicMock(), exc)

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body == {"error": "url is required", "code": "AGT-API-002"}
        assert "internal detail" not in response.body.decode()

    @pytest.mark.asyncio
    async def test_falls_back_to_safe_message(self):
        response = await agentation_error_handler(MagicMock(), NotFoundError("AGT-SES-001"))
        assert response.status_code == 404
        assert json.loads(response.body)["error"] == "Session not found"

    @pytest.mark.asyncio
    async def test_server_errors_never_echo_message(self):
        exc = AgentationError("AGT-SYS-001", message="stack trace here")
        response = await agentation_error_handler(MagicMock(), exc)
        assert response.status_code == 500
        assert json.loads(response.body)["error"] == "Internal server error"

    @pytest.mark.asyncio
    async def test_unregistered_code_returns_500(self):
        registry = ErrorRegistry()
        _load(registry, [_entry()])
        with patch("agentation.core.errors.middleware.error_registry", registry):
            response = await agentation_error_handler(MagicMock(), NotFoundError("AGT-SES-001"))
        assert response.status_code == 500
        assert json.loads(response.body)["code"] == "AGT-SYS-001"

    @pytest.mark.asyncio
    async def test_routing_errors(self):
        response = await http_exception_handler(MagicMock(), StarletteHTTPException(status_code=404))
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Not found", "code": "AGT-API-404"}
