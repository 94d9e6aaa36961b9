import json

import pytest
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from recovery_core.core.logging import configure_logging
from recovery_core.core.settings import Settings, get_settings


def test_settings_defaults():
    settings = get_settings()
    assert settings.roster_document_key_template.format(owner_id="abc") == "recovery_circle:abc"
    assert settings.circle_name_min_length == 2
    assert settings.document_store_timeout_seconds > 0


def test_key_template_requires_owner_placeholder():
    with pytest.raises(PydanticValidationError):
        Settings(roster_document_key_template="recovery_circle")


def test_name_bounds_must_be_ordered():
    with pytest.raises(PydanticValidationError):
        Settings(circle_name_min_length=10, circle_name_max_length=5)


def test_structured_logs_are_json(capsys):
    configure_logging(service_name="recovery-core-test", environment="development", version="9.9.9")
    try:
        logger.warning("Circle roster write conflict", owner_id="owner-1", action="add")
        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        payload = json.loads(lines[-1])
    finally:
        logger.remove()

    assert payload["message"] == "Circle roster write conflict"
    assert payload["level"] == "warning"
    assert payload["service"] == "recovery-core-test"
    assert payload["version"] == "9.9.9"
    assert payload["owner_id"] == "owner-1"
    assert payload["action"] == "add"
    assert "trace_id" not in payload
