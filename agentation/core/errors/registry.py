"""
Error registry: the table of AGT-* codes in registry.yaml.

Each entry fixes the HTTP status, log severity and caller-safe message for
one code. The file is validated as a whole on load; a bad entry fails
startup rather than surfacing later as a wrong response.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from agentation.core.errors import CODE_PATTERN

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "registry.yaml")

VALID_DOMAINS = {"API", "SES", "ANN", "TOOL", "SYS"}
VALID_SEVERITIES = {"DEBUG", "INFO", "WARN", "ERROR", "CRITICAL"}
REQUIRED_FIELDS = {"code", "domain", "title", "severity", "retryable", "user_action_required", "http_status", "safe_message"}


class ErrorEntry(BaseModel):
    """One registered error code."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    code: str
    domain: str
    title: str
    severity: str
    retryable: bool
    user_action_required: bool
    http_status: int = Field(..., ge=400, le=599)
    safe_message: str = Field(..., min_length=1)
    remediation: List[str] = Field(default_factory=list)

    @field_validator("code")
    @classmethod
    def _code_format(cls, v: str) -> str:
        if not CODE_PATTERN.match(v):
            raise ValueError(f"Invalid code format: {v!r}")
        return v

    @field_validator("severity")
    @classmethod
    def _known_severity(cls, v: str) -> str:
        if v not in VALID_SEVERITIES:
            raise ValueError(f"unknown severity {v!r}")
        return v

    @field_validator("remediation", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return v or []

    @model_validator(mode="after")
    def _domain_matches_code(self) -> "ErrorEntry":
        # AGT-SES-001 belongs to SES
        prefix = self.code.split("-")[1]
        if self.domain != prefix:
            raise ValueError(f"domain {self.domain!r} doesn't match code prefix {prefix!r}")
        if self.domain not in VALID_DOMAINS:
            raise ValueError(f"unknown domain {self.domain!r}")
        return self


class RegistryValidationError(Exception):
    """Raised when registry.yaml has structural errors."""


def _parse_entry(idx: int, raw: Any) -> ErrorEntry:
    if not isinstance(raw, dict):
        raise RegistryValidationError(f"Entry {idx}: expected a mapping, got {type(raw).__name__}")

    label = f"Entry {idx} ({raw.get('code', '?')})"
    missing = REQUIRED_FIELDS - set(raw)
    if missing:
        raise RegistryValidationError(f"{label}: missing fields {sorted(missing)}")

    try:
        return ErrorEntry.model_validate(raw)
    except PydanticValidationError as e:
        reasons = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        raise RegistryValidationError(f"{label}: {reasons}") from e


class ErrorRegistry:
    """Code to ErrorEntry lookup, loaded from YAML on first use."""

    def __init__(self) -> None:
        self._entries: Dict[str, ErrorEntry] = {}
        self._loaded = False
        self.schema_version: int = 0

    def load(self, path: str | None = None) -> None:
        with open(path or DEFAULT_PATH, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        raw_entries = data.get("errors", [])
        if not isinstance(raw_entries, list):
            raise RegistryValidationError("'errors' must be a list")

        entries: Dict[str, ErrorEntry] = {}
        for idx, raw in enumerate(raw_entries):
            entry = _parse_entry(idx, raw)
            if entry.code in entries:
                raise RegistryValidationError(f"Duplicate code: {entry.code}")
            entries[entry.code] = entry

        self.schema_version = data.get("schema_version", 0)
        self._entries = entries
        self._loaded = True
        logger.info("error_registry_loaded", extra={"count": len(entries), "schema_version": self.schema_version})

    def get(self, code: str) -> ErrorEntry | None:
        if not self._loaded:
            self.load()
        return self._entries.get(code)

    def all_codes(self) -> List[str]:
        if not self._loaded:
            self.load()
        return list(self._entries)


# Loaded by the app lifespan, or lazily on first lookup
error_registry = ErrorRegistry()
