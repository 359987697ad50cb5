"""
Annotation Store: the authoritative record of sessions and annotations.

Both the HTTP adapter and the MCP tool adapter call into one instance of
this class. It is the single place where ids are issued, statuses are
stamped and threads are appended.

Contract:
- Lookups of absent entities return None (or an empty list); they never raise.
- Malformed input raises ValidationError and leaves state untouched.
- Every entity handed out is a deep copy; callers never hold live records.
- Every public operation runs under one lock, so a call is atomic with
  respect to calls from the other adapter.
"""

import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from agentation.core.errors import ValidationError
from agentation.core.payloads import to_validation_error
from agentation.models.annotations import (
    ANNOTATION_STATUSES,
    ROLES,
    SESSION_STATUSES,
    TERMINAL_STATUSES,
    Annotation,
    Session,
    SessionWithAnnotations,
    ThreadMessage,
    wire_keys,
)

logger = logging.getLogger(__name__)

# Assigned by the store on creation, whatever the caller sends
RESERVED_ON_CREATE = wire_keys(
    "id", "session_id", "status", "created_at", "updated_at",
    "resolved_at", "resolved_by", "thread",
)
# Never changed by a partial update (thread is append-only)
IMMUTABLE_ON_UPDATE = wire_keys("id", "session_id", "created_at", "updated_at", "thread")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _base36(n: int) -> str:
    digits = []
    while True:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
        if n == 0:
            return "".join(reversed(digits))


def _wire_keyed(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename snake_case field names to their camelCase aliases; leave extras alone."""
    return {
        to_camel(key) if key in Annotation.model_fields else key: value
        for key, value in data.items()
    }


class AnnotationStore:
    """In-memory store of sessions, annotations and threads for one process."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._annotations: Dict[str, Annotation] = {}
        self._issued_ids: Set[str] = set()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, url: str, project_id: Optional[str] = None) -> Session:
        """Create a new active session for the page at ``url``."""
        if not url:
            raise ValidationError("AGT-API-002", message="url is required")

        with self._lock:
            session = Session(
                id=self._new_id(),
                url=url,
                status="active",
                created_at=_utcnow(),
                project_id=project_id,
            )
            self._sessions[session.id] = session

        logger.info("session_created", extra={"session.id": session.id, "session.url": url})
        return session.model_copy(deep=True)

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session else None

    def get_session_with_annotations(self, session_id: str) -> Optional[SessionWithAnnotations]:
        """Get a session together with every annotation that references it."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return SessionWithAnnotations(
                **session.model_dump(),
                annotations=self._annotations_for(session_id),
            )

    def list_sessions(self) -> List[Session]:
        """All sessions, in creation order."""
        with self._lock:
            return [s.model_copy(deep=True) for s in self._sessions.values()]

    def update_session_status(self, session_id: str, status: str) -> Optional[Session]:
        if status not in SESSION_STATUSES:
            raise ValidationError(
                "AGT-API-003",
                message=f"unknown session status: {status}",
                context={"status": status},
            )

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.status = status
            session.updated_at = _utcnow()
            result = session.model_copy(deep=True)

        logger.info("session_status_updated", extra={"session.id": session_id, "session.status": status})
        return result

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def add_annotation(self, session_id: str, data: Mapping[str, Any]) -> Optional[Annotation]:
        """Add an annotation to an existing session.

        ``data`` carries comment/element/elementPath plus any context fields;
        reserved keys (id, status, timestamps, thread, ...) are ignored.
        Returns None if the session does not exist.
        """
        fields = {k: v for k, v in data.items() if k not in RESERVED_ON_CREATE}

        with self._lock:
            if session_id not in self._sessions:
                return None

            try:
                annotation = Annotation.model_validate({
                    **_wire_keyed(fields),
                    "id": self._new_id(),
                    "sessionId": session_id,
                    "status": "pending",
                    "createdAt": _utcnow(),
                })
            except PydanticValidationError as e:
                raise to_validation_error(e, context={"session.id": session_id})

            self._annotations[annotation.id] = annotation

        logger.info(
            "annotation_added",
            extra={"annotation.id": annotation.id, "session.id": session_id},
        )
        return annotation.model_copy(deep=True)

    def get_annotation(self, annotation_id: str) -> Optional[Annotation]:
        with self._lock:
            annotation = self._annotations.get(annotation_id)
            return annotation.model_copy(deep=True) if annotation else None

    def update_annotation_status(
        self,
        annotation_id: str,
        status: str,
        resolved_by: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Optional[Annotation]:
        """Set an annotation's status.

        Any known status may overwrite any other (last write wins). Moving to
        resolved/dismissed stamps resolvedAt and resolvedBy (default "agent").
        A ``note`` is appended to the thread in the same step, from
        ``resolved_by`` (default "agent").
        """
        self._check_status(status)
        self._check_role(resolved_by, "resolvedBy")

        with self._lock:
            annotation = self._annotations.get(annotation_id)
            if annotation is None:
                return None

            now = _utcnow()
            previous = annotation.status
            annotation.status = status
            annotation.updated_at = now
            if status in TERMINAL_STATUSES:
                annotation.resolved_at = now
                annotation.resolved_by = resolved_by or "agent"
            if note:
                self._append_message(annotation, resolved_by or "agent", note)
            result = annotation.model_copy(deep=True)

        logger.info(
            "annotation_status_updated",
            extra={
                "annotation.id": annotation_id,
                "annotation.status_from": previous,
                "annotation.status": status,
                "annotation.resolved_by": result.resolved_by,
            },
        )
        return result

    def update_annotation(
        self,
        annotation_id: str,
        fields: Mapping[str, Any],
        resolved_by: Optional[str] = None,
    ) -> Optional[Annotation]:
        """Merge a partial update into an annotation.

        id, sessionId, createdAt, updatedAt and thread are ignored. A status
        change to resolved/dismissed without an explicit resolvedAt is stamped
        like update_annotation_status, using ``resolved_by`` as the default role.
        If the merged record is invalid, nothing is changed.
        """
        changes = _wire_keyed({k: v for k, v in fields.items() if k not in IMMUTABLE_ON_UPDATE})
        if "status" in changes:
            self._check_status(changes["status"])
        self._check_role(resolved_by, "resolvedBy")

        with self._lock:
            current = self._annotations.get(annotation_id)
            if current is None:
                return None

            now = _utcnow()
            merged = current.to_wire()
            merged.update(changes)
            merged["updatedAt"] = now

            if changes.get("status") in TERMINAL_STATUSES and changes.get("resolvedAt") is None:
                merged["resolvedAt"] = now
                merged["resolvedBy"] = changes.get("resolvedBy") or resolved_by or "agent"

            try:
                updated = Annotation.model_validate(merged)
            except PydanticValidationError as e:
                raise to_validation_error(e, context={"annotation.id": annotation_id})

            self._annotations[annotation_id] = updated

        logger.info(
            "annotation_updated",
            extra={"annotation.id": annotation_id, "annotation.fields": sorted(changes)},
        )
        return updated.model_copy(deep=True)

    def add_thread_message(self, annotation_id: str, role: str, content: str) -> Optional[Annotation]:
        """Append a message to an annotation's thread."""
        self._check_role(role, "role")

        with self._lock:
            annotation = self._annotations.get(annotation_id)
            if annotation is None:
                return None

            message = self._append_message(annotation, role, content)
            result = annotation.model_copy(deep=True)

        logger.info(
            "thread_message_added",
            extra={"annotation.id": annotation_id, "message.id": message.id, "message.role": role},
        )
        return result

    def get_pending_annotations(self, session_id: str) -> List[Annotation]:
        """Annotations of the session still waiting for attention."""
        with self._lock:
            return [a for a in self._annotations_for(session_id) if a.status == "pending"]

    def get_session_annotations(self, session_id: str) -> List[Annotation]:
        with self._lock:
            return self._annotations_for(session_id)

    def clear(self) -> None:
        """Drop all sessions and annotations. Issued ids stay reserved."""
        with self._lock:
            self._sessions.clear()
            self._annotations.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _annotations_for(self, session_id: str) -> List[Annotation]:
        return [
            a.model_copy(deep=True)
            for a in self._annotations.values()
            if a.session_id == session_id
        ]

    def _append_message(self, annotation: Annotation, role: str, content: str) -> ThreadMessage:
        """Append to a live record's thread. Caller holds the lock."""
        message = ThreadMessage(
            id=self._new_id(),
            role=role,
            content=content,
            timestamp=time.time_ns() // 1_000_000,
        )
        annotation.thread.append(message)
        annotation.updated_at = _utcnow()
        return message

    def _new_id(self) -> str:
        """Time-ordered prefix plus random suffix, unique for the process lifetime."""
        with self._lock:
            while True:
                candidate = f"{_base36(time.time_ns() // 1_000_000)}-{uuid.uuid4().hex[:6]}"
                if candidate not in self._issued_ids:
                    self._issued_ids.add(candidate)
                    return candidate

    @staticmethod
    def _check_status(status: Any) -> None:
        if status not in ANNOTATION_STATUSES:
            raise ValidationError(
                "AGT-API-003",
                message=f"unknown status: {status}",
                context={"status": status},
            )

    @staticmethod
    def _check_role(role: Optional[str], field_name: str) -> None:
        if role is not None and role not in ROLES:
            raise ValidationError(
                "AGT-API-001",
                message=f"{field_name} must be one of: {', '.join(ROLES)}",
                context={field_name: role},
            )
