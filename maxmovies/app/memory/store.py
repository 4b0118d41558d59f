from __future__ import annotations

import hashlib
import json
import logging
import os
import re
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path
from uuid import uuid4

from maxmovies.app.memory.contracts import (
    CONVERSATION_ROLES,
    ROLE_SYSTEM,
    ConversationRecord,
    ConversationTurn,
)

LOGGER = logging.getLogger(__name__)

_SAFE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,63}$")


def storage_key(user_id: str) -> str:
    if _SAFE_KEY_PATTERN.match(user_id):
        return user_id
    # Prefixed digests are longer than any safe id, so the key spaces never meet.
    return "h_" + hashlib.sha256(user_id.encode("utf-8")).hexdigest()


def serialize_record(record: ConversationRecord) -> dict[str, object]:
    return {
        "userId": record.user_id,
        "lastProject": record.last_project,
        "lastTask": record.last_task,
        "conversation": [
            {"role": turn.role, "content": turn.content}
            for turn in record.conversation
        ],
    }


def _deserialize_turn(payload: object) -> ConversationTurn | None:
    if not isinstance(payload, dict):
        return None
    role = payload.get("role")
    content = payload.get("content")
    if not isinstance(role, str) or not isinstance(content, str):
        return None
    if role not in CONVERSATION_ROLES:
        return None
    return ConversationTurn(role=role, content=content)


def deserialize_record(user_id: str, payload: object) -> ConversationRecord | None:
    if not isinstance(payload, dict):
        return None
    raw_turns = payload.get("conversation")
    if not isinstance(raw_turns, list):
        return None
    turns = [turn for row in raw_turns if (turn := _deserialize_turn(row))]
    if not turns or turns[0].role != ROLE_SYSTEM:
        return None
    last_project = payload.get("lastProject")
    last_task = payload.get("lastTask")
    return ConversationRecord(
        user_id=user_id,
        last_project=last_project if isinstance(last_project, str) else None,
        last_task=last_task if isinstance(last_task, str) else None,
        conversation=turns,
    )


class TranscriptStore:
    """Flat-file conversation records, one JSON document per user id.

    Reads and writes are best effort: a missing or broken file loads as a
    freshly seeded record and a failed write is logged and reported through
    the return value of ``save``. There is no locking here; concurrent
    writers for the same user id race and the last write wins.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        seed_record: Callable[[str], ConversationRecord],
    ) -> None:
        self._root = Path(root)
        self._seed_record = seed_record

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, user_id: str) -> Path:
        return self._root / f"memory_{storage_key(user_id)}.json"

    def ensure_root(self) -> bool:
        if self._root.is_dir():
            return True
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.warning("Failed to create memory directory %s: %s", self._root, exc)
            return False
        LOGGER.info("Created memory directory: %s", self._root)
        return True

    def load(self, user_id: str) -> ConversationRecord:
        self.ensure_root()
        path = self.path_for(user_id)
        try:
            if path.exists():
                with path.open("r", encoding="utf-8") as handle:
                    payload = json.load(handle)
                record = deserialize_record(user_id, payload)
                if record is not None:
                    LOGGER.info("Memory loaded for user: %s", user_id)
                    return record
                LOGGER.warning("Ignoring malformed memory file: %s", path)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Failed to load memory for %s: %s", user_id, exc)

        LOGGER.info("Creating new memory for user: %s", user_id)
        return self._seed_record(user_id)

    def save(self, user_id: str, record: ConversationRecord) -> bool:
        self.ensure_root()
        path = self.path_for(user_id)
        temp_path = path.with_name(f".{path.name}.{uuid4().hex}.tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(serialize_record(record), handle, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.warning("Failed to save memory for %s: %s", user_id, exc)
            with suppress(OSError):
                temp_path.unlink(missing_ok=True)
            return False
        LOGGER.info("Memory saved for user: %s", user_id)
        return True
