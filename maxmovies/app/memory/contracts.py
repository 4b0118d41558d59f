from __future__ import annotations

from dataclasses import dataclass, field

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
CONVERSATION_ROLES = {ROLE_SYSTEM, ROLE_USER, ROLE_ASSISTANT}


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str


@dataclass
class ConversationRecord:
    user_id: str
    last_project: str | None = None
    last_task: str | None = None
    conversation: list[ConversationTurn] = field(default_factory=list)
