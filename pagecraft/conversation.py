"""Conversation history for a single chat session."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

from pagecraft.errors import RequestValidationError


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def from_wire(cls, value: str) -> "Role":
        """Map a client-supplied role string onto the two known roles.

        Only the exact value ``"user"`` is a user turn. Everything else
        ("assistant", "model", "agent", typos) is treated as an assistant
        turn, so replayed history always alternates between two parties.
        """
        if value == cls.USER.value:
            return cls.USER
        return cls.ASSISTANT


@dataclass(frozen=True)
class Message:
    role: Role
    content: str


class ConversationStore:
    """Ordered, append-only message history.

    Entries are never edited or removed; the order they were appended in is
    the order they are replayed to the model.
    """

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: list[Message] = []
        for message in messages:
            self.append(message)

    @classmethod
    def from_wire(cls, payload: Iterable[dict]) -> "ConversationStore":
        """Build a store from ``[{role, content}, ...]`` request data."""
        store = cls()
        for item in payload:
            store.append(
                Message(role=Role.from_wire(item.get("role", "")), content=item.get("content") or "")
            )
        return store

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise RequestValidationError(
                f"Conversation entries must be Message instances, got {type(message).__name__}"
            )
        self._messages.append(message)

    def all(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    @property
    def is_empty(self) -> bool:
        return not self._messages

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
