"""
Service layer for messages.

Sits between the HTTP handlers and the MessageStore: reads are passed
through unchanged, writes get an identifier assigned when the caller did
not supply one. Store errors propagate as-is.
"""

import logging
from typing import List

from demo.schemas import Message
from demo.storage import MessageStore
from demo.utils import generate_message_id

logger = logging.getLogger(__name__)


class MessageService:
    """Business rules for reading and saving messages."""

    def __init__(self, store: MessageStore):
        self.store = store

    def find_all(self) -> List[Message]:
        return self.store.query_all()

    def find_by_id(self, message_id: str) -> List[Message]:
        """Return a list with the matching message, or an empty list."""
        return self.store.query_by_id(message_id)

    def save(self, message: Message) -> None:
        """
        Persist a message, generating a UUID-v4 id when the id is absent
        or empty. A duplicate explicit id raises ConstraintViolation; the
        id is never regenerated on failure.
        """
        if not message.id:
            message = message.model_copy(update={"id": generate_message_id()})
            logger.debug(f"Assigned id {message.id} to new message")

        self.store.insert(message.id, message.text)
