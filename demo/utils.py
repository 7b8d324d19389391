"""
Utility functions for the message service.
"""

import logging
import uuid

logger = logging.getLogger(__name__)


def generate_message_id() -> str:
    """
    Generate a new message identifier.

    Returns:
        Random UUID-v4 in its 36-character textual form
    """
    message_id = str(uuid.uuid4())
    logger.debug(f"Generated message id: {message_id}")
    return message_id
