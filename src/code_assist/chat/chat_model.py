import os
import json
import logging
from typing import List

from ..models.context import HistoryEntry, Role
from ..models.message import Message

logger = logging.getLogger(__name__)


class ChatModel:
    """Session log of a chat: append-only apart from in-place assistant updates.

    An assistant message that arrives with the same id as the last assistant
    message replaces that message's content, so a streamed reply grows in one
    entry instead of being duplicated per chunk.
    """

    def __init__(self, history_file: str | None = None):
        self.history_file = history_file
        self.messages: List[Message] = []

    def load_history(self):
        """Load all persisted history."""
        if self.history_file and os.path.exists(self.history_file):
            try:
                with open(self.history_file, "r", encoding="utf-8") as f:
                    message_dicts = json.load(f)
                    self.messages = [Message.from_dict(msg) for msg in message_dicts]
            except UnicodeDecodeError as e:
                logger.error(f"Error loading history: unable to decode {self.history_file}. Ensure it is saved in UTF-8 format. ({e})")
            except json.JSONDecodeError as e:
                logger.error(f"Error loading history: invalid JSON format in {self.history_file}. ({e})")

    def save_history(self):
        """Persist message history to the history file."""
        if not self.history_file:
            return
        try:
            message_dicts = [msg.to_dict() for msg in self.messages]
            os.makedirs(os.path.dirname(self.history_file) or ".", exist_ok=True)
            with open(self.history_file, "w", encoding="utf-8") as f:
                json.dump(message_dicts, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving history: {e}")

    def add_message(self, content: str, role: str | Role, message_id: str = "") -> Message:
        role = Role(role).value
        last = self.messages[-1] if self.messages else None
        if (role == Role.ASSISTANT.value and message_id and last is not None
                and last.role == role and last.message_id == message_id):
            last.content = content
            return last
        message = Message(role, content, message_id)
        self.messages.append(message)
        self.save_history()
        return message

    def last_message_id(self) -> str:
        return self.messages[-1].message_id if self.messages else ""

    def history_entries(self) -> List[HistoryEntry]:
        """Log as ordered history entries, skipping empty messages."""
        return [HistoryEntry(msg.role, msg.content) for msg in self.messages if msg.content]

    def get_last_assistant_message(self) -> str | None:
        """Get the content of the last assistant message, or None."""
        for msg in reversed(self.messages):
            if msg.role == Role.ASSISTANT.value:
                return msg.content
        return None

    def clear(self):
        """Clear the conversation log from memory and disk."""
        self.messages = []
        if self.history_file and os.path.exists(self.history_file):
            try:
                os.remove(self.history_file)
            except OSError as e:
                logger.error(f"Error clearing history file: {e}")

    def __len__(self) -> int:
        return len(self.messages)
