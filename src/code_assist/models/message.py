import time


class Message:
    """Chat log entry, correlated to a request through its message_id"""

    def __init__(self, role: str, content: str, message_id: str = "", timestamp: float | None = None):
        self.role = role
        self.content = content
        self.message_id = message_id
        self.timestamp = timestamp if timestamp else time.time()

    @classmethod
    def from_dict(cls, data: dict) -> 'Message':
        """Create a Message from a dictionary"""
        role = data.get("role", "user")
        content = cls._extract_content(data)
        message_id = data.get("id", "")
        timestamp = data.get("timestamp", time.time())
        return cls(role, content, message_id, timestamp)

    @staticmethod
    def _extract_content(data: dict) -> str:
        """Extract content from the data dictionary"""
        content = data.get("content", "")
        if isinstance(content, list):
            # Multimodal payloads: keep the text parts only
            return " ".join(item.get("text", "") for item in content if item.get("type") == "text")
        return str(content)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"role": self.role, "content": self.content, "id": self.message_id, "timestamp": self.timestamp}

    def to_api_format(self) -> dict:
        """Convert to API-compatible format (without id and timestamp)"""
        return {"role": self.role, "content": self.content}

    def __repr__(self) -> str:
        return f"Message(role={self.role!r}, id={self.message_id!r}, content={self.content[:30]!r})"
