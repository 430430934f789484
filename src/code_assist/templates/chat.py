from typing import List

from .base import ChatTemplate


class Llama3(ChatTemplate):
    name = "Llama 3"

    def stop_words(self) -> List[str]:
        return ["<|start_header_id|>", "<|end_header_id|>", "<|eot_id|>"]

    def format_message(self, role: str, content: str) -> str:
        return f"<|start_header_id|>{role}<|end_header_id|>{content}<|eot_id|>"

    def description(self) -> str:
        return ("The message will contain the following tokens: "
                "<|start_header_id|>%1<|end_header_id|>%2<|eot_id|>")


class ChatML(ChatTemplate):
    name = "ChatML"

    def stop_words(self) -> List[str]:
        return ["<|im_start|>", "<|im_end|>"]

    def format_message(self, role: str, content: str) -> str:
        return f"<|im_start|>{role}\n{content}<|im_end|>"

    def description(self) -> str:
        return "The message will contain the following tokens: <|im_start|>%1\n%2<|im_end|>"


class Alpaca(ChatTemplate):
    name = "Alpaca"

    _HEADERS = {
        "system": "",
        "user": "### Instruction:\n",
        "assistant": "### Response:\n",
    }

    def stop_words(self) -> List[str]:
        return ["### Instruction:", "### Response:"]

    def format_message(self, role: str, content: str) -> str:
        return f"{self._HEADERS.get(role, '')}{content}\n\n"

    def description(self) -> str:
        return "Messages are prefixed with '### Instruction:' (user) and '### Response:' (assistant)"


class BasicChat(ChatTemplate):
    """Passes message content through untouched; for backends that apply their own chat template."""

    name = "Basic Chat"

    def stop_words(self) -> List[str]:
        return []

    def format_message(self, role: str, content: str) -> str:
        return content

    def description(self) -> str:
        return "Messages are sent as plain role/content pairs"
