from typing import List

from .base import CompletionTemplate


class CodeLlamaFim(CompletionTemplate):
    name = "CodeLlama FIM"

    def stop_words(self) -> List[str]:
        return ["<EOT>", "<PRE>", "<SUF>", "<MID>"]

    def format_prompt(self, prefix: str, suffix: str) -> str:
        return f"<PRE> {prefix} <SUF>{suffix} <MID>"

    def description(self) -> str:
        return "The message will contain the following tokens: <PRE> %1 <SUF>%2 <MID>"


class StarCoder2Fim(CompletionTemplate):
    name = "StarCoder2 FIM"

    def stop_words(self) -> List[str]:
        return ["<|endoftext|>", "<file_sep>", "<fim_prefix>", "<fim_suffix>", "<fim_middle>"]

    def format_prompt(self, prefix: str, suffix: str) -> str:
        return f"<fim_prefix>{prefix}<fim_suffix>{suffix}<fim_middle>"

    def description(self) -> str:
        return ("The message will contain the following tokens: "
                "<fim_prefix>%1<fim_suffix>%2<fim_middle>")


class PlainCompletion(CompletionTemplate):
    name = "Plain"

    def stop_words(self) -> List[str]:
        return []

    def format_prompt(self, prefix: str, suffix: str) -> str:
        return prefix

    def description(self) -> str:
        return "The text before the cursor is sent as-is; the suffix is ignored"
