from typing import List, Optional

from ..models.context import ContextData
from ..utils.config import Settings


class DocumentContextReader:
    """Cuts a document into prefix/suffix around a cursor position."""

    def __init__(self, text: str, file_path: Optional[str] = None):
        self.file_path = file_path
        self._lines: List[str] = text.split("\n")

    def _check_position(self, line: int, column: int) -> None:
        if not 0 <= line < len(self._lines):
            raise ValueError(f"Line {line} is outside the document (0..{len(self._lines) - 1})")
        if not 0 <= column <= len(self._lines[line]):
            raise ValueError(f"Column {column} is outside line {line}")

    def get_context_before(self, line: int, column: int, lines_count: int = -1) -> str:
        """Text before the cursor; ``lines_count`` < 0 reads to the start of the document."""
        self._check_position(line, column)
        start = 0 if lines_count < 0 else max(0, line - lines_count)
        return "\n".join(self._lines[start:line] + [self._lines[line][:column]])

    def get_context_after(self, line: int, column: int, lines_count: int = -1) -> str:
        """Text after the cursor; ``lines_count`` < 0 reads to the end of the document."""
        self._check_position(line, column)
        end = len(self._lines) if lines_count < 0 else min(len(self._lines), line + 1 + lines_count)
        return "\n".join([self._lines[line][column:]] + self._lines[line + 1:end])

    def prepare_context(self, line: int, column: int, settings: Settings) -> ContextData:
        if settings.READ_FULL_FILE:
            before, after = -1, -1
        else:
            before, after = settings.READ_LINES_BEFORE_CURSOR, settings.READ_LINES_AFTER_CURSOR

        system_prompt = None
        if settings.USE_SPECIFIC_INSTRUCTIONS and settings.SPECIFIC_INSTRUCTIONS:
            system_prompt = settings.SPECIFIC_INSTRUCTIONS

        return ContextData(
            prefix=self.get_context_before(line, column, before),
            suffix=self.get_context_after(line, column, after),
            system_prompt=system_prompt,
            file_path=self.file_path if settings.USE_FILE_PATH_IN_CONTEXT else None,
        )
