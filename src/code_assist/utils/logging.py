"""
Rich-formatted logging for code_assist.

Two verbosity switches:
- Verbose: request payloads and per-request timing
- Debug: low-level DEBUG messages, unformatted

Usage:
    from code_assist.utils.logging import RequestLogger, setup_logging

    setup_logging(verbose=args.verbose, debug=args.debug)
    log = RequestLogger(__name__)
    log.request_sent(request_id, url, provider_name, template_name)
"""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOG_THEME = Theme({
    "request_id": "dim yellow",
    "provider.name": "bold magenta",
    "template.name": "dim magenta",
    "url": "green",
    "timing": "dim cyan",
    "status.ok": "bold green",
    "status.error": "bold red",
    "status.cancelled": "bold yellow",
})

_verbose = False
_debug = False
_console: Console | None = None


def get_console() -> Console:
    """Get the shared console instance."""
    global _console
    if _console is None:
        _console = Console(theme=LOG_THEME, stderr=True)
    return _console


def is_verbose() -> bool:
    return _verbose


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Configure logging for the process.

    Args:
        verbose: Show payloads and timing details
        debug: Low-level DEBUG messages, unformatted
    """
    global _verbose, _debug
    _verbose = verbose
    _debug = debug

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S",
            force=True,
        )
    else:
        logging.basicConfig(
            level=logging.INFO if verbose else logging.WARNING,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(
                console=get_console(),
                show_path=False,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=True,
            )],
            force=True,
        )

    for logger_name in ("urllib3", "urllib3.connectionpool", "requests", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.WARNING if not debug else logging.INFO)


class RequestLogger:
    """
    Structured logging for the request lifecycle.

    Messages use rich markup; with the plain debug formatter the markup shows
    through unrendered, which is acceptable for debugging.
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(msg, *args, **kwargs)

    @staticmethod
    def _rid(request_id: str) -> str:
        return f"[request_id]\\[{request_id[:8]}][/request_id]"

    def request_sent(self, request_id: str, url: str, provider: str, template: str, payload: dict[str, Any] | None = None) -> None:
        self._logger.info(
            f"{self._rid(request_id)} [url]{url}[/url] "
            f"provider=[provider.name]{provider}[/provider.name] "
            f"template=[template.name]{template}[/template.name]"
        )
        if payload is not None:
            self.payload("Request payload", payload)

    def request_finished(self, request_id: str, chars: int, elapsed_ms: float) -> None:
        self._logger.info(
            f"{self._rid(request_id)} [status.ok]completed[/status.ok] "
            f"[timing]{elapsed_ms:.0f}ms[/timing] [dim]{chars} chars[/dim]"
        )

    def request_failed(self, request_id: str, error: str, elapsed_ms: float) -> None:
        self._logger.error(
            f"{self._rid(request_id)} [status.error]failed[/status.error] "
            f"[timing]{elapsed_ms:.0f}ms[/timing] {error}"
        )

    def request_cancelled(self, request_id: str) -> None:
        self._logger.info(f"{self._rid(request_id)} [status.cancelled]cancelled[/status.cancelled]")

    def payload(self, label: str, data: dict[str, Any], max_content_len: int = 500) -> None:
        """Log a payload when verbose, with long strings truncated."""
        if not (_verbose or self._logger.isEnabledFor(logging.DEBUG)):
            return

        def truncate(obj: Any, depth: int = 0) -> Any:
            if depth > 5:
                return "..."
            if isinstance(obj, dict):
                return {k: truncate(v, depth + 1) for k, v in obj.items()}
            if isinstance(obj, list):
                return [truncate(item, depth + 1) for item in obj[:10]]
            if isinstance(obj, str) and len(obj) > max_content_len:
                return obj[:max_content_len] + "..."
            return obj

        formatted = json.dumps(truncate(data), indent=2, default=str)
        if _verbose and not _debug:
            get_console().print(f"[dim]{label}:[/dim]")
            get_console().print(formatted, highlight=True, markup=False)
        else:
            self._logger.debug(f"{label}: {formatted}")
