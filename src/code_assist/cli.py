import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.table import Table

from code_assist.chat import ClientInterface
from code_assist.completion import CompletionInterface
from code_assist.core.request import CompletionReceived, Event
from code_assist.registry import default_providers, default_templates
from code_assist.templates import TemplateType
from code_assist.utils.config import Settings, set_config_value
from code_assist.utils.logging import setup_logging

console = Console()
logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send chat messages or code completion requests to a configured LLM backend")
    parser.add_argument("question", nargs="*", help="Chat message to send")
    parser.add_argument("--config", type=str, default=None, help="YAML settings file")
    parser.add_argument("-p", "--provider", type=str, default=None, help="Provider name (see --list-providers)")
    parser.add_argument("-t", "--template", type=str, default=None, help="Template name (see --list-templates)")
    parser.add_argument("-u", "--url", type=str, default=None, help="Backend base URL")
    parser.add_argument("-m", "--model", type=str, default=None, help="Model identifier")
    parser.add_argument("--complete", type=str, metavar="FILE", default=None, help="Request a code completion in FILE at --line/--column")
    parser.add_argument("--line", type=int, default=0, help="Zero-based cursor line for --complete")
    parser.add_argument("--column", type=int, default=0, help="Zero-based cursor column for --complete")
    parser.add_argument("--list-providers", action="store_true", help="List available providers and exit")
    parser.add_argument("--list-templates", action="store_true", help="List available prompt templates and exit")
    parser.add_argument("--config-set", nargs=2, metavar=("KEY", "VALUE"), help="Set a configuration value in the .env file")
    parser.add_argument("--clear-history", action="store_true", help="Clear the persisted chat history")
    parser.add_argument("--plain", action="store_true", help="Use plain text output")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging output.")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    chat = bool(args.question) or not args.complete
    prefix = "CHAT" if chat else "COMPLETION"
    overrides = {}
    for option, key in (("provider", "PROVIDER"), ("template", "TEMPLATE"), ("url", "URL"), ("model", "MODEL")):
        value = getattr(args, option)
        if value is not None:
            overrides[f"{prefix}_{key}"] = value
    overrides["VERBOSE"] = args.verbose
    if args.config:
        return Settings.from_yaml(args.config, **overrides)
    return Settings(**overrides)


def show_providers() -> None:
    table = Table(title="Providers", show_header=True)
    table.add_column("Name", style="bold magenta")
    table.add_column("Default URL", style="green")
    table.add_column("Chat endpoint")
    table.add_column("Completion endpoint")
    for provider in default_providers():
        table.add_row(provider.name, provider.url, provider.chat_endpoint, provider.completion_endpoint)
    console.print(table)


def show_templates() -> None:
    table = Table(title="Prompt templates", show_header=True)
    table.add_column("Name", style="bold magenta")
    table.add_column("Type")
    table.add_column("Description", style="dim")
    for template in default_templates():
        table.add_row(template.name, template.template_type.value, template.description())
    console.print(table)


class StreamRenderer:
    """Renders CompletionReceived events for one request, plain or through rich Live."""

    def __init__(self, plain: bool):
        self.plain = plain
        self.request_id: Optional[str] = None
        self._live: Optional[Live] = None

    def __call__(self, event: Event) -> None:
        if not isinstance(event, CompletionReceived) or event.request_id != self.request_id:
            return
        if self.plain:
            print(event.delta, end="", flush=True)
            if event.is_complete:
                print()
            return
        if self._live is None:
            self._live = Live(console=console, refresh_per_second=15, vertical_overflow="visible")
            self._live.start()
        cursor = "" if event.is_complete else "▌"
        self._live.update(Align(Markdown(event.text.strip() + cursor), align="left", pad=False), refresh=True)
        if event.is_complete:
            self.stop()

    def stop(self) -> None:
        if self._live is not None and self._live.is_started:
            self._live.stop()


async def run_chat(settings: Settings, question: str, plain: bool) -> int:
    client = ClientInterface(settings, default_providers(), default_templates())
    client.chat_model.load_history()
    errors: List[str] = []
    client.add_error_listener(errors.append)
    renderer = StreamRenderer(plain)
    client.request_handler.add_listener(renderer)

    request_id = client.send_message(question)
    renderer.request_id = request_id
    try:
        if request_id is not None:
            await client.request_handler.wait(request_id)
    finally:
        renderer.stop()
        client.request_handler.cancel_all()

    for error in errors:
        console.print(f"[bold red]Error:[/bold red] {error}")
    return 1 if errors else 0


async def run_completion(settings: Settings, path: str, line: int, column: int, plain: bool) -> int:
    completion = CompletionInterface(settings, default_providers(), default_templates())
    results: List[str] = []
    errors: List[str] = []
    completion.add_completion_listener(lambda text, _request_id: results.append(text))
    completion.add_error_listener(errors.append)

    text = Path(path).read_text(encoding="utf-8")
    request_id = completion.request_completion(text, line, column, file_path=path)
    if request_id is not None:
        await completion.request_handler.wait(request_id)

    for error in errors:
        console.print(f"[bold red]Error:[/bold red] {error}")
    if results:
        if plain:
            print(results[-1])
        else:
            console.print(Markdown(f"```\n{results[-1]}\n```"))
    return 1 if errors else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    if args.list_providers:
        show_providers()
        return 0
    if args.list_templates:
        show_templates()
        return 0

    try:
        settings = load_settings(args)
    except Exception as e:
        # Pydantic validation errors or unreadable .env file
        console.print(f"[bold red]Error initializing configuration:[/bold red] {e}")
        return 1

    if args.config_set:
        key, value = args.config_set
        if set_config_value(key, value, settings):
            console.print(f"[green]Configuration '{key}' set to '{value}' in {settings.model_config.get('env_file', 'unknown')}.[/green]")
            return 0
        console.print(f"[bold red]Failed to set configuration '{key}'.[/bold red]")
        return 1

    if args.clear_history:
        client = ClientInterface(settings, default_providers(), default_templates())
        client.clear_messages()
        console.print("[bold red]History cleared.[/bold red]")
        return 0

    try:
        if args.complete and not args.question:
            return asyncio.run(run_completion(settings, args.complete, args.line, args.column, args.plain))
        if not args.question:
            console.print("[yellow]Nothing to send. Pass a question or --complete FILE.[/yellow]")
            return 1
        return asyncio.run(run_chat(settings, " ".join(args.question), args.plain))
    except KeyboardInterrupt:
        console.print("\n[bold yellow]Interrupted![/bold yellow]")
        return 130
