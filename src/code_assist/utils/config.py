import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import Field, TypeAdapter, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

PROVIDER_OLLAMA = "Ollama"
PROVIDER_OPENAI_COMPATIBLE = "OpenAI Compatible"
PROVIDER_LM_STUDIO = "LM Studio"

DEGRADED_PROCEED = "proceed"
DEGRADED_ABORT = "abort"

DEFAULT_SYSTEM_PROMPT = "You are a helpful and concise coding assistant. Answer with short, correct code and brief explanations."

logger = logging.getLogger(__name__)
console = Console(stderr=True)


def get_default_config_dir() -> Path:
    env_path = os.environ.get("CODE_ASSIST_CONFIG_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config_home) / "code-assist"


DOTENV_PATH = get_default_config_dir() / ".env"


class Settings(BaseSettings):
    """Everything the request pipeline reads at call time.

    Values come from keyword arguments, ``CODE_ASSIST_*`` environment variables,
    the ``.env`` file in the config directory, or a YAML file via ``from_yaml``.
    """

    # --- Chat assistant --- #
    CHAT_PROVIDER: str = Field(default=PROVIDER_OLLAMA, description="Provider name used for chat requests")
    CHAT_TEMPLATE: str = Field(default="Llama 3", description="Chat template name")
    CHAT_URL: str = Field(default="http://localhost:11434", description="Base URL of the chat backend")
    CHAT_MODEL: str = Field(default="llama3:latest", description="Model identifier sent with chat requests")

    # --- Code completion --- #
    COMPLETION_PROVIDER: str = Field(default=PROVIDER_OLLAMA)
    COMPLETION_TEMPLATE: str = Field(default="CodeLlama FIM")
    COMPLETION_URL: str = Field(default="http://localhost:11434")
    COMPLETION_MODEL: str = Field(default="codellama:7b-code")
    MULTI_LINE_COMPLETION: bool = Field(default=False, description="Keep completions past the first line")

    # --- Sampling --- #
    TEMPERATURE: float = Field(default=0.2)
    MAX_TOKENS: int = Field(default=150)
    USE_TOP_P: bool = Field(default=False)
    TOP_P: float = Field(default=0.9)
    USE_TOP_K: bool = Field(default=False)
    TOP_K: int = Field(default=50)
    USE_PRESENCE_PENALTY: bool = Field(default=False)
    PRESENCE_PENALTY: float = Field(default=0.0)
    USE_FREQUENCY_PENALTY: bool = Field(default=False)
    FREQUENCY_PENALTY: float = Field(default=0.0)

    # --- Provider specific --- #
    OLLAMA_KEEP_ALIVE: str = Field(default="5m", description="How long Ollama keeps the model loaded")
    API_KEY: Optional[str] = Field(default=None, description="Bearer token for OpenAI compatible backends")

    # --- Context --- #
    USE_SYSTEM_PROMPT: bool = Field(default=True)
    SYSTEM_PROMPT: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    USE_SPECIFIC_INSTRUCTIONS: bool = Field(default=False)
    SPECIFIC_INSTRUCTIONS: str = Field(default="")
    USE_FILE_PATH_IN_CONTEXT: bool = Field(default=False)
    READ_FULL_FILE: bool = Field(default=False)
    READ_LINES_BEFORE_CURSOR: int = Field(default=50)
    READ_LINES_AFTER_CURSOR: int = Field(default=30)

    # --- Session behaviour --- #
    DEGRADED_MODE: Literal["proceed", "abort"] = Field(
        default=DEGRADED_PROCEED,
        description="What to do when the configured template cannot be resolved",
    )
    CLEAR_CANCELS_REQUEST: bool = Field(default=False, description="Whether clearing the chat also cancels the in-flight request")
    HISTORY_FILE: Optional[str] = Field(default=None, description="Persist the chat log to this JSON file")
    VERBOSE: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="CODE_ASSIST_",
        env_file=DOTENV_PATH,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra='ignore'
    )

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> "Settings":
        """Build settings from a YAML mapping, with keyword overrides on top."""
        config_path = Path(path).expanduser()
        values: dict[str, Any] = {}
        if not config_path.is_file():
            console.print(f"[yellow]Warning:[/yellow] Settings file not found at {config_path}, using defaults")
        else:
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    loaded = yaml.safe_load(f) or {}
                if isinstance(loaded, dict):
                    values = {str(k).upper(): v for k, v in loaded.items()}
                else:
                    console.print(f"[bold red]Warning:[/bold red] Invalid format in {config_path}. Expected a mapping. Ignoring.")
            except yaml.YAMLError as e:
                console.print(f"[bold red]Error parsing YAML file {config_path}:[/bold red] {e}")
        values.update({k.upper(): v for k, v in overrides.items()})
        return cls(**values)


def set_config_value(key: str, value: str, settings: Settings) -> bool:
    """Persist one setting as ``CODE_ASSIST_<KEY>=value`` in the settings .env file.

    The value is checked against the field's type before anything is written. An
    existing entry for the key is replaced in place (duplicates collapse into
    one line); otherwise the entry is appended.

    Returns:
        True if the file was written, False if the key or value was rejected
        or the file could not be read or written.
    """
    name = key.upper()
    field_info = Settings.model_fields.get(name)
    if field_info is None:
        console.print(f"[bold red]Unknown setting '{key}'.[/bold red] Known settings: {', '.join(Settings.model_fields)}")
        return False
    try:
        TypeAdapter(field_info.annotation).validate_python(value)
    except ValidationError as e:
        console.print(f"[bold red]Invalid value for {name}:[/bold red] {e.errors()[0]['msg']}")
        return False

    env_path = Path(settings.model_config["env_file"])
    entry = f"{settings.model_config['env_prefix']}{name}"
    new_line = f"{entry}={value}"
    try:
        lines = env_path.read_text(encoding="utf-8").splitlines() if env_path.is_file() else []
    except OSError as e:
        console.print(f"[bold red]Cannot read {env_path}:[/bold red] {e}")
        return False

    updated: list[str] = []
    replaced = False
    for line in lines:
        if line.split("=", 1)[0].strip() != entry:
            updated.append(line)
        elif not replaced:
            updated.append(new_line)
            replaced = True
    if not replaced:
        updated.append(new_line)

    try:
        env_path.parent.mkdir(parents=True, exist_ok=True)
        env_path.write_text("\n".join(updated) + "\n", encoding="utf-8")
    except OSError as e:
        console.print(f"[bold red]Cannot write {env_path}:[/bold red] {e}")
        return False
    logger.info(f"Stored {entry} in {env_path}")
    return True
