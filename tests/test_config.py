import pytest

from code_assist.utils.config import PROVIDER_OLLAMA, Settings, set_config_value


@pytest.fixture
def env_file(tmp_path, monkeypatch):
    path = tmp_path / ".env"
    monkeypatch.setitem(Settings.model_config, "env_file", path)
    return path


def test_defaults(env_file):
    settings = Settings()
    assert settings.CHAT_PROVIDER == PROVIDER_OLLAMA
    assert settings.CHAT_TEMPLATE == "Llama 3"
    assert settings.DEGRADED_MODE == "proceed"
    assert settings.CLEAR_CANCELS_REQUEST is False
    assert settings.MULTI_LINE_COMPLETION is False


def test_environment_override(env_file, monkeypatch):
    monkeypatch.setenv("CODE_ASSIST_CHAT_MODEL", "qwen2.5-coder")
    monkeypatch.setenv("CODE_ASSIST_USE_TOP_K", "true")
    settings = Settings()
    assert settings.CHAT_MODEL == "qwen2.5-coder"
    assert settings.USE_TOP_K is True


def test_from_yaml(env_file, tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("chat_provider: LM Studio\nchat_url: http://localhost:1234\ntemperature: 0.7\n", encoding="utf-8")
    settings = Settings.from_yaml(config, chat_model="phi3")
    assert settings.CHAT_PROVIDER == "LM Studio"
    assert settings.CHAT_URL == "http://localhost:1234"
    assert settings.TEMPERATURE == 0.7
    assert settings.CHAT_MODEL == "phi3"


def test_from_yaml_overrides_win(env_file, tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("CHAT_MODEL: from-file\n", encoding="utf-8")
    assert Settings.from_yaml(config, CHAT_MODEL="from-cli").CHAT_MODEL == "from-cli"


def test_from_yaml_missing_file(env_file, tmp_path):
    settings = Settings.from_yaml(tmp_path / "absent.yaml")
    assert settings.CHAT_PROVIDER == PROVIDER_OLLAMA


def test_from_yaml_invalid(env_file, tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("chat_model: [unclosed\n", encoding="utf-8")
    assert Settings.from_yaml(config).CHAT_MODEL == "llama3:latest"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    assert Settings.from_yaml(config).CHAT_MODEL == "llama3:latest"


def test_invalid_degraded_mode(env_file):
    with pytest.raises(ValueError):
        Settings(DEGRADED_MODE="sometimes")


def test_set_config_value_writes_env_file(env_file):
    settings = Settings()
    assert set_config_value("chat_model", "llama3.1", settings) is True
    assert env_file.read_text(encoding="utf-8") == "CODE_ASSIST_CHAT_MODEL=llama3.1\n"

    assert set_config_value("CHAT_MODEL", "llama3.2", settings) is True
    assert set_config_value("temperature", "0.5", settings) is True
    assert env_file.read_text(encoding="utf-8").splitlines() == [
        "CODE_ASSIST_CHAT_MODEL=llama3.2",
        "CODE_ASSIST_TEMPERATURE=0.5",
    ]
    assert Settings().CHAT_MODEL == "llama3.2"


def test_set_config_value_rejects_unknown_key(env_file):
    assert set_config_value("NOT_A_SETTING", "1", Settings()) is False
    assert not env_file.exists()


def test_set_config_value_rejects_invalid_value(env_file):
    settings = Settings()
    assert set_config_value("degraded_mode", "sometimes", settings) is False
    assert set_config_value("MAX_TOKENS", "many", settings) is False
    assert not env_file.exists()
    assert set_config_value("degraded_mode", "abort", settings) is True
    assert Settings().DEGRADED_MODE == "abort"


def test_set_config_value_collapses_duplicates(env_file):
    env_file.write_text(
        "# local overrides\nCODE_ASSIST_CHAT_URL=http://a\nCODE_ASSIST_CHAT_URL=http://b\nOTHER=1\n",
        encoding="utf-8",
    )
    assert set_config_value("chat_url", "http://c", Settings()) is True
    assert env_file.read_text(encoding="utf-8").splitlines() == [
        "# local overrides",
        "CODE_ASSIST_CHAT_URL=http://c",
        "OTHER=1",
    ]
