from code_assist import cli
from code_assist.cli import load_settings, main, parse_arguments


def test_parse_chat_arguments():
    args = parse_arguments(["-p", "LM Studio", "-m", "phi3", "what", "is", "this"])
    assert args.question == ["what", "is", "this"]
    assert args.provider == "LM Studio"
    assert args.model == "phi3"
    assert args.complete is None


def test_parse_completion_arguments():
    args = parse_arguments(["--complete", "a.py", "--line", "3", "--column", "7", "--plain"])
    assert args.complete == "a.py"
    assert (args.line, args.column) == (3, 7)
    assert args.plain is True


def test_load_settings_targets_chat_or_completion(monkeypatch, tmp_path):
    monkeypatch.setitem(cli.Settings.model_config, "env_file", tmp_path / ".env")
    chat = load_settings(parse_arguments(["-m", "phi3", "hi"]))
    assert chat.CHAT_MODEL == "phi3"
    completion = load_settings(parse_arguments(["--complete", "a.py", "-m", "starcoder2"]))
    assert completion.COMPLETION_MODEL == "starcoder2"
    assert completion.CHAT_MODEL != "starcoder2"


def test_list_providers_and_templates(capsys):
    assert main(["--list-providers"]) == 0
    assert main(["--list-templates"]) == 0
    output = capsys.readouterr().out
    assert "Ollama" in output
    assert "ChatML" in output


def test_nothing_to_send(monkeypatch, tmp_path):
    monkeypatch.setitem(cli.Settings.model_config, "env_file", tmp_path / ".env")
    assert main([]) == 1


def test_chat_with_unknown_provider(monkeypatch, tmp_path):
    monkeypatch.setitem(cli.Settings.model_config, "env_file", tmp_path / ".env")
    assert main(["-p", "Nope", "--plain", "hello"]) == 1
