"""Tests for the run_agent entry point wiring."""

from unittest.mock import MagicMock, patch

import pytest

import run_agent
from onboard_cli.config import Settings


@pytest.fixture
def quiet_env(monkeypatch):
    monkeypatch.setattr(run_agent, "load_env", lambda: None)
    monkeypatch.setattr(run_agent, "setup_logging", lambda verbose=False: None)


def test_missing_openai_key_exits(quiet_env, monkeypatch, capsys):
    monkeypatch.setattr(run_agent, "load_settings", lambda: Settings(openai_api_key=""))
    with pytest.raises(SystemExit) as exc:
        run_agent.main()
    assert exc.value.code == 1
    assert "Missing OPENAI_API_KEY" in capsys.readouterr().out


def test_fresh_run_forgets_saved_conversation(quiet_env, monkeypatch, tmp_path):
    conv_file = tmp_path / ".openai_conversation_id"
    conv_file.write_text("conv_old")
    monkeypatch.setattr(
        run_agent, "load_settings",
        lambda: Settings(openai_api_key="sk", mixrank_key="mr", conversation_file=conv_file),
    )

    with patch.object(run_agent, "OpenAI") as mock_openai, \
            patch.object(run_agent, "InteractiveShell") as mock_shell:
        mock_openai.return_value.conversations.create.return_value = MagicMock(id="conv_new")
        run_agent.main(message="hi", model="gpt-5")

    orchestrator = mock_shell.call_args.args[0]
    assert orchestrator.conversation_id == "conv_new"
    assert conv_file.read_text() == "conv_new"
    mock_shell.return_value.run.assert_called_once_with(initial_message="hi")


def test_resume_reuses_saved_conversation(quiet_env, monkeypatch, tmp_path):
    conv_file = tmp_path / ".openai_conversation_id"
    conv_file.write_text("conv_old")
    monkeypatch.setattr(
        run_agent, "load_settings",
        lambda: Settings(openai_api_key="sk", conversation_file=conv_file),
    )

    with patch.object(run_agent, "OpenAI") as mock_openai, \
            patch.object(run_agent, "InteractiveShell") as mock_shell:
        run_agent.main(resume=True)

    assert mock_shell.call_args.args[0].conversation_id == "conv_old"
    mock_openai.return_value.conversations.create.assert_not_called()
