"""Tests for the console command handling and the log follower."""

import pytest

from conftest import FakeChatService, FakeSpeechToText
from sigint_ai.cli import HELP_TEXT, LogFollower, handle_command, parse_args
from sigint_ai.event_log import EventLog
from sigint_ai.session import SigintSession


@pytest.fixture()
def session(fast_config, chat_service):
    session = SigintSession(fast_config, chat_service=chat_service, stt=FakeSpeechToText())
    session.monitor.poll_once()
    yield session
    session.stop()


def test_toggles(session, capsys):
    assert handle_command(session, "/listen on")
    assert handle_command(session, "/chat ON")
    assert session.listening()
    assert session.auto_chat_enabled()
    assert "Listening enabled" in capsys.readouterr().out

    handle_command(session, "/listen off")
    assert not session.listening()


def test_plain_line_is_sent_as_operator_message(session, chat_service):
    handle_command(session, "/chat on")
    assert handle_command(session, "  what is your status  ")
    assert "OPERATOR: what is your status" in session.log_lines()
    assert len(chat_service.network_calls("chat")) == 1


def test_blank_line_is_ignored(session, chat_service):
    assert handle_command(session, "   ")
    assert not any(line.startswith("OPERATOR") for line in session.log_lines())
    assert chat_service.network_calls("chat") == []


@pytest.mark.parametrize("line", ["/quit", "/exit"])
def test_quit(session, line):
    assert handle_command(session, line) is False


def test_unknown_command_prints_help(session, capsys):
    assert handle_command(session, "/launch")
    assert HELP_TEXT in capsys.readouterr().out


def test_models_listing_marks_selection(fast_config, capsys):
    service = FakeChatService(models=["llama3:8b", "mistral:7b"])
    session = SigintSession(fast_config, chat_service=service, stt=FakeSpeechToText())
    session.monitor.poll_once()
    handle_command(session, "/models")
    out = capsys.readouterr().out
    assert "* 0: llama3:8b" in out
    assert "  1: mistral:7b" in out


def test_models_when_service_down(fast_config, capsys):
    service = FakeChatService(reachable=False)
    session = SigintSession(fast_config, chat_service=service, stt=FakeSpeechToText())
    session.monitor.poll_once()
    handle_command(session, "/models")
    assert "Ollama not running" in capsys.readouterr().out


def test_model_command_validates_argument(session, capsys):
    handle_command(session, "/model two")
    assert "Usage" in capsys.readouterr().out
    handle_command(session, "/model 0")
    assert "Model not changed" in capsys.readouterr().out
    assert not session.switch_busy()


def test_status(session, capsys):
    handle_command(session, "/status")
    out = capsys.readouterr().out
    assert "Ollama Server Status: Running" in out
    assert "AI Model: llama3:8b" in out


def test_parse_args_defaults():
    args = parse_args([])
    assert not args.verbose
    assert not args.no_audio
    assert not args.listen
    assert not args.auto_chat


def test_log_follower_writes_each_line_once(tmp_path):
    log = EventLog()
    path = tmp_path / "events.log"
    echoed = []
    follower = LogFollower(log, path=str(path), echo=echoed.append)

    log.append("[WHISPER] one")
    log.append("[AI] two")
    assert follower.flush() == 2
    assert follower.flush() == 0
    log.append("[RADAR] three")
    assert follower.flush() == 1

    written = path.read_text(encoding="utf-8").splitlines()
    assert [line.split(" ", 1)[1] for line in written] == ["[WHISPER] one", "[AI] two", "[RADAR] three"]
    assert echoed == written


def test_log_follower_survives_unwritable_path(tmp_path):
    log = EventLog()
    echoed = []
    follower = LogFollower(log, path=str(tmp_path / "missing" / "events.log"), echo=echoed.append)
    log.append("still echoed")
    assert follower.flush() == 1
    assert len(echoed) == 1
