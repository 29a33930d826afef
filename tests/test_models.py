"""Tests for session, turn and verification models and prompt helpers."""

from agent_bridge.models import Session, Turn, VerificationEntry, trim_history
from agent_bridge.services.agent_catalogue import get_category
from agent_bridge.services.routing_service import StepResult, compose_prompt, summarize_results
from agent_bridge.utils.timezone import epoch_to_iso


def _turn(i, role="user"):
    return Turn(role=role, content=f"turn {i}", timestamp=float(i))


def test_trim_history_keeps_newest_in_order():
    turns = [_turn(i) for i in range(60)]
    trimmed = trim_history(turns, 50)
    assert [t.content for t in trimmed] == [f"turn {i}" for i in range(10, 60)]


def test_trim_history_under_limit_is_copy():
    turns = [_turn(i) for i in range(3)]
    trimmed = trim_history(turns, 50)
    assert trimmed == turns
    assert trimmed is not turns


def test_trim_history_zero_limit():
    assert trim_history([_turn(1)], 0) == []


def test_turn_speaker_and_round_trip():
    turn = Turn(role="assistant", content="ok", timestamp=5.0, agent="data_analyst")
    assert turn.speaker == "Assistant"
    assert _turn(1).speaker == "User"
    assert Turn.from_dict(turn.to_dict()) == turn


def test_session_expiry():
    session = Session(token="tok_a", identity="a@example.com", created_at=100.0)
    assert session.is_expired(10_000_000.0, 0) is False
    assert session.is_expired(160.0, 60) is False
    assert session.is_expired(161.0, 60) is True


def test_session_public_shape():
    session = Session(token="tok_a", identity="a@example.com", created_at=0.0)
    assert session.to_public() == {
        "token": "tok_a",
        "email": "a@example.com",
        "created_at": "1970-01-01T00:00:00Z",
    }


def test_verification_entry_expiry():
    entry = VerificationEntry(identity="a@example.com", code="123456", issued_at=1000.0)
    assert entry.is_expired(1600.0, 600) is False
    assert entry.is_expired(1600.5, 600) is True
    assert VerificationEntry.from_dict(entry.to_dict()) == entry


def test_epoch_to_iso():
    assert epoch_to_iso(1_800_000_000) == "2027-01-15T08:00:00Z"


def test_compose_prompt_plain():
    assert compose_prompt("do it") == "TASK: do it"


def test_compose_prompt_empty_history_is_plain():
    assert compose_prompt("do it", history=[]) == "TASK: do it"


def test_compose_prompt_history_lines():
    history = [_turn(1), Turn(role="assistant", content="a" * 300, timestamp=2.0)]
    prompt = compose_prompt("next", history=history)
    assert prompt == f"CONVERSATION HISTORY:\nUser: turn 1\nAssistant: {'a' * 200}\n\nCURRENT TASK: next"


def test_summarize_results_skips_failed_steps():
    results = [
        StepResult(index=0, task="a", category=get_category("market_research"), output="alpha"),
        StepResult(index=1, task="b", category=get_category("data_analyst"), output="beta"),
        StepResult(index=2, task="c", category=get_category("orchestrator"), error_kind="unavailable"),
    ]
    assert summarize_results(results, 1000) == "[market_research] alpha\n\n[data_analyst] beta"
    assert summarize_results(results, 10) == "[market_re"
