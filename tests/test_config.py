import pytest

from remindercall import config
from remindercall.config import DialogueSettings, validate_config


class TestValidateConfig:
    def test_exits_when_required_var_missing(self, monkeypatch, capsys):
        monkeypatch.delenv("PUBLIC_URL", raising=False)
        with pytest.raises(SystemExit) as exc:
            validate_config()
        assert exc.value.code == 1
        assert "PUBLIC_URL" in capsys.readouterr().err

    def test_exits_on_unknown_reject_policy(self, monkeypatch):
        monkeypatch.setenv("PUBLIC_URL", "https://agent.example.com")
        monkeypatch.setattr(config, "AWAITING_DATE_REJECT_POLICY", "ask_again")
        with pytest.raises(SystemExit):
            validate_config()

    def test_passes_and_warns_for_optional(self, monkeypatch, caplog):
        monkeypatch.setenv("PUBLIC_URL", "https://agent.example.com")
        monkeypatch.setattr(config, "AWAITING_DATE_REJECT_POLICY", config.REJECT_IN_DATE_ENDS_CALL)
        monkeypatch.delenv("BOOKINGS_WEBHOOK_URL", raising=False)
        validate_config()
        assert "BOOKINGS_WEBHOOK_URL" in caplog.text


class TestDialogueSettings:
    def test_defaults(self):
        s = DialogueSettings()
        assert s.max_silence_retries == 3
        assert s.max_total_turns == 15
        assert s.confidence_threshold == 0.4
        assert s.session_ttl_seconds == 1800
        assert s.max_greeting_confusion == 3
        assert s.garbage_confidence == 0.15
        assert s.off_topic_firm_after == 2

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SESSION_TTL_SECONDS", "600")
        monkeypatch.setenv("MAX_TOTAL_TURNS", "20")
        monkeypatch.delenv("CONFIDENCE_THRESHOLD", raising=False)
        s = DialogueSettings.from_env()
        assert s.session_ttl_seconds == 600.0
        assert s.max_total_turns == 20
        assert s.confidence_threshold == 0.4


def test_anchor_offset_is_ist():
    assert config.ANCHOR_UTC_OFFSET.utcoffset(None).total_seconds() == 5.5 * 3600
