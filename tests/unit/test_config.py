"""Tests for ProtocolConfig and environment loading."""

from simid_protocol import EVENTS_THAT_REQUIRE_RESPONSE, ProtocolConfig


class TestDefaults:
    """Test default configuration."""

    def test_defaults(self):
        """Defaults match the SIMID wire format."""
        config = ProtocolConfig()

        assert config.namespace == "SIMID:"
        assert config.target_origin == "*"
        assert config.requires_response == EVENTS_THAT_REQUIRE_RESPONSE
        assert config.response_timeout is None


class TestFromEnv:
    """Test SIMID_* environment variables."""

    def test_no_env(self, monkeypatch):
        """Without variables, from_env() equals the defaults."""
        monkeypatch.delenv("SIMID_TARGET_ORIGIN", raising=False)
        monkeypatch.delenv("SIMID_RESPONSE_TIMEOUT", raising=False)

        assert ProtocolConfig.from_env() == ProtocolConfig()

    def test_target_origin(self, monkeypatch):
        """SIMID_TARGET_ORIGIN overrides the origin."""
        monkeypatch.setenv("SIMID_TARGET_ORIGIN", "https://player.example")

        assert ProtocolConfig.from_env().target_origin == "https://player.example"

    def test_response_timeout(self, monkeypatch):
        """SIMID_RESPONSE_TIMEOUT sets the default deadline in seconds."""
        monkeypatch.setenv("SIMID_RESPONSE_TIMEOUT", "2.5")

        assert ProtocolConfig.from_env().response_timeout == 2.5

    def test_zero_timeout_disables(self, monkeypatch):
        """Zero means no deadline."""
        monkeypatch.setenv("SIMID_RESPONSE_TIMEOUT", "0")

        assert ProtocolConfig.from_env().response_timeout is None

    def test_invalid_timeout_ignored(self, monkeypatch, caplog):
        """Garbage is logged and ignored."""
        monkeypatch.setenv("SIMID_RESPONSE_TIMEOUT", "soon")

        assert ProtocolConfig.from_env().response_timeout is None
        assert "SIMID_RESPONSE_TIMEOUT" in caplog.text
