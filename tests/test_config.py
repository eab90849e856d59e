# pyright: reportUnknownMemberType=false
import pytest

from palisade.networking.config import HttpClientConfig, default_user_agent


def test_config_defaults_are_stable():
    config = HttpClientConfig()

    assert config.timeout_seconds == 10.0
    assert config.max_redirects == 3
    assert config.max_retries == 0
    assert config.strict_redirects is False
    assert config.user_agent == "palisade/1.0"
    assert config.base_uri is None
    assert config.trusted_hosts == frozenset()
    assert dict(config.transport_options) == {}


def test_default_user_agent():
    assert default_user_agent() == "palisade/1.0"


def test_empty_user_agent_falls_back_to_default():
    assert HttpClientConfig(user_agent="").user_agent == "palisade/1.0"


def test_config_transport_options_are_immutable():
    config = HttpClientConfig(transport_options={"verify": True})

    with pytest.raises(TypeError):
        config.transport_options["verify"] = False  # type: ignore[index]


def test_config_copies_external_transport_options():
    options = {"verify": True}
    config = HttpClientConfig(transport_options=options)
    options["verify"] = False

    assert config.transport_options["verify"] is True


def test_config_rejects_zero_timeout():
    with pytest.raises(ValueError, match="can't be 0"):
        HttpClientConfig(timeout_seconds=0)
    with pytest.raises(ValueError, match="can't be 0"):
        HttpClientConfig(timeout_seconds=0.0)


def test_config_accepts_negative_timeout_as_infinite():
    config = HttpClientConfig(timeout_seconds=-1)

    assert config.infinite_timeout
    assert not HttpClientConfig().infinite_timeout


def test_config_rejects_negative_redirects():
    with pytest.raises(ValueError, match="max_redirects"):
        HttpClientConfig(max_redirects=-1)


def test_config_rejects_negative_retries():
    with pytest.raises(ValueError, match="max_retries"):
        HttpClientConfig(max_retries=-1)


def test_config_strips_trailing_slash_from_base_uri():
    config = HttpClientConfig(base_uri="https://api.example.com/")

    assert config.base_uri == "https://api.example.com"


def test_config_normalizes_trusted_hosts():
    config = HttpClientConfig(
        trusted_hosts=["Internal.Example.com", "api.example.com"]
    )

    assert config.trusted_hosts == frozenset(
        {"internal.example.com", "api.example.com"}
    )


def test_config_rejects_invalid_trusted_host():
    with pytest.raises(ValueError, match="Invalid hostname invalid..hostname"):
        HttpClientConfig(trusted_hosts=["invalid..hostname"])


def test_from_mapping_builds_config():
    config = HttpClientConfig.from_mapping(
        {
            "timeout_seconds": 30.0,
            "max_redirects": 5,
            "user_agent": "TestAgent/1.0",
            "trusted_hosts": ["trusted.example.com"],
        }
    )

    assert config.timeout_seconds == 30.0
    assert config.max_redirects == 5
    assert config.user_agent == "TestAgent/1.0"
    assert "trusted.example.com" in config.trusted_hosts


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ValueError, match="maxRedirects"):
        HttpClientConfig.from_mapping({"maxRedirects": 5})


def test_config_is_frozen():
    config = HttpClientConfig()

    with pytest.raises(AttributeError):
        config.max_redirects = 10  # type: ignore[misc]
