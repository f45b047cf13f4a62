import os
import pytest
from unittest.mock import patch
from pii_stream.config import Settings, load_settings
from pii_stream.llm_client import LLMClient, MockLLMClient, create_llm_client


# ============================================================================
# Settings Tests
# ============================================================================

def test_load_settings_defaults(tmp_path):
    """Test defaults when nothing is configured."""
    env_file = tmp_path / ".env"
    env_file.write_text("")

    with patch.dict(os.environ, {}, clear=True):
        settings = load_settings(env_file=env_file)

    assert settings.api_key is None
    assert settings.model == "gpt-4o-mini"
    assert settings.temperature == 0.2
    assert settings.requests_path == "data/requests.csv"
    assert settings.dry_run


def test_load_settings_from_env_file(tmp_path):
    """Test values are read from a .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        "OPENAI_API_KEY=sk-test\n"
        "OPENAI_MODEL=gpt-4o\n"
        "OPENAI_TEMPERATURE=0.7\n"
        "PII_REQUESTS_CSV=other.csv\n"
    )

    with patch.dict(os.environ, {}, clear=True):
        settings = load_settings(env_file=env_file)

    assert settings == Settings(
        api_key="sk-test", model="gpt-4o", temperature=0.7, requests_path="other.csv"
    )
    assert not settings.dry_run


def test_environment_wins_over_env_file(tmp_path):
    """Test variables already set are not overridden by .env."""
    env_file = tmp_path / ".env"
    env_file.write_text("OPENAI_MODEL=gpt-4o\n")

    with patch.dict(os.environ, {"OPENAI_MODEL": "gpt-4.1"}, clear=True):
        settings = load_settings(env_file=env_file)

    assert settings.model == "gpt-4.1"


def test_load_settings_bad_temperature(tmp_path):
    """Test a non-numeric temperature is rejected."""
    env_file = tmp_path / ".env"
    env_file.write_text("")

    with patch.dict(os.environ, {"OPENAI_TEMPERATURE": "warm"}, clear=True):
        with pytest.raises(ValueError) as exc_info:
            load_settings(env_file=env_file)

    assert "OPENAI_TEMPERATURE" in str(exc_info.value)


# ============================================================================
# Client Selection Tests
# ============================================================================

def test_create_llm_client_without_key():
    """Test the mock client is used when no API key is configured."""
    client = create_llm_client(Settings())

    assert isinstance(client, MockLLMClient)


def test_create_llm_client_with_key():
    """Test the OpenAI client is configured from settings."""
    client = create_llm_client(Settings(api_key="sk-test", model="gpt-4o", temperature=0.0))

    assert isinstance(client, LLMClient)
    assert client.model == "gpt-4o"
    assert client.temperature == 0.0


def test_mock_client_fragments():
    """Test the mock client streams fixed-size fragments."""
    client = MockLLMClient(fragment_size=12, echo_placeholders=False)

    fragments = list(client.complete_stream("anything"))

    assert "".join(fragments) == MockLLMClient.NOTICE
    assert all(len(fragment) == 12 for fragment in fragments[:-1])
    assert 0 < len(fragments[-1]) <= 12


def test_mock_client_echoes_placeholders():
    """Test placeholders in the prompt are echoed once each, in order."""
    client = MockLLMClient()

    response = client.complete("Mail EMAIL_0001, call PHONE_NUMBER_0001, then EMAIL_0001 again")

    assert response == (
        MockLLMClient.NOTICE + " Placeholders received: EMAIL_0001, PHONE_NUMBER_0001."
    )
    assert "".join(client.complete_stream("Mail EMAIL_0001")) == client.complete("Mail EMAIL_0001")


def test_mock_client_rejects_bad_fragment_size():
    """Test fragment_size must be positive."""
    with pytest.raises(ValueError):
        MockLLMClient(fragment_size=0)
