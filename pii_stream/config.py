import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_REQUESTS_PATH = "data/requests.csv"


@dataclass(frozen=True)
class Settings:
    """Process configuration read from the environment (and .env)."""

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    requests_path: str = DEFAULT_REQUESTS_PATH

    @property
    def dry_run(self):
        return not self.api_key


def load_settings(env_file=None):
    """
    Load settings from environment variables.

    Variables from ``env_file`` (or the nearest .env python-dotenv finds)
    are loaded first without overriding values already set.

    Environment:
        OPENAI_API_KEY: API key; when missing the offline mock client is used
        OPENAI_MODEL: Model name (default: gpt-4o-mini)
        OPENAI_TEMPERATURE: Sampling temperature (default: 0.2)
        PII_REQUESTS_CSV: Path to the requests CSV (default: data/requests.csv)

    Raises:
        ValueError: If OPENAI_TEMPERATURE is not a number
    """
    load_dotenv(dotenv_path=env_file)

    raw_temperature = os.getenv("OPENAI_TEMPERATURE")
    if raw_temperature:
        try:
            temperature = float(raw_temperature)
        except ValueError:
            raise ValueError(
                f"OPENAI_TEMPERATURE must be a number, got {raw_temperature!r}"
            )
    else:
        temperature = DEFAULT_TEMPERATURE

    return Settings(
        api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("OPENAI_MODEL") or DEFAULT_MODEL,
        temperature=temperature,
        requests_path=os.getenv("PII_REQUESTS_CSV") or DEFAULT_REQUESTS_PATH,
    )
