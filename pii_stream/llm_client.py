import logging
import time

from openai import OpenAI

from pii_stream.patterns import default_catalog

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Raised when the text-generation provider call fails."""


class LLMClient:
    """
    A simple wrapper for OpenAI API to send prompts and receive completions.

    The prompt is expected to be redacted already; the client never sees the
    placeholder mappings.
    """

    def __init__(self, api_key, model="gpt-4o-mini", temperature=0.2):
        """
        Initialize the LLM client.

        Args:
            api_key (str): OpenAI API key
            model (str): Model to use (default: "gpt-4o-mini")
            temperature (float): Sampling temperature (default: 0.2)
        """
        self.client = OpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature

    def _messages(self, prompt):
        return [{"role": "user", "content": prompt}]

    def complete(self, prompt):
        """
        Send a prompt to OpenAI and get the completion response.

        Args:
            prompt (str): Redacted prompt text

        Returns:
            str: The completion text from the LLM

        Raises:
            LLMClientError: If API call fails
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt),
                temperature=self.temperature,
            )
            return response.choices[0].message.content or ""

        except Exception as e:
            raise LLMClientError(f"OpenAI API call failed: {str(e)}") from e

    def complete_stream(self, prompt):
        """
        Send a prompt to OpenAI and get a streaming completion response.

        Use with StreamingUnredactor to show original values live without
        exposing partial placeholders.

        Args:
            prompt (str): Redacted prompt text

        Yields:
            str: Non-empty response chunks from the LLM as they arrive

        Raises:
            LLMClientError: If API call fails

        Example:
            >>> client = LLMClient(api_key="sk-...")
            >>> for chunk in client.complete_stream("Tell me a story"):
            ...     print(chunk, end='', flush=True)
        """
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(prompt),
                temperature=self.temperature,
                stream=True,
            )

            for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content

        except Exception as e:
            raise LLMClientError(f"OpenAI API streaming call failed: {str(e)}") from e


class MockLLMClient:
    """
    Offline stand-in for LLMClient used when no API key is configured.

    Emits a fixed notice in fixed-size fragments. When ``echo_placeholders``
    is set, the placeholders found in the prompt are echoed back so that the
    restoration path still runs end to end.
    """

    NOTICE = (
        "OPENAI_API_KEY not set. Please update field. Placeholders will be "
        "handled, but final output and stream will not reflect accurate responses."
    )

    def __init__(self, fragment_size=12, delay=0.0, echo_placeholders=True, grammar=None):
        if fragment_size < 1:
            raise ValueError(f"fragment_size must be positive, got {fragment_size}")
        self.fragment_size = fragment_size
        self.delay = delay
        self.echo_placeholders = echo_placeholders
        self.grammar = grammar or default_catalog().grammar

    def response_for(self, prompt):
        text = self.NOTICE
        if self.echo_placeholders:
            placeholders = list(dict.fromkeys(self.grammar.pattern.findall(prompt or "")))
            if placeholders:
                text += " Placeholders received: " + ", ".join(placeholders) + "."
        return text

    def complete(self, prompt):
        return self.response_for(prompt)

    def complete_stream(self, prompt):
        text = self.response_for(prompt)
        for i in range(0, len(text), self.fragment_size):
            yield text[i:i + self.fragment_size]
            if self.delay:
                time.sleep(self.delay)


def create_llm_client(settings):
    """
    Return the generation client for the given settings.

    Falls back to MockLLMClient when no API key is configured.
    """
    if settings.dry_run:
        logger.warning("OPENAI_API_KEY not set; using the offline mock client")
        return MockLLMClient(delay=0.008)

    return LLMClient(
        api_key=settings.api_key,
        model=settings.model,
        temperature=settings.temperature,
    )
