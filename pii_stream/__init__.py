"""
PII Redaction System

A Python library for redacting PII (Personally Identifiable Information) from
text before sending it to LLM APIs, then restoring the original values in the
response, including while the response streams in chunk by chunk.
"""

from .patterns import PatternCatalog, PIICategory, PlaceholderGrammar, default_catalog
from .redactor import PIIRedactor
from .unredactor import unredact, StreamingUnredactor, StreamClosedError, StreamState
from .llm_client import LLMClient, LLMClientError, MockLLMClient, create_llm_client
from .processor import RequestProcessor, load_requests
from .config import Settings, load_settings

__all__ = [
    'PatternCatalog',
    'PIICategory',
    'PlaceholderGrammar',
    'default_catalog',
    'PIIRedactor',
    'unredact',
    'StreamingUnredactor',
    'StreamClosedError',
    'StreamState',
    'LLMClient',
    'LLMClientError',
    'MockLLMClient',
    'create_llm_client',
    'RequestProcessor',
    'load_requests',
    'Settings',
    'load_settings',
]
