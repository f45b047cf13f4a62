#!/usr/bin/env python3
"""
Demo script to process the requests CSV with live, unredacted streaming.

Without OPENAI_API_KEY the offline mock client is used, so the redaction
and restoration pipeline still runs end to end.
"""

import logging
import sys

from pii_stream.config import load_settings
from pii_stream.llm_client import create_llm_client
from pii_stream.processor import RequestProcessor

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

settings = load_settings()
processor = RequestProcessor(create_llm_client(settings))

print("\n" + "="*80)
print("PII REDACTION DEMO - Processing CSV File")
print("="*80)

try:
    results = processor.process_csv(sys.argv[1] if len(sys.argv) > 1 else settings.requests_path)
except KeyboardInterrupt:
    print("\n\nDemo interrupted by user.")
    sys.exit(0)
except Exception as e:
    print(f"\n\nDemo failed with error: {str(e)}")
    sys.exit(1)

print(f"\nProcessing complete! Processed {len(results)} requests.")
