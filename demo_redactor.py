#!/usr/bin/env python3
"""
Redact and restore a few sample texts without calling any LLM.
"""

from pii_stream.redactor import PIIRedactor
from pii_stream.unredactor import unredact, StreamingUnredactor

redactor = PIIRedactor()

test_cases = [
    {
        "name": "Tax assistance request",
        "text": "I need help filing my taxes. My SSN is 856-45-6789 and you can reach me at john.doe@example.com or 555-123-4567."
    },
    {
        "name": "Repeated email",
        "text": "Send it to billing@company.com and CC billing@company.com as well."
    },
    {
        "name": "Mixed format phone",
        "text": "Call me at (555) 123-4567 or +1 555.987.6543"
    },
    {
        "name": "No PII",
        "text": "This is a simple message with no personal information at all."
    }
]

print("=" * 80)
print("PII REDACTION DEMO")
print("=" * 80)

for i, test_case in enumerate(test_cases, 1):
    print(f"\n{'=' * 80}")
    print(f"Test Case {i}: {test_case['name']}")
    print(f"{'=' * 80}")
    print(f"\nOriginal Text:\n  {test_case['text']}")

    redacted_text, mappings = redactor.redact(test_case['text'])
    print(f"\nRedacted Text:\n  {redacted_text}")

    if mappings:
        print(f"\nMappings ({len(mappings)} found):")
        for placeholder, original in mappings.items():
            print(f"  {placeholder} -> {original}")
    else:
        print(f"\nNo PII detected")

    # Replay the redacted text as 5-character fragments
    session = StreamingUnredactor(mappings)
    pieces = [session.process_chunk(redacted_text[j:j + 5]) for j in range(0, len(redacted_text), 5)]
    pieces.append(session.finalize())

    restored = unredact(redacted_text, mappings)
    print(f"\nRestored Text:\n  {restored}")
    print(f"Streamed restore matches: {''.join(pieces) == restored}")

print(f"\n{'=' * 80}")
print("Demo completed successfully!")
print(f"{'=' * 80}")
