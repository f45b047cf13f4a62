import logging
import re

from pii_stream.patterns import default_catalog

logger = logging.getLogger(__name__)


class RedactionState:
    """
    Mapping and per-label counters for a single redaction pass.

    A new state is created for every call to PIIRedactor.redact(), so
    counters always start at 1 and no two requests share a mapping.
    """

    def __init__(self, grammar):
        self.grammar = grammar
        self.mappings = {}
        self.counters = {label: 1 for label in grammar.labels}
        self._placeholders = {}

    def assign(self, label, value):
        """
        Return the placeholder for ``value``, minting one if it is new.

        Returns:
            tuple: (placeholder, is_new)
        """
        existing = self._placeholders.get(value)
        if existing is not None:
            return existing, False

        placeholder = self.grammar.format(label, self.counters[label])
        self.counters[label] += 1
        self.mappings[placeholder] = value
        self._placeholders[value] = placeholder
        return placeholder, True


def replace_values(text, replacements):
    """
    Replace every literal occurrence of each key of ``replacements``.

    Done in one left-to-right pass; where two values overlap the longer one
    wins, so a value that is a substring of another is never spliced into it.

    Example:
        >>> replace_values("a@b.com, a@b.com", {"a@b.com": "EMAIL_0001"})
        "EMAIL_0001, EMAIL_0001"
    """
    if not replacements:
        return text

    alternatives = sorted(replacements, key=len, reverse=True)
    matcher = re.compile("|".join(re.escape(value) for value in alternatives))
    return matcher.sub(lambda match: replacements[match.group(0)], text)


class PIIRedactor:
    """
    Detects and redacts PII (Personally Identifiable Information) from text.

    Supports detection of:
    - US Social Security Numbers (SSN)
    - Email addresses (EMAIL)
    - Phone numbers (PHONE_NUMBER)

    Categories are applied in catalog order. Each pass scans the text as
    left by the previous passes, so an earlier category claims a span and a
    later one can never match inside a placeholder.
    """

    def __init__(self, catalog=None):
        """
        Initialize the redactor.

        Args:
            catalog (PatternCatalog): Detection rules to apply
                                      (default: the shared default catalog)
        """
        self.catalog = catalog or default_catalog()

    def redact(self, text):
        """
        Redact PII from text by replacing with unique placeholders.

        Args:
            text (str): Input text potentially containing PII

        Returns:
            tuple: (redacted_text, mappings)
                - redacted_text: Text with PII replaced by placeholders
                - mappings: Dictionary mapping placeholders to original values

        Example:
            >>> redactor = PIIRedactor()
            >>> redacted, mappings = redactor.redact("Mail a@b.com or a@b.com")
            >>> print(redacted)
            "Mail EMAIL_0001 or EMAIL_0001"
            >>> print(mappings)
            {"EMAIL_0001": "a@b.com"}
        """
        if not text:
            return text, {}

        state = RedactionState(self.catalog.grammar)
        redacted_text = text

        for category in self.catalog:
            minted = {}
            for value in category.find_all(redacted_text):
                placeholder, is_new = state.assign(category.label, value)
                if is_new:
                    minted[value] = placeholder

            if minted:
                redacted_text = replace_values(redacted_text, minted)

        if state.mappings:
            logger.debug(
                "Redacted %d value(s): %s",
                len(state.mappings),
                ", ".join(state.mappings),
            )

        return redacted_text, state.mappings
