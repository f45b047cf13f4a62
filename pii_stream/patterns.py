import re

from presidio_analyzer import Pattern, PatternRecognizer


# Declaration order is evaluation order: an earlier label claims a span first.
PII_PATTERNS = (
    ("SSN", r"\b\d{3}-\d{2}-\d{4}\b"),
    ("EMAIL", r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    (
        "PHONE_NUMBER",
        r"(?<!\w)(?:\+\d{1,3}[ .-]?)?(?:\(\d{3}\)|\d{3})[ .-]?\d{3}[ .-]?\d{4}(?!\w)",
    ),
)

PLACEHOLDER_DIGITS = 4


class PlaceholderGrammar:
    """
    Syntax of the placeholder tokens that stand in for redacted values.

    A token looks like ``<LABEL>_<seq>`` where ``seq`` is a zero-padded
    decimal counter of fixed width, e.g. ``PHONE_NUMBER_0001``.

    Attributes:
        labels (tuple): Category labels the grammar accepts
        digits (int): Width of the counter
        pattern (re.Pattern): Regex matching one complete token
        max_length (int): Length of the longest possible token
        margin (int): Characters a streaming restorer must hold back
    """

    def __init__(self, labels, digits=PLACEHOLDER_DIGITS):
        if not labels:
            raise ValueError("A placeholder grammar needs at least one label")

        self.labels = tuple(labels)
        self.digits = digits

        # Longest label first so PHONE_NUMBER is never shadowed by a shorter prefix
        alternatives = "|".join(
            re.escape(label) for label in sorted(self.labels, key=len, reverse=True)
        )
        self.pattern = re.compile(rf"\b(?:{alternatives})_[0-9]{{{digits}}}\b")

        self.max_length = max(len(label) for label in self.labels) + 1 + digits
        self.margin = self.max_length - 1

    def format(self, label, seq):
        """
        Build the placeholder for the ``seq``-th value of a label.

        Example:
            >>> PlaceholderGrammar(["EMAIL"]).format("EMAIL", 3)
            "EMAIL_0003"
        """
        if label not in self.labels:
            raise KeyError(f"Unknown placeholder label: {label}")
        return f"{label}_{seq:0{self.digits}d}"

    def is_placeholder(self, text):
        return self.pattern.fullmatch(text) is not None


class PIICategory:
    """
    One named detection rule: a label plus a Presidio pattern recognizer.

    Only the regex layer of Presidio is used, so no NLP model is loaded.
    """

    SCORE = 0.85

    def __init__(self, label, regex):
        self._label = label
        self._regex = regex
        self._recognizer = PatternRecognizer(
            supported_entity=label,
            name=f"{label.lower()}_recognizer",
            patterns=[Pattern(name=label.lower(), regex=regex, score=self.SCORE)],
        )

    @property
    def label(self):
        return self._label

    @property
    def regex(self):
        return self._regex

    def find_spans(self, text):
        """
        Find every match of this category in ``text``.

        Args:
            text (str): Text to scan

        Returns:
            list: ``(start, end)`` tuples, non-overlapping, ordered by start
        """
        if not text:
            return []

        results = self._recognizer.analyze(text=text, entities=[self._label])
        spans = []
        last_end = -1
        for result in sorted(results, key=lambda r: (r.start, -r.end)):
            if result.start < last_end:
                continue
            spans.append((result.start, result.end))
            last_end = result.end
        return spans

    def find_all(self, text):
        """
        Return the matched substrings in left-to-right order.

        Example:
            >>> default_catalog().get("EMAIL").find_all("a@b.com and c@d.org")
            ["a@b.com", "c@d.org"]
        """
        return [text[start:end] for start, end in self.find_spans(text)]

    def __repr__(self):
        return f"PIICategory({self._label!r})"


class PatternCatalog:
    """
    Ordered, read-only set of PII categories.

    The catalog is built once and shared; nothing in it changes after
    construction, so it is safe to use from any number of requests.
    """

    def __init__(self, patterns=PII_PATTERNS, digits=PLACEHOLDER_DIGITS):
        categories = [PIICategory(label, regex) for label, regex in patterns]
        labels = [category.label for category in categories]
        if len(set(labels)) != len(labels):
            raise ValueError(f"Duplicate category labels: {labels}")

        self._categories = tuple(categories)
        self._by_label = {category.label: category for category in categories}
        self._grammar = PlaceholderGrammar(labels, digits=digits)

    @property
    def labels(self):
        return tuple(category.label for category in self._categories)

    @property
    def grammar(self):
        return self._grammar

    def get(self, label):
        return self._by_label[label]

    def __iter__(self):
        return iter(self._categories)

    def __len__(self):
        return len(self._categories)


_DEFAULT_CATALOG = None


def default_catalog():
    """Return the process-wide catalog built from PII_PATTERNS."""
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = PatternCatalog()
    return _DEFAULT_CATALOG
