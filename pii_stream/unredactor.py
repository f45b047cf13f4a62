import enum
import logging

from pii_stream.patterns import default_catalog

logger = logging.getLogger(__name__)


class StreamClosedError(RuntimeError):
    """Raised when a StreamingUnredactor is used after its final flush."""


class StreamState(enum.Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    EMITTING = "emitting"
    FLUSHED = "flushed"


def unredact(text, mappings, grammar=None):
    """
    Replace placeholders in text with their original PII values.

    The text is scanned once for tokens matching the placeholder grammar
    (like SSN_0001, EMAIL_0001, PHONE_NUMBER_0001). Known tokens are replaced
    with their original value; tokens missing from the mappings are left as
    they are. Substituted values are never rescanned.

    Args:
        text (str): Text containing placeholders to be replaced
        mappings (dict): Dictionary mapping placeholders to original values
                        Format: {placeholder: original_value}
                        Example: {"SSN_0001": "123-45-6789"}
        grammar (PlaceholderGrammar): Token syntax to look for
                                      (default: the default catalog's grammar)

    Returns:
        str: Text with all known placeholders replaced by original values

    Examples:
        >>> mappings = {"SSN_0001": "123-45-6789", "EMAIL_0001": "john@example.com"}
        >>> unredact("Contact SSN_0001 at EMAIL_0001", mappings)
        "Contact 123-45-6789 at john@example.com"

        >>> # Unknown placeholders pass through unchanged
        >>> unredact("see EMAIL_0099 here", {})
        "see EMAIL_0099 here"
    """
    if not text or not mappings:
        return text

    grammar = grammar or default_catalog().grammar
    return grammar.pattern.sub(
        lambda match: mappings.get(match.group(0), match.group(0)), text
    )


class StreamingUnredactor:
    """
    Safely unredact PII placeholders in streaming text without exposing partial placeholders.

    A placeholder may be split across chunks ("...EMAIL_00" then "01..."), so
    the last ``margin`` characters (one less than the longest possible token)
    are always held back. Anything before that cannot be the start of a token
    that is still arriving, so it is released with its complete tokens
    replaced. The cut never falls inside a token: it moves past a token whose
    next character has arrived, and back before one that ends the buffer.

    The last released character is kept as context, so ``fooEMAIL_0001`` is
    not mistaken for a placeholder after a cut between ``foo`` and ``EMAIL``.
    The concatenation of everything a session returns always equals
    ``unredact()`` applied to the concatenated chunks.

    One instance serves exactly one stream and must be fed from one place at a
    time. Passing an empty chunk (or calling finalize()) flushes the buffer and
    closes the session; further calls raise StreamClosedError.

    Example:
        >>> unredactor = StreamingUnredactor({"EMAIL_0001": "john@example.com"})
        >>> for chunk in llm_stream:
        ...     print(unredactor.process_chunk(chunk), end='', flush=True)
        >>> print(unredactor.finalize(), end='', flush=True)
    """

    def __init__(self, mappings, grammar=None):
        """
        Initialize the streaming unredactor.

        Args:
            mappings (dict): Dictionary mapping placeholders to original values
            grammar (PlaceholderGrammar): Token syntax shared with the redactor
        """
        self.mappings = mappings
        self.grammar = grammar or default_catalog().grammar
        self.margin = self.grammar.margin
        self.buffer = ""
        self.state = StreamState.EMPTY
        self._context = ""

    def process_chunk(self, chunk):
        """
        Process an incoming chunk and return safe output.

        Args:
            chunk (str): New text chunk from the LLM stream; "" ends the stream

        Returns:
            str: Text that is safe to display, possibly ""

        Raises:
            StreamClosedError: If the stream was already flushed
        """
        if self.state is StreamState.FLUSHED:
            raise StreamClosedError("Stream already flushed; start a new StreamingUnredactor")

        if not chunk:
            return self._flush()

        self.buffer += chunk
        if self.state is StreamState.EMPTY:
            self.state = StreamState.ACCUMULATING

        if len(self.buffer) <= self.margin:
            return ""

        text = self._context + self.buffer
        start = len(self._context)
        matches = list(self.grammar.pattern.finditer(text, start))

        cut = len(text) - self.margin
        for match in matches:
            if match.start() < cut < match.end():
                # A token is settled once the character after it has arrived
                cut = match.end() if match.end() < len(text) else match.start()
                break

        if cut <= start:
            return ""

        safe_text = self._render(text, start, cut, matches)
        self._context = text[cut - 1]
        self.buffer = text[cut:]
        self.state = StreamState.EMITTING
        return safe_text

    def finalize(self):
        """
        Flush the remaining buffer and perform final replacements.

        Returns:
            str: Final buffered text with all known placeholders replaced
        """
        return self.process_chunk("")

    @property
    def closed(self):
        return self.state is StreamState.FLUSHED

    def _flush(self):
        text = self._context + self.buffer
        start = len(self._context)
        matches = self.grammar.pattern.finditer(text, start)
        result = self._render(text, start, len(text), matches)

        self.buffer = ""
        self._context = ""
        self.state = StreamState.FLUSHED
        logger.debug("Stream flushed with %d trailing character(s)", len(result))
        return result

    def _render(self, text, start, stop, matches):
        pieces = []
        pos = start
        for match in matches:
            if match.end() > stop:
                break
            pieces.append(text[pos:match.start()])
            pieces.append(self.mappings.get(match.group(0), match.group(0)))
            pos = match.end()
        pieces.append(text[pos:stop])
        return "".join(pieces)
