import logging

import pandas as pd

from pii_stream.patterns import default_catalog
from pii_stream.redactor import PIIRedactor
from pii_stream.unredactor import unredact, StreamingUnredactor

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("system_prompt", "prompt")


def load_requests(csv_path):
    """
    Load (system_prompt, prompt) pairs from a CSV file.

    CSV Format:
        system_prompt,prompt
        "You are a helpful assistant","Email john@example.com"

    Args:
        csv_path (str): Path to CSV file containing requests

    Returns:
        list: (system_prompt, prompt) tuples in file order; empty cells become ""

    Raises:
        ValueError: If a required column is missing
    """
    df = pd.read_csv(csv_path, skip_blank_lines=True)
    df.columns = [str(column).strip() for column in df.columns]

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValueError(
            f"CSV must contain 'system_prompt' and 'prompt' columns. "
            f"Missing: {missing}. Found: {list(df.columns)}"
        )

    requests = []
    for _, row in df.iterrows():
        system_prompt = str(row['system_prompt']).strip() if pd.notna(row['system_prompt']) else ""
        user_prompt = str(row['prompt']).strip() if pd.notna(row['prompt']) else ""
        requests.append((system_prompt, user_prompt))

    logger.info("Loaded %d request(s) from %s", len(requests), csv_path)
    return requests


def combine_prompts(system_prompt, user_prompt):
    return " ".join(part for part in (system_prompt, user_prompt) if part)


class RequestProcessor:
    """
    Orchestrates the complete PII redaction pipeline.

    Handles:
    1. Reading requests from CSV
    2. Redacting PII from the combined system and user prompt
    3. Sending redacted text to the LLM
    4. Unredacting the response live while it streams, then once more in full

    This ensures sensitive data never reaches the LLM API.
    """

    def __init__(self, llm_client, catalog=None, stream=True):
        """
        Initialize the request processor.

        Args:
            llm_client: LLMClient, MockLLMClient or anything with the same
                        complete()/complete_stream() methods
            catalog (PatternCatalog): Detection rules (default: shared catalog)
            stream (bool): Use complete_stream() instead of complete()
        """
        self.catalog = catalog or default_catalog()
        self.redactor = PIIRedactor(self.catalog)
        self.llm_client = llm_client
        self.stream = stream

    def process_request(self, system_prompt, user_prompt, on_chunk=None):
        """
        Process a single request through the complete pipeline.

        Args:
            system_prompt (str): System prompt (may contain PII)
            user_prompt (str): User prompt (may contain PII)
            on_chunk (callable): Called with each safe-to-display piece of the
                                 unredacted response as it becomes available

        Returns:
            dict: Result containing all pipeline stages:
                - original_system: Original system prompt
                - original_user: Original user prompt
                - redacted_prompt: Combined prompt with PII redacted (sent to LLM)
                - mappings: PII mappings for this request
                - llm_response_redacted: LLM response (may contain placeholders)
                - streamed_response: Concatenation of the live unredacted pieces
                - final_response: LLM response with PII restored
                - error: Error message if processing failed (None on success)
        """
        result = {
            'original_system': system_prompt,
            'original_user': user_prompt,
            'redacted_prompt': None,
            'mappings': None,
            'llm_response_redacted': None,
            'streamed_response': None,
            'final_response': None,
            'error': None
        }

        streamed = []
        for item in self.process_request_stream(system_prompt, user_prompt):
            if item['type'] == 'metadata':
                result['redacted_prompt'] = item['redacted_prompt']
                result['mappings'] = item['mappings']
            elif item['type'] == 'chunk':
                streamed.append(item['content'])
                if on_chunk is not None:
                    on_chunk(item['content'])
            elif item['type'] == 'final':
                result['llm_response_redacted'] = item['llm_response_redacted']
                result['final_response'] = item['final_response']
                result['streamed_response'] = "".join(streamed)
            elif item['type'] == 'error':
                result['error'] = item['error']

        return result

    def process_request_stream(self, system_prompt, user_prompt):
        """
        Process a single request, yielding events as the response streams.

        Yields:
            dict: Events with a 'type' key:
                - 'metadata': redacted_prompt, mappings
                - 'chunk': content (unredacted text that is safe to display)
                - 'final': llm_response_redacted, final_response
                - 'error': error (the request failed; no 'final' follows)

        Example:
            >>> processor = RequestProcessor(MockLLMClient())
            >>> for item in processor.process_request_stream(
            ...     "You are a helpful assistant.", "Email john@example.com"
            ... ):
            ...     if item['type'] == 'chunk':
            ...         print(item['content'], end='', flush=True)
        """
        redacted_prompt, mappings = self.redactor.redact(
            combine_prompts(system_prompt, user_prompt)
        )

        yield {
            'type': 'metadata',
            'original_system': system_prompt,
            'original_user': user_prompt,
            'redacted_prompt': redacted_prompt,
            'mappings': mappings,
            'error': None
        }

        # A fresh session per request; buffers are never shared
        streaming_unredactor = StreamingUnredactor(mappings, self.catalog.grammar)
        raw_chunks = []

        try:
            for chunk in self._generate(redacted_prompt):
                if not chunk:
                    continue
                raw_chunks.append(chunk)

                safe_output = streaming_unredactor.process_chunk(chunk)
                if safe_output:
                    yield {'type': 'chunk', 'content': safe_output, 'error': None}

        except Exception as e:
            logger.error("Generation failed: %s", e)
            yield {
                'type': 'error',
                'original_system': system_prompt,
                'original_user': user_prompt,
                'error': str(e)
            }
            return

        final_chunk = streaming_unredactor.finalize()
        if final_chunk:
            yield {'type': 'chunk', 'content': final_chunk, 'error': None}

        full_response = "".join(raw_chunks)
        yield {
            'type': 'final',
            'llm_response_redacted': full_response,
            'final_response': unredact(full_response, mappings, self.catalog.grammar),
            'error': None
        }

    def _generate(self, prompt):
        if self.stream:
            return self.llm_client.complete_stream(prompt)
        return [self.llm_client.complete(prompt)]

    def process_csv(self, csv_path, display=True):
        """
        Process all requests from a CSV file.

        A missing column fails the whole run before anything is redacted; a
        failing request is reported and the next one is processed.

        Args:
            csv_path (str): Path to CSV file containing requests
            display (bool): Print the live stream and a report per request

        Returns:
            list: List of result dictionaries (one per request)
        """
        try:
            requests = load_requests(csv_path)
        except Exception as e:
            print(f"\n[ERROR] Failed to process CSV: {str(e)}")
            raise

        results = []
        for request_num, (system_prompt, user_prompt) in enumerate(requests, 1):
            if display:
                print(f"\n{'='*80}")
                print(f"REQUEST {request_num}/{len(requests)}")
                print(f"{'='*80}")
                print(f"\n[USER-VISIBLE STREAM (live)]:\n")

            on_chunk = _print_chunk if display else None
            result = self.process_request(system_prompt, user_prompt, on_chunk=on_chunk)
            results.append(result)

            if result['error']:
                logger.warning("Request %d failed: %s", request_num, result['error'])

            if display:
                print()
                if result['error']:
                    print(f"\n[ERROR]: {result['error']}")
                else:
                    self._display_result(result)

        successful = sum(1 for r in results if r['error'] is None)
        failed = len(results) - successful

        if display:
            print(f"\n{'='*80}")
            print(f"SUMMARY")
            print(f"{'='*80}")
            print(f"Total requests: {len(results)}")
            print(f"Successful: {successful}")
            print(f"Failed: {failed}")

        return results

    def _display_result(self, result):
        """
        Display formatted output for a single request result.

        Args:
            result (dict): Result dictionary from process_request()
        """
        if result['mappings']:
            print(f"\n[PII DETECTED & REDACTED]:")
            for placeholder, original in result['mappings'].items():
                print(f"  {placeholder} -> {original}")
        else:
            print(f"\n[INFO] No PII detected in prompts")

        print(f"\n[REDACTED PROMPT - sent to LLM]:")
        print(result['redacted_prompt'])

        print(f"\n[LLM OUTPUT - with placeholders]:")
        print(result['llm_response_redacted'])

        print(f"\n[FINAL OUTPUT - unredacted]:")
        print(result['final_response'])


def _print_chunk(content):
    print(content, end='', flush=True)
