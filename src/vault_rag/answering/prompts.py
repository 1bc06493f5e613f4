"""Token-budgeted prompt assembly.

Contexts arrive ranked by relevance and are added greedily until the next
one would reach the token limit. An overflowing context is dropped whole,
never truncated.
"""

from __future__ import annotations

import logging
from typing import Callable

import tiktoken

from vault_rag.errors import PromptTooLargeError

logger = logging.getLogger(__name__)

PROMPT_START = "Answer the question based on the context below.\n\nContext:\n"
PROMPT_END = "\n\nQuestion: {question}\nAnswer:"
CONTEXT_SEPARATOR = "\n\n---\n\n"
DEFAULT_TOKEN_LIMIT = 3750
DEFAULT_TOKENIZER_MODEL = "davinci"


def render_prompt(contexts: list[str], question: str) -> str:
    """Fill the fixed template with *contexts* and *question*."""
    return PROMPT_START + CONTEXT_SEPARATOR.join(contexts) + PROMPT_END.format(question=question)


class PromptBuilder:
    """Assemble prompts under a token budget.

    Parameters
    ----------
    token_limit:
        Budget for question plus included contexts (exclusive).
    tokenizer_model:
        Model whose tiktoken encoding counts tokens.
    token_counter:
        Optional replacement for the tiktoken counter.
    """

    def __init__(
        self,
        token_limit: int = DEFAULT_TOKEN_LIMIT,
        *,
        tokenizer_model: str = DEFAULT_TOKENIZER_MODEL,
        token_counter: Callable[[str], int] | None = None,
    ) -> None:
        self.token_limit = token_limit
        self.tokenizer_model = tokenizer_model
        self._token_counter = token_counter
        self._encoding: tiktoken.Encoding | None = None

    def count_tokens(self, text: str) -> int:
        if self._token_counter is not None:
            return self._token_counter(text)
        if self._encoding is None:
            self._encoding = tiktoken.encoding_for_model(self.tokenizer_model)
        return len(self._encoding.encode(text, disallowed_special=()))

    def build(self, contexts: list[str], question: str) -> str:
        """Return the prompt holding the longest prefix of *contexts* that fits.

        Raises
        ------
        PromptTooLargeError
            If *question* alone exceeds the token limit.
        """
        running = self.count_tokens(question)
        if running > self.token_limit:
            raise PromptTooLargeError(
                f"Question is {running} tokens, over the {self.token_limit} token limit"
            )

        included: list[str] = []
        for context in contexts:
            running += self.count_tokens(context)
            if running >= self.token_limit:
                break
            included.append(context)

        if len(included) < len(contexts):
            logger.info("Prompt budget kept %d of %d contexts", len(included), len(contexts))
        return render_prompt(included, question)
