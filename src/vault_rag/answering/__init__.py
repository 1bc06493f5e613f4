"""
Answering — token-budgeted prompts and the question pipeline.

Public surface
--------------
- :class:`PromptBuilder` — greedy, token-budgeted prompt assembly.
- :class:`QueryOrchestrator` — embed → retrieve → prompt → LLM.
- :func:`get_llm` / :func:`call_llm` — chat-model construction and invocation.
"""

from vault_rag.answering.llm import call_llm, get_llm
from vault_rag.answering.orchestrator import QueryOrchestrator
from vault_rag.answering.prompts import PromptBuilder

__all__ = ["PromptBuilder", "QueryOrchestrator", "call_llm", "get_llm"]
