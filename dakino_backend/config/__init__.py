"""Static configuration shipped with the codebase."""

# LLM defaults are in a dedicated module for clarity and reuse.
from .llm import (
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TEMPERATURE,
    DEFAULT_TICKET_PROMPT,
)
from .matching import (
    DEFAULT_MATCH_ACCEPT_THRESHOLD,
    DEFAULT_MATCH_CANDIDATE_FLOOR,
)

__all__ = [
    "DEFAULT_LLM_BASE_URL",
    "DEFAULT_LLM_MAX_TOKENS",
    "DEFAULT_LLM_MODEL",
    "DEFAULT_LLM_TEMPERATURE",
    "DEFAULT_MATCH_ACCEPT_THRESHOLD",
    "DEFAULT_MATCH_CANDIDATE_FLOOR",
    "DEFAULT_TICKET_PROMPT",
]
