"""
Models module for the reasoning oracle abstraction.

Provides the oracle interface, the Ollama-backed client and response
parsing helpers.
"""

from hypothesis_solver.models.llm_client import (
    DEFAULT_OLLAMA_MODEL,
    LLMClient,
    OracleBase,
    OracleError,
    OracleResponse,
)
from hypothesis_solver.models.response_parsing import (
    STRICT_FORMAT,
    extract_marked,
    format_constraints,
    format_context,
    parse_confidence,
)

__all__ = [
    "DEFAULT_OLLAMA_MODEL",
    "LLMClient",
    "OracleBase",
    "OracleError",
    "OracleResponse",
    "STRICT_FORMAT",
    "extract_marked",
    "format_constraints",
    "format_context",
    "parse_confidence",
]
