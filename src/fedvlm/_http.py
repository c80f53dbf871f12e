"""Small HTTP-related constants shared across fedvlm.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

# Statuses worth telling the user to "try again later" about.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})

DEFAULT_VARIANT_ENDPOINT = "http://localhost:8000/variant/"
DEFAULT_GENE_ENDPOINT = "http://localhost:8000/gene/"
DEFAULT_TIMEOUT_S = 10.0
