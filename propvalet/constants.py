"""
Shared constants for the PropValet framework.

Centralizes values needed by several subpackages (dispatcher, email guard,
memory, workflow) so they never drift apart.
"""

from typing import Tuple

# ── Identity ──

SYSTEM_EMAIL_ADDRESS = "noreply@casaapp.com.au"
SYSTEM_EMAIL_NAME = "Casa"
PERSONA_EMAIL_DOMAIN = "casaapp.com.au"

ROLE_OWNER = "owner"
ROLE_TENANT = "tenant"

# ── Embeddings ──

EMBEDDING_DIMENSIONS = 384
# ~512 tokens at ~4 chars per token
EMBEDDING_MAX_CHARS = 2000
DECISION_INPUT_SNIPPET_CHARS = 300
PREFERENCE_TEXT_MAX_CHARS = 500

# ── Memory search ──

SIMILARITY_THRESHOLD = 0.4
RECALL_LIMIT = 20
PRECEDENT_LIMIT = 10
DEFAULT_PREFERENCE_CONFIDENCE = 0.8

# ── Error classification ──

INPUT_SUMMARY_MAX_CHARS = 100

# ── Work orders ──

# A trade counts as "assigned" to a property while a work order is in one of these states
OPEN_WORK_ORDER_STATUSES: Tuple[str, ...] = ("sent", "quoted", "approved", "in_progress")

# ── Workflow ──

DEFAULT_AUTO_APPROVE_THRESHOLD = 500
