"""PropValet email - context allowlist, personas, guard and delivery."""

from .contexts import (
    EMAIL_CONTEXT_CONFIG,
    EmailContextConfig,
    EmailContextType,
    RecipientType,
    SenderPolicy,
    get_context_config,
    is_valid_context,
)
from .guard import (
    EmailAuthorization,
    EmailContextGuard,
    RecipientDirectory,
    SenderIdentity,
    resolve_sender,
)
from .personas import PERSONAS, EmailPersona, fnv1a_32, persona_for_actor, trade_subject
from .provider import BaseEmailSender, OutboundEmail, ResendEmailSender

__all__ = [
    "EMAIL_CONTEXT_CONFIG",
    "EmailContextConfig",
    "EmailContextType",
    "RecipientType",
    "SenderPolicy",
    "get_context_config",
    "is_valid_context",
    "EmailAuthorization",
    "EmailContextGuard",
    "RecipientDirectory",
    "SenderIdentity",
    "resolve_sender",
    "PERSONAS",
    "EmailPersona",
    "fnv1a_32",
    "persona_for_actor",
    "trade_subject",
    "BaseEmailSender",
    "OutboundEmail",
    "ResendEmailSender",
]
