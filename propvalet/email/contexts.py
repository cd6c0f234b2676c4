"""
Email context allowlist.

Every email the assistant sends must declare one of these context types.
The context decides:
    - which identity the mail is sent as (system no-reply vs. persona)
    - whether an acting user is required
    - which recipient types are legitimate

The table is compiled into the process. There is no API to extend it at
runtime, so neither the model nor a user can widen what may be sent.
There is deliberately no "send arbitrary email" context.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional


class EmailContextType(str, Enum):
    # System notifications (no-reply identity)
    RENT_REMINDER = "rent_reminder"
    ARREARS_NOTICE = "arrears_notice"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_RECEIPT = "payment_receipt"
    CONNECTION_CODE = "connection_code"
    TENANT_WELCOME = "tenant_welcome"
    DOCUMENT_SHARED = "document_shared"
    LEASE_FOR_SIGNATURE = "lease_for_signature"
    INSPECTION_NOTICE = "inspection_notice"
    MAINTENANCE_UPDATE = "maintenance_update"
    COMPLIANCE_REMINDER = "compliance_reminder"
    LEASE_EXPIRY_NOTICE = "lease_expiry_notice"
    RENT_INCREASE_NOTICE = "rent_increase_notice"
    APPLICATION_UPDATE = "application_update"
    BREACH_NOTICE = "breach_notice"
    # Trade correspondence (persona identity, replies go to the persona)
    TRADE_QUOTE_REQUEST = "trade_quote_request"
    TRADE_NEGOTIATION = "trade_negotiation"
    TRADE_WORK_ORDER = "trade_work_order"
    TRADE_SCHEDULING = "trade_scheduling"
    TRADE_FOLLOWUP = "trade_followup"
    # Owner-initiated
    OWNER_TO_TENANT = "owner_to_tenant"
    OWNER_TO_TRADE = "owner_to_trade"


class SenderPolicy(str, Enum):
    SYSTEM = "system"
    PERSONA = "persona"


class RecipientType(str, Enum):
    TENANT = "tenant"
    OWNER = "owner"
    TRADE = "trade"
    SELF = "self"


@dataclass(frozen=True)
class EmailContextConfig:
    sender_policy: SenderPolicy
    allowed_recipient_types: FrozenSet[RecipientType]
    requires_actor_scope: bool = True
    requires_recipient_validation: bool = True

    @property
    def uses_persona(self) -> bool:
        return self.sender_policy == SenderPolicy.PERSONA


def _system(*recipients: RecipientType, validate: bool = True) -> EmailContextConfig:
    return EmailContextConfig(
        sender_policy=SenderPolicy.SYSTEM,
        allowed_recipient_types=frozenset(recipients),
        requires_recipient_validation=validate,
    )


def _persona(*recipients: RecipientType) -> EmailContextConfig:
    return EmailContextConfig(
        sender_policy=SenderPolicy.PERSONA,
        allowed_recipient_types=frozenset(recipients),
    )


_T = RecipientType

EMAIL_CONTEXT_CONFIG: Mapping[EmailContextType, EmailContextConfig] = MappingProxyType({
    EmailContextType.RENT_REMINDER: _system(_T.TENANT),
    EmailContextType.ARREARS_NOTICE: _system(_T.TENANT),
    EmailContextType.PAYMENT_RECEIVED: _system(_T.OWNER, _T.TENANT),
    EmailContextType.PAYMENT_RECEIPT: _system(_T.TENANT),
    # The invitee is not linked to a tenancy until they redeem the code
    EmailContextType.CONNECTION_CODE: _system(_T.TENANT, validate=False),
    EmailContextType.TENANT_WELCOME: _system(_T.TENANT),
    EmailContextType.DOCUMENT_SHARED: _system(_T.TENANT),
    EmailContextType.LEASE_FOR_SIGNATURE: _system(_T.TENANT),
    EmailContextType.INSPECTION_NOTICE: _system(_T.TENANT),
    EmailContextType.MAINTENANCE_UPDATE: _system(_T.TENANT),
    EmailContextType.COMPLIANCE_REMINDER: _system(_T.OWNER),
    EmailContextType.LEASE_EXPIRY_NOTICE: _system(_T.OWNER),
    EmailContextType.RENT_INCREASE_NOTICE: _system(_T.TENANT),
    EmailContextType.APPLICATION_UPDATE: _system(_T.TENANT),
    EmailContextType.BREACH_NOTICE: _system(_T.TENANT),
    EmailContextType.TRADE_QUOTE_REQUEST: _persona(_T.TRADE),
    EmailContextType.TRADE_NEGOTIATION: _persona(_T.TRADE),
    EmailContextType.TRADE_WORK_ORDER: _persona(_T.TRADE),
    EmailContextType.TRADE_SCHEDULING: _persona(_T.TRADE),
    EmailContextType.TRADE_FOLLOWUP: _persona(_T.TRADE),
    EmailContextType.OWNER_TO_TENANT: _system(_T.TENANT),
    EmailContextType.OWNER_TO_TRADE: _persona(_T.TRADE),
})

_BY_VALUE: Mapping[str, EmailContextType] = MappingProxyType(
    {ctx.value: ctx for ctx in EmailContextType}
)


def parse_context(context_type: object) -> Optional[EmailContextType]:
    """Map a claimed context string to its enum member, or None."""
    if isinstance(context_type, EmailContextType):
        return context_type
    if not isinstance(context_type, str):
        return None
    return _BY_VALUE.get(context_type)


def get_context_config(context_type: object) -> Optional[EmailContextConfig]:
    """Total lookup: None for anything outside the allowlist, never raises."""
    ctx = parse_context(context_type)
    if ctx is None:
        return None
    return EMAIL_CONTEXT_CONFIG[ctx]


def is_valid_context(context_type: object) -> bool:
    return parse_context(context_type) is not None
