"""
Email Context Guard - the single gate every agent-originated email passes.

``authorize`` is called before any provider is touched. It:
    1. rejects context strings outside the allowlist
    2. rejects contexts that need an acting user when none is given
    3. classifies the recipient, and every cc/bcc copy, against the
       context's allowed recipient types, using the acting user's own
       relationships
    4. resolves the sender identity (system no-reply or persona). Persona
       mail from a tenant is signed with the persona of the owner whose
       property the trade is working at.

Every refusal raises EmailGuardError; nothing here degrades to a default.

Recipient rules:
    self    the actor's own profile address
    owner   an owner emailing themself, or a tenant emailing the owner
            of a property they rent
    tenant  a tenant on a tenancy of a property the actor owns
    trade   owner actor: a trade in their network or on one of their
            work orders. tenant actor: a trade on an open work order at
            a property the tenant rents
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..audit_logger import AuditLogger
from ..constants import (
    OPEN_WORK_ORDER_STATUSES,
    PERSONA_EMAIL_DOMAIN,
    ROLE_OWNER,
    ROLE_TENANT,
    SYSTEM_EMAIL_ADDRESS,
    SYSTEM_EMAIL_NAME,
)
from ..db.repository import Repository
from ..errors import EmailGuardError
from .contexts import (
    EmailContextConfig,
    EmailContextType,
    RecipientType,
    SenderPolicy,
    get_context_config,
    parse_context,
)
from .personas import EmailPersona, persona_for_actor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SenderIdentity:
    from_address: str
    from_name: str
    persona: Optional[EmailPersona] = None

    @property
    def formatted(self) -> str:
        return f"{self.from_name} <{self.from_address}>"


@dataclass(frozen=True)
class EmailAuthorization:
    """Outcome of a successful ``authorize`` call."""
    context_type: EmailContextType
    config: EmailContextConfig
    sender: SenderIdentity
    recipient_type: Optional[RecipientType] = None


def resolve_sender(
    context_type: object,
    actor_id: Optional[str] = None,
    system_address: str = SYSTEM_EMAIL_ADDRESS,
    system_name: str = SYSTEM_EMAIL_NAME,
    persona_domain: str = PERSONA_EMAIL_DOMAIN,
) -> SenderIdentity:
    """Resolve the "from" identity for a context.

    Raises EmailGuardError for an unknown context, or for a persona context
    without an actor (there is no system fallback for persona mail).
    """
    ctx = parse_context(context_type)
    if ctx is None:
        raise EmailGuardError(f"Unknown email context type: {context_type}", str(context_type))
    config = get_context_config(ctx)

    if config.sender_policy == SenderPolicy.PERSONA:
        if not actor_id:
            raise EmailGuardError(
                f"Email context '{ctx.value}' is sent as a persona and requires an acting owner",
                ctx.value,
            )
        persona = persona_for_actor(actor_id)
        if persona.domain != persona_domain:
            persona = dataclasses.replace(persona, domain=persona_domain)
        return SenderIdentity(persona.address, persona.display_name, persona)

    return SenderIdentity(system_address, system_name)


class RecipientDirectory(Repository):
    """Read-only relationship lookups used to classify a recipient address."""

    TABLE_NAME = "profiles"

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self._fetch_one("id = $1", (user_id,), columns="id, email, role")

    async def is_tenant_of_owner(self, email: str, owner_id: str) -> bool:
        row = await self._db.fetchrow(
            """
            SELECT 1
            FROM profiles pr
            JOIN tenancy_tenants tt ON tt.tenant_id = pr.id
            JOIN tenancies t ON t.id = tt.tenancy_id
            JOIN properties p ON p.id = t.property_id
            WHERE lower(pr.email) = lower($1) AND p.owner_id = $2
            LIMIT 1
            """,
            email, owner_id,
        )
        return row is not None

    async def is_owner_of_tenant(self, email: str, tenant_id: str) -> bool:
        row = await self._db.fetchrow(
            """
            SELECT 1
            FROM tenancy_tenants tt
            JOIN tenancies t ON t.id = tt.tenancy_id
            JOIN properties p ON p.id = t.property_id
            JOIN profiles pr ON pr.id = p.owner_id
            WHERE tt.tenant_id = $2 AND lower(pr.email) = lower($1)
            LIMIT 1
            """,
            email, tenant_id,
        )
        return row is not None

    async def is_trade_of_owner(self, email: str, owner_id: str) -> bool:
        row = await self._db.fetchrow(
            """
            SELECT 1
            FROM trades tr
            WHERE lower(tr.email) = lower($1)
              AND (
                EXISTS (SELECT 1 FROM owner_trades ot
                        WHERE ot.trade_id = tr.id AND ot.owner_id = $2)
                OR EXISTS (SELECT 1 FROM work_orders wo
                           JOIN properties p ON p.id = wo.property_id
                           WHERE wo.trade_id = tr.id AND p.owner_id = $2)
              )
            LIMIT 1
            """,
            email, owner_id,
        )
        return row is not None

    async def is_trade_assigned_to_tenant(self, email: str, tenant_id: str) -> bool:
        row = await self._db.fetchrow(
            """
            SELECT 1
            FROM trades tr
            JOIN work_orders wo ON wo.trade_id = tr.id
            JOIN tenancies t ON t.property_id = wo.property_id
            JOIN tenancy_tenants tt ON tt.tenancy_id = t.id
            WHERE lower(tr.email) = lower($1)
              AND tt.tenant_id = $2
              AND wo.status = ANY($3::text[])
            LIMIT 1
            """,
            email, tenant_id, list(OPEN_WORK_ORDER_STATUSES),
        )
        return row is not None

    async def owner_for_assigned_trade(self, email: str, tenant_id: str) -> Optional[str]:
        """Owner of the property where this trade has an open job for the tenant."""
        return await self._db.fetchval(
            """
            SELECT p.owner_id
            FROM trades tr
            JOIN work_orders wo ON wo.trade_id = tr.id
            JOIN properties p ON p.id = wo.property_id
            JOIN tenancies t ON t.property_id = p.id
            JOIN tenancy_tenants tt ON tt.tenancy_id = t.id
            WHERE lower(tr.email) = lower($1)
              AND tt.tenant_id = $2
              AND wo.status = ANY($3::text[])
            LIMIT 1
            """,
            email, tenant_id, list(OPEN_WORK_ORDER_STATUSES),
        )


class EmailContextGuard:
    """
    Authorizes outbound email against the context allowlist.

    Usage:
        guard = EmailContextGuard(RecipientDirectory(db))
        auth = await guard.authorize("trade_quote_request", "owner-1", "fixit@example.com")
        auth.sender.from_address  # e.g. "emma@casaapp.com.au"
    """

    def __init__(
        self,
        directory: RecipientDirectory,
        system_address: str = SYSTEM_EMAIL_ADDRESS,
        system_name: str = SYSTEM_EMAIL_NAME,
        persona_domain: str = PERSONA_EMAIL_DOMAIN,
        audit: Optional[AuditLogger] = None,
    ):
        self._directory = directory
        self._system_address = system_address
        self._system_name = system_name
        self._persona_domain = persona_domain
        self._audit = audit or AuditLogger()

    def resolve_sender(self, context_type: object, actor_id: Optional[str] = None) -> SenderIdentity:
        return resolve_sender(
            context_type,
            actor_id,
            system_address=self._system_address,
            system_name=self._system_name,
            persona_domain=self._persona_domain,
        )

    async def authorize(
        self,
        context_type: object,
        actor_id: Optional[str],
        recipient: str,
        copies: Iterable[str] = (),
    ) -> EmailAuthorization:
        """Authorize one recipient, plus any cc/bcc copies, or raise EmailGuardError.

        Every copy address is held to the same recipient rules as the primary
        recipient; the actor's own address is the only extra one accepted.
        One refused address refuses the whole send.
        """
        try:
            auth = await self._authorize(context_type, actor_id, recipient, list(copies))
        except EmailGuardError as e:
            logger.warning(f"Email refused ({context_type}): {e.reason}")
            self._audit.log_email_decision(
                context_type=str(getattr(context_type, "value", context_type)),
                allowed=False,
                reason=e.reason,
                actor_id=actor_id,
            )
            raise
        self._audit.log_email_decision(
            context_type=auth.context_type.value,
            allowed=True,
            reason="authorized",
            recipient_type=auth.recipient_type.value if auth.recipient_type else None,
            actor_id=actor_id,
        )
        return auth

    async def _authorize(
        self,
        context_type: object,
        actor_id: Optional[str],
        recipient: str,
        copies: List[str],
    ) -> EmailAuthorization:
        ctx = parse_context(context_type)
        if ctx is None:
            raise EmailGuardError(
                f"'{context_type}' is not an allowed email context. "
                "Emails can only be sent for a recognised purpose.",
                str(context_type),
            )
        config = get_context_config(ctx)

        if config.requires_actor_scope and not actor_id:
            raise EmailGuardError(f"Email context '{ctx.value}' requires an acting user", ctx.value)
        for address in [recipient, *copies]:
            if not address or "@" not in address:
                raise EmailGuardError("A valid recipient email address is required", ctx.value)

        profile = None
        recipient_type = None
        if config.requires_recipient_validation:
            profile = await self._directory.get_profile(actor_id)
            if not profile:
                raise EmailGuardError("Sender profile not found", ctx.value)
            recipient_type = await self._classify_recipient(ctx, config, profile, actor_id, recipient)
            own_email = (profile.get("email") or "").lower()
            for address in copies:
                if address.strip().lower() == own_email:
                    continue
                await self._classify_recipient(ctx, config, profile, actor_id, address)

        persona_actor = actor_id
        if config.uses_persona and profile and profile.get("role") == ROLE_TENANT:
            # Tenant mail to a trade carries the persona of the owner behind the job
            persona_actor = await self._directory.owner_for_assigned_trade(recipient, actor_id)
            if not persona_actor:
                raise EmailGuardError(
                    "No property owner found for this tradesperson's job at your property",
                    ctx.value,
                )

        sender = self.resolve_sender(ctx, persona_actor)
        return EmailAuthorization(ctx, config, sender, recipient_type)

    async def _classify_recipient(
        self,
        ctx: EmailContextType,
        config: EmailContextConfig,
        profile: Dict[str, Any],
        actor_id: str,
        recipient: str,
    ) -> RecipientType:
        role = profile.get("role")
        own_email = (profile.get("email") or "").lower()
        address = recipient.strip().lower()
        allowed = config.allowed_recipient_types

        if RecipientType.SELF in allowed and address == own_email:
            return RecipientType.SELF

        if RecipientType.OWNER in allowed:
            if role == ROLE_OWNER and address == own_email:
                return RecipientType.OWNER
            if role == ROLE_TENANT and await self._directory.is_owner_of_tenant(address, actor_id):
                return RecipientType.OWNER

        if RecipientType.TENANT in allowed:
            if await self._directory.is_tenant_of_owner(address, actor_id):
                return RecipientType.TENANT

        if RecipientType.TRADE in allowed:
            if role == ROLE_OWNER:
                if await self._directory.is_trade_of_owner(address, actor_id):
                    return RecipientType.TRADE
                raise EmailGuardError(
                    "Recipient email is not associated with any of your properties or trade "
                    "network. You can only email your own tenants and tradespeople.",
                    ctx.value,
                )
            if await self._directory.is_trade_assigned_to_tenant(address, actor_id):
                return RecipientType.TRADE
            raise EmailGuardError(
                "You can only email tradespeople who have been assigned to a job at your "
                "property. Please raise a maintenance request and your landlord or Casa "
                "will coordinate with trades on your behalf.",
                ctx.value,
            )

        allowed_names = ", ".join(sorted(t.value for t in allowed))
        raise EmailGuardError(
            f"Recipient is not a permitted {allowed_names} for email context '{ctx.value}'",
            ctx.value,
        )
