"""
Tests for EmailContextGuard.

Covers:
- Context and actor checks that happen before any lookup
- Recipient classification per actor role
- Sender resolution (system vs. persona)
- Audit of both allowed and refused decisions
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from propvalet.email import (
    EmailContextGuard,
    EmailContextType,
    RecipientType,
    SenderIdentity,
    persona_for_actor,
    resolve_sender,
)
from propvalet.errors import EmailGuardError


def _make_directory(role="owner", email="owner@example.com", tenant=False,
                    owner_of_tenant=False, trade=False, assigned_trade=False, job_owner="owner-1"):
    directory = MagicMock()
    directory.get_profile = AsyncMock(
        return_value={"id": "actor-1", "email": email, "role": role} if role else None
    )
    directory.is_tenant_of_owner = AsyncMock(return_value=tenant)
    directory.is_owner_of_tenant = AsyncMock(return_value=owner_of_tenant)
    directory.is_trade_of_owner = AsyncMock(return_value=trade)
    directory.is_trade_assigned_to_tenant = AsyncMock(return_value=assigned_trade)
    directory.owner_for_assigned_trade = AsyncMock(return_value=job_owner)
    return directory


def _make_guard(directory=None, audit=None):
    return EmailContextGuard(directory or _make_directory(), audit=audit or MagicMock())


# ── Tests: sender resolution ──


class TestResolveSender:

    def test_system_context(self):
        sender = resolve_sender("rent_reminder", "owner-1")
        assert sender == SenderIdentity("noreply@casaapp.com.au", "Casa")
        assert sender.formatted == "Casa <noreply@casaapp.com.au>"

    def test_system_context_without_actor(self):
        assert resolve_sender("payment_receipt").persona is None

    def test_persona_context(self):
        sender = resolve_sender("trade_quote_request", "owner-1")
        persona = persona_for_actor("owner-1")
        assert sender.persona == persona
        assert sender.from_address == persona.address
        assert sender.from_name == persona.display_name

    def test_persona_domain_override(self):
        sender = resolve_sender("trade_followup", "owner-1", persona_domain="mail.example.com")
        assert sender.from_address.endswith("@mail.example.com")

    def test_persona_context_requires_actor(self):
        with pytest.raises(EmailGuardError):
            resolve_sender("trade_work_order", None)

    def test_unknown_context(self):
        with pytest.raises(EmailGuardError) as exc_info:
            resolve_sender("send_arbitrary_email", "owner-1")
        assert exc_info.value.context_type == "send_arbitrary_email"


# ── Tests: authorize ──


class TestAuthorizePreconditions:

    @pytest.mark.asyncio
    async def test_unknown_context_rejected_before_lookup(self):
        directory = _make_directory()
        guard = _make_guard(directory)

        with pytest.raises(EmailGuardError) as exc_info:
            await guard.authorize("send_arbitrary_email", "owner-1", "anyone@example.com")

        assert "not an allowed email context" in exc_info.value.reason
        directory.get_profile.assert_not_called()

    @pytest.mark.asyncio
    async def test_actor_required(self):
        with pytest.raises(EmailGuardError, match="requires an acting user"):
            await _make_guard().authorize("rent_reminder", None, "tenant@example.com")

    @pytest.mark.asyncio
    async def test_recipient_must_look_like_email(self):
        with pytest.raises(EmailGuardError, match="valid recipient"):
            await _make_guard().authorize("rent_reminder", "owner-1", "not-an-address")

    @pytest.mark.asyncio
    async def test_missing_sender_profile(self):
        guard = _make_guard(_make_directory(role=None))
        with pytest.raises(EmailGuardError, match="Sender profile not found"):
            await guard.authorize("rent_reminder", "owner-1", "tenant@example.com")

    @pytest.mark.asyncio
    async def test_connection_code_skips_recipient_lookup(self):
        directory = _make_directory()
        auth = await _make_guard(directory).authorize("connection_code", "owner-1", "new@example.com")

        assert auth.recipient_type is None
        directory.get_profile.assert_not_called()


class TestRecipientRules:

    @pytest.mark.asyncio
    async def test_owner_to_own_tenant(self):
        guard = _make_guard(_make_directory(tenant=True))
        auth = await guard.authorize("rent_reminder", "owner-1", "tenant@example.com")

        assert auth.context_type == EmailContextType.RENT_REMINDER
        assert auth.recipient_type == RecipientType.TENANT
        assert auth.sender.persona is None

    @pytest.mark.asyncio
    async def test_owner_to_foreign_tenant(self):
        guard = _make_guard(_make_directory(tenant=False))
        with pytest.raises(EmailGuardError, match="not a permitted tenant"):
            await guard.authorize("rent_reminder", "owner-1", "stranger@example.com")

    @pytest.mark.asyncio
    async def test_owner_emailing_self(self):
        guard = _make_guard(_make_directory(email="Owner@Example.com"))
        auth = await guard.authorize("compliance_reminder", "owner-1", "owner@example.com")
        assert auth.recipient_type == RecipientType.OWNER

    @pytest.mark.asyncio
    async def test_tenant_to_their_owner(self):
        directory = _make_directory(role="tenant", email="tenant@example.com", owner_of_tenant=True)
        auth = await _make_guard(directory).authorize("payment_received", "tenant-1", "owner@example.com")

        assert auth.recipient_type == RecipientType.OWNER
        directory.is_owner_of_tenant.assert_awaited_once_with("owner@example.com", "tenant-1")

    @pytest.mark.asyncio
    async def test_owner_to_network_trade(self):
        directory = _make_directory(trade=True)
        auth = await _make_guard(directory).authorize("trade_quote_request", "owner-1", "fixit@example.com")

        assert auth.recipient_type == RecipientType.TRADE
        assert auth.sender.persona == persona_for_actor("owner-1")

    @pytest.mark.asyncio
    async def test_owner_to_unknown_trade(self):
        guard = _make_guard(_make_directory(trade=False))
        with pytest.raises(EmailGuardError, match="trade network"):
            await guard.authorize("trade_quote_request", "owner-1", "random@example.com")

    @pytest.mark.asyncio
    async def test_tenant_to_assigned_trade(self):
        directory = _make_directory(role="tenant", email="tenant@example.com", assigned_trade=True)
        auth = await _make_guard(directory).authorize("owner_to_trade", "tenant-1", "fixit@example.com")
        assert auth.recipient_type == RecipientType.TRADE
        directory.is_trade_of_owner.assert_not_called()

    @pytest.mark.asyncio
    async def test_tenant_to_unassigned_trade(self):
        directory = _make_directory(role="tenant", email="tenant@example.com")
        with pytest.raises(EmailGuardError, match="raise a maintenance request"):
            await _make_guard(directory).authorize("owner_to_trade", "tenant-1", "fixit@example.com")


class TestCopies:

    @pytest.mark.asyncio
    async def test_tenant_bcc_to_stranger_refused(self):
        directory = _make_directory(role="tenant", email="tenant@example.com")
        directory.is_trade_assigned_to_tenant = AsyncMock(
            side_effect=lambda email, tenant_id: email == "fixit@example.com"
        )

        with pytest.raises(EmailGuardError, match="raise a maintenance request"):
            await _make_guard(directory).authorize(
                "owner_to_trade", "tenant-1", "fixit@example.com",
                copies=["stranger@evil.com"],
            )

    @pytest.mark.asyncio
    async def test_owner_cc_to_unrelated_address_refused(self):
        directory = _make_directory()
        directory.is_tenant_of_owner = AsyncMock(
            side_effect=lambda email, owner_id: email == "tenant@example.com"
        )

        with pytest.raises(EmailGuardError):
            await _make_guard(directory).authorize(
                "rent_reminder", "owner-1", "tenant@example.com", copies=["someone@else.com"],
            )

    @pytest.mark.asyncio
    async def test_malformed_copy_refused(self):
        with pytest.raises(EmailGuardError, match="valid recipient"):
            await _make_guard(_make_directory(tenant=True)).authorize(
                "rent_reminder", "owner-1", "tenant@example.com", copies=["nobody"],
            )

    @pytest.mark.asyncio
    async def test_actor_may_copy_themself(self):
        directory = _make_directory(trade=True)
        directory.is_trade_of_owner = AsyncMock(
            side_effect=lambda email, owner_id: email == "fixit@example.com"
        )

        auth = await _make_guard(directory).authorize(
            "trade_quote_request", "owner-1", "fixit@example.com", copies=["Owner@Example.com"],
        )

        assert auth.recipient_type == RecipientType.TRADE

    @pytest.mark.asyncio
    async def test_every_allowed_copy_is_checked(self):
        directory = _make_directory(tenant=True)

        await _make_guard(directory).authorize(
            "rent_reminder", "owner-1", "tenant@example.com",
            copies=["cotenant@example.com", "guarantor@example.com"],
        )

        checked = [c.args[0] for c in directory.is_tenant_of_owner.await_args_list]
        assert checked == ["tenant@example.com", "cotenant@example.com", "guarantor@example.com"]


class TestTenantPersona:

    @pytest.mark.asyncio
    async def test_tenant_trade_mail_uses_job_owner_persona(self):
        directory = _make_directory(
            role="tenant", email="tenant@example.com", assigned_trade=True, job_owner="owner-7"
        )

        auth = await _make_guard(directory).authorize("owner_to_trade", "tenant-1", "fixit@example.com")

        assert auth.sender.persona == persona_for_actor("owner-7")
        directory.owner_for_assigned_trade.assert_awaited_once_with("fixit@example.com", "tenant-1")

    @pytest.mark.asyncio
    async def test_tenant_trade_mail_without_job_owner_refused(self):
        directory = _make_directory(
            role="tenant", email="tenant@example.com", assigned_trade=True, job_owner=None
        )

        with pytest.raises(EmailGuardError, match="No property owner"):
            await _make_guard(directory).authorize("owner_to_trade", "tenant-1", "fixit@example.com")

    @pytest.mark.asyncio
    async def test_owner_trade_mail_uses_own_persona(self):
        directory = _make_directory(trade=True)

        auth = await _make_guard(directory).authorize("trade_quote_request", "owner-1", "fixit@example.com")

        assert auth.sender.persona == persona_for_actor("owner-1")
        directory.owner_for_assigned_trade.assert_not_called()


class TestAudit:

    @pytest.mark.asyncio
    async def test_allowed_decision_audited(self):
        audit = MagicMock()
        guard = _make_guard(_make_directory(tenant=True), audit=audit)

        await guard.authorize("rent_reminder", "owner-1", "tenant@example.com")

        kwargs = audit.log_email_decision.call_args.kwargs
        assert kwargs["allowed"] is True
        assert kwargs["recipient_type"] == "tenant"

    @pytest.mark.asyncio
    async def test_refusal_audited_and_reraised(self):
        audit = MagicMock()
        guard = _make_guard(audit=audit)

        with pytest.raises(EmailGuardError):
            await guard.authorize("send_arbitrary_email", "owner-1", "x@example.com")

        kwargs = audit.log_email_decision.call_args.kwargs
        assert kwargs["allowed"] is False
        assert kwargs["context_type"] == "send_arbitrary_email"
