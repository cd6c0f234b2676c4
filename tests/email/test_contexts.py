"""Tests for the email context allowlist and personas."""

import pytest

from propvalet.email import (
    EMAIL_CONTEXT_CONFIG,
    PERSONAS,
    EmailContextType,
    RecipientType,
    SenderPolicy,
    get_context_config,
    is_valid_context,
    persona_for_actor,
)
from propvalet.email.contexts import parse_context
from propvalet.email.personas import fnv1a_32, trade_subject


class TestContextAllowlist:

    def test_every_context_configured(self):
        assert set(EMAIL_CONTEXT_CONFIG) == set(EmailContextType)
        assert len(EMAIL_CONTEXT_CONFIG) == 22

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            EMAIL_CONTEXT_CONFIG[EmailContextType.RENT_REMINDER] = None

    def test_no_arbitrary_context(self):
        assert is_valid_context("send_arbitrary_email") is False
        assert get_context_config("send_arbitrary_email") is None

    def test_lookup_is_total(self):
        for value in (None, 42, "", "RENT_REMINDER", ["rent_reminder"]):
            assert get_context_config(value) is None

    def test_parse_accepts_enum_and_string(self):
        assert parse_context("trade_followup") is EmailContextType.TRADE_FOLLOWUP
        assert parse_context(EmailContextType.TRADE_FOLLOWUP) is EmailContextType.TRADE_FOLLOWUP

    def test_trade_contexts_use_persona(self):
        for ctx in EmailContextType:
            config = EMAIL_CONTEXT_CONFIG[ctx]
            if ctx.value.startswith("trade_") or ctx == EmailContextType.OWNER_TO_TRADE:
                assert config.sender_policy == SenderPolicy.PERSONA
                assert config.allowed_recipient_types == frozenset({RecipientType.TRADE})
            else:
                assert config.sender_policy == SenderPolicy.SYSTEM
                assert config.uses_persona is False

    def test_connection_code_skips_recipient_validation(self):
        assert get_context_config("connection_code").requires_recipient_validation is False
        assert get_context_config("rent_reminder").requires_recipient_validation is True

    def test_payment_received_goes_to_owner_or_tenant(self):
        allowed = get_context_config("payment_received").allowed_recipient_types
        assert allowed == frozenset({RecipientType.OWNER, RecipientType.TENANT})


class TestPersonas:

    def test_fnv1a_reference_values(self):
        assert fnv1a_32("") == 0x811C9DC5
        assert fnv1a_32("a") == 0xE40C292C

    def test_fnv1a_fits_32_bits(self):
        assert 0 <= fnv1a_32("9b2f1c2e-2a8d-4c3e-9f10-3d6f1b7e8a11") <= 0xFFFFFFFF

    def test_persona_is_stable_per_actor(self):
        assert persona_for_actor("owner-1") == persona_for_actor("owner-1")
        assert persona_for_actor("owner-1") in PERSONAS

    def test_persona_index_from_hash(self):
        assert persona_for_actor("a") == PERSONAS[0xE40C292C % len(PERSONAS)]

    def test_actors_spread_across_pool(self):
        chosen = {persona_for_actor(f"owner-{i}").display_name for i in range(200)}
        assert len(chosen) == len(PERSONAS)

    def test_empty_pool(self):
        with pytest.raises(ValueError):
            persona_for_actor("owner-1", pool=())

    def test_persona_address_and_signature(self):
        sarah = PERSONAS[0]
        assert sarah.address == "sarah@casaapp.com.au"
        assert "Sarah Mitchell" in sarah.signature_html
        assert sarah.signature.splitlines()[1] == "Property Coordinator, Casa"


class TestTradeSubject:

    def test_quote_request(self):
        subject = trade_subject("quote_request", "Leaking tap", "12 Smith St")
        assert subject.startswith("Quote Request: Leaking tap")
        assert subject.endswith("12 Smith St")

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            trade_subject("invoice", "Leaking tap", "12 Smith St")
