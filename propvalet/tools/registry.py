"""
PropValet Tool Registry - The fixed catalog of tool names the model may use.

The catalog is compiled into the process and read-only at runtime. A name
that is not in TOOL_META is a hallucinated tool; a name that is in TOOL_META
but has no handler is a known-but-disabled tool. Stub tools are registered
so the dispatcher can answer them with a workaround, but they are not
offered to the model.

Usage:
    registry = ToolRegistry.get_instance()
    meta = registry.get("get_property")
    registry.is_tool_allowed("terminate_lease", autonomy_level=2)  # False
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from .models import AutonomyLevel, RiskLevel, ToolCategory, ToolMeta

logger = logging.getLogger(__name__)


# Tools that need an external account we do not have yet. The message
# is returned verbatim to the model so it can offer the manual route.
STUB_MESSAGES: Mapping[str, str] = MappingProxyType({
    "syndicate_listing_domain": "Listing syndication to Domain.com.au is coming soon. For now, you can create your listing in Casa and manually post it to Domain.",
    "syndicate_listing_rea": "Listing syndication to realestate.com.au is coming soon. For now, you can create your listing in Casa and manually post it to REA.",
    "run_credit_check": "Automated credit checks via Equifax are coming soon. For now, you can request credit reports directly from equifax.com.au.",
    "run_tica_check": "Automated TICA tenancy checks are coming soon. For now, you can check tenant history directly at tica.com.au.",
    "collect_rent_stripe": "Automated rent collection is coming soon. Tenants can currently make payments through the tenant app.",
    "refund_payment_stripe": "Automated refunds are coming soon. For now, refunds need to be processed manually through your bank.",
    "send_docusign_envelope": "DocuSign integration is coming soon. You can still collect signatures using the in-app signature feature on any document.",
    "lodge_bond_state": "Automated bond lodgement with your state authority is coming soon. You can lodge bonds manually through your state fair trading website.",
    "send_sms_twilio": "SMS notifications are coming soon. You can still reach tenants via in-app messages, email, and push notifications.",
    "search_trades_hipages": "hipages integration is coming soon. I can still search the web to find local tradespeople for you.",
})

DEFAULT_STUB_MESSAGE = "This feature is coming soon."


def _meta(
    name: str,
    category: ToolCategory,
    autonomy: int,
    risk: RiskLevel,
    reversible: bool,
    compensation_tool: Optional[str] = None,
) -> ToolMeta:
    return ToolMeta(
        name=name,
        category=category,
        autonomy_level=AutonomyLevel(autonomy),
        risk_level=risk,
        reversible=reversible,
        compensation_tool=compensation_tool,
        is_stub=name in STUB_MESSAGES,
    )


_CATALOG: List[ToolMeta] = [
    # query
    _meta("get_property", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_properties", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("search_tenants", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_tenancy", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_tenancy_detail", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_payments", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_rent_schedule", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_arrears", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_arrears_detail", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_maintenance", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_maintenance_detail", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_quotes", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_inspections", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_inspection_detail", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_listings", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_listing_detail", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_applications", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_application_detail", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_conversations", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_conversation_messages", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_compliance_status", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_financial_summary", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_transactions", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_trades", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_work_orders", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_expenses", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_payment_plan", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_documents", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_background_tasks", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("get_pending_actions", ToolCategory.QUERY, 4, RiskLevel.NONE, False),
    _meta("check_maintenance_threshold", ToolCategory.QUERY, 3, RiskLevel.NONE, False),
    _meta("check_regulatory_requirements", ToolCategory.QUERY, 3, RiskLevel.NONE, False),

    # action
    _meta("create_property", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, True, compensation_tool="delete_property"),
    _meta("update_property", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("delete_property", ToolCategory.ACTION, 0, RiskLevel.HIGH, True),
    _meta("create_tenancy", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("update_tenancy", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, True),
    _meta("terminate_lease", ToolCategory.ACTION, 0, RiskLevel.CRITICAL, False),
    _meta("renew_lease", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("create_listing", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, True),
    _meta("update_listing", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("publish_listing", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, True, compensation_tool="pause_listing"),
    _meta("pause_listing", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("send_message", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, False),
    _meta("create_conversation", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, False),
    _meta("send_in_app_message", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, False),
    _meta("send_rent_reminder", ToolCategory.ACTION, 3, RiskLevel.LOW, False),
    _meta("send_breach_notice", ToolCategory.ACTION, 0, RiskLevel.HIGH, False),
    _meta("create_maintenance", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("update_maintenance_status", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("add_maintenance_comment", ToolCategory.ACTION, 3, RiskLevel.LOW, False),
    _meta("record_maintenance_cost", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("schedule_inspection", ToolCategory.ACTION, 3, RiskLevel.LOW, True, compensation_tool="cancel_inspection"),
    _meta("cancel_inspection", ToolCategory.ACTION, 2, RiskLevel.LOW, False),
    _meta("record_inspection_finding", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("submit_inspection_to_tenant", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, False),
    _meta("finalize_inspection", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, False),
    _meta("create_work_order", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, True),
    _meta("update_work_order_status", ToolCategory.ACTION, 2, RiskLevel.LOW, False),
    _meta("approve_quote", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("reject_quote", ToolCategory.ACTION, 2, RiskLevel.LOW, False),
    _meta("accept_application", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("reject_application", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("shortlist_application", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, True),
    _meta("create_payment_plan", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, True),
    _meta("escalate_arrears", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("resolve_arrears", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, False),
    _meta("log_arrears_action", ToolCategory.ACTION, 3, RiskLevel.LOW, False),
    _meta("create_rent_increase", ToolCategory.ACTION, 1, RiskLevel.HIGH, True),
    _meta("change_rent_amount", ToolCategory.ACTION, 0, RiskLevel.HIGH, False),
    _meta("record_compliance", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("add_trade_to_network", ToolCategory.ACTION, 2, RiskLevel.NONE, True),
    _meta("submit_trade_review", ToolCategory.ACTION, 2, RiskLevel.LOW, True),
    _meta("invite_tenant", ToolCategory.ACTION, 2, RiskLevel.MEDIUM, False),
    _meta("process_payment", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),
    _meta("lodge_bond", ToolCategory.ACTION, 1, RiskLevel.HIGH, False),

    # generate
    _meta("generate_listing", ToolCategory.GENERATE, 2, RiskLevel.NONE, False),
    _meta("draft_message", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("score_application", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("rank_applications", ToolCategory.GENERATE, 2, RiskLevel.NONE, False),
    _meta("triage_maintenance", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("estimate_cost", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("analyze_rent", ToolCategory.GENERATE, 2, RiskLevel.NONE, False),
    _meta("suggest_rent_price", ToolCategory.GENERATE, 2, RiskLevel.NONE, False),
    _meta("generate_notice", ToolCategory.GENERATE, 0, RiskLevel.HIGH, False),
    _meta("generate_inspection_report", ToolCategory.GENERATE, 2, RiskLevel.NONE, False),
    _meta("compare_inspections", ToolCategory.GENERATE, 2, RiskLevel.NONE, False),
    _meta("generate_financial_report", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("generate_tax_report", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("generate_property_summary", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("generate_lease", ToolCategory.GENERATE, 1, RiskLevel.MEDIUM, False),
    _meta("assess_tenant_damage", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),
    _meta("compare_quotes", ToolCategory.GENERATE, 3, RiskLevel.NONE, False),

    # external
    _meta("web_search", ToolCategory.EXTERNAL, 3, RiskLevel.NONE, False),
    _meta("find_local_trades", ToolCategory.EXTERNAL, 3, RiskLevel.LOW, False),
    _meta("parse_business_details", ToolCategory.EXTERNAL, 3, RiskLevel.NONE, False),
    _meta("create_service_provider", ToolCategory.EXTERNAL, 1, RiskLevel.LOW, True),
    _meta("request_quote", ToolCategory.EXTERNAL, 1, RiskLevel.MEDIUM, False),
    _meta("get_market_data", ToolCategory.EXTERNAL, 3, RiskLevel.NONE, False),

    # workflow
    _meta("workflow_find_tenant", ToolCategory.WORKFLOW, 1, RiskLevel.MEDIUM, False),
    _meta("workflow_onboard_tenant", ToolCategory.WORKFLOW, 1, RiskLevel.HIGH, False),
    _meta("workflow_end_tenancy", ToolCategory.WORKFLOW, 1, RiskLevel.HIGH, False),
    _meta("workflow_maintenance_lifecycle", ToolCategory.WORKFLOW, 2, RiskLevel.MEDIUM, False),
    _meta("workflow_arrears_escalation", ToolCategory.WORKFLOW, 1, RiskLevel.HIGH, False),

    # memory
    _meta("remember", ToolCategory.MEMORY, 4, RiskLevel.NONE, True),
    _meta("recall", ToolCategory.MEMORY, 4, RiskLevel.NONE, False),
    _meta("search_precedent", ToolCategory.MEMORY, 4, RiskLevel.NONE, False),

    # planning
    _meta("plan_task", ToolCategory.PLANNING, 3, RiskLevel.NONE, False),
    _meta("get_owner_rules", ToolCategory.PLANNING, 4, RiskLevel.NONE, False),
    _meta("check_plan", ToolCategory.PLANNING, 4, RiskLevel.NONE, False),
    _meta("replan", ToolCategory.PLANNING, 3, RiskLevel.NONE, False),

    # action
    _meta("send_receipt", ToolCategory.ACTION, 4, RiskLevel.NONE, False),
    _meta("retry_payment", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, False),
    _meta("claim_bond", ToolCategory.ACTION, 0, RiskLevel.HIGH, False),
    _meta("update_autopay", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, True),
    _meta("cancel_rent_increase", ToolCategory.ACTION, 1, RiskLevel.MEDIUM, False),

    # integration
    _meta("syndicate_listing_domain", ToolCategory.INTEGRATION, 1, RiskLevel.MEDIUM, True),
    _meta("syndicate_listing_rea", ToolCategory.INTEGRATION, 1, RiskLevel.MEDIUM, True),
    _meta("run_credit_check", ToolCategory.INTEGRATION, 1, RiskLevel.LOW, False),
    _meta("run_tica_check", ToolCategory.INTEGRATION, 1, RiskLevel.LOW, False),
    _meta("collect_rent_stripe", ToolCategory.INTEGRATION, 1, RiskLevel.HIGH, False),
    _meta("refund_payment_stripe", ToolCategory.INTEGRATION, 0, RiskLevel.HIGH, False),
    _meta("send_docusign_envelope", ToolCategory.INTEGRATION, 1, RiskLevel.MEDIUM, False),
    _meta("lodge_bond_state", ToolCategory.INTEGRATION, 0, RiskLevel.HIGH, False),
    _meta("send_sms_twilio", ToolCategory.INTEGRATION, 1, RiskLevel.LOW, False),
    _meta("send_email", ToolCategory.INTEGRATION, 2, RiskLevel.LOW, False),
    _meta("send_push_expo", ToolCategory.INTEGRATION, 3, RiskLevel.NONE, False),
    _meta("search_trades_hipages", ToolCategory.INTEGRATION, 4, RiskLevel.NONE, False),
]

TOOL_META: Mapping[str, ToolMeta] = MappingProxyType({m.name: m for m in _CATALOG})


class ToolRegistry:
    """
    Read-only view over TOOL_META.

    Singleton by convention (``get_instance``); tests may build their own
    instance over a custom catalog.
    """

    _instance: Optional["ToolRegistry"] = None

    def __init__(self, catalog: Optional[Mapping[str, ToolMeta]] = None):
        self._meta: Mapping[str, ToolMeta] = catalog if catalog is not None else TOOL_META

    @classmethod
    def get_instance(cls) -> "ToolRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get(self, name: str) -> Optional[ToolMeta]:
        """Return the metadata for ``name`` or None if it is not a known tool."""
        return self._meta.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._meta

    def __len__(self) -> int:
        return len(self._meta)

    def names(self) -> List[str]:
        return list(self._meta.keys())

    def names_by_category(self, category: ToolCategory) -> List[str]:
        category = ToolCategory(category)
        return [name for name, meta in self._meta.items() if meta.category == category]

    def visible_tools(self) -> List[ToolMeta]:
        """Tools offered to the model. Stubs are discoverable but hidden."""
        return [meta for meta in self._meta.values() if not meta.is_stub]

    def is_tool_allowed(self, name: str, autonomy_level: int) -> bool:
        """Whether ``name`` may run without approval at the owner's autonomy level."""
        meta = self._meta.get(name)
        if meta is None:
            return False
        return int(autonomy_level) >= int(meta.autonomy_level)

    def stub_message(self, name: str) -> str:
        return STUB_MESSAGES.get(name, DEFAULT_STUB_MESSAGE)
