"""
Workflow definitions - the fixed plans for each named business process.

Each builder takes the state the orchestrator loaded plus the caller's
arguments and returns a WorkflowPlan. Builders only describe; they never
call tools.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .arrears import OWNER_APPROVAL_RUNGS, RUNG_ACTION_TYPES, LadderAction, LadderRecommendation
from .models import ApprovalGate, WorkflowPlan

PlanBuilder = Callable[[Dict[str, Any], Dict[str, Any]], WorkflowPlan]


def _id(row: Optional[Dict[str, Any]], key: str = "id") -> Optional[Any]:
    return row.get(key) if row else None


def build_find_tenant(state: Dict[str, Any], args: Dict[str, Any]) -> WorkflowPlan:
    prop = state["property"]
    listing = state.get("existing_listing")
    plan = WorkflowPlan("workflow_find_tenant", relevant_state={
        "property": prop,
        "existing_listing": listing,
        "preferences": args.get("preferences") or {},
    })

    if listing:
        plan.add("update_listing", "Refresh the existing listing with any changed details",
                 {"listing_id": listing["id"]}, ApprovalGate.OWNER_APPROVAL)
        listing_ref = listing["id"]
    else:
        plan.add("create_listing", "Create a listing for the property",
                 {"property_id": prop["id"]}, ApprovalGate.OWNER_APPROVAL)
        listing_ref = "<listing_id from create_listing>"

    plan.add("generate_listing", "Write compelling listing copy from the property details",
             {"property_id": prop["id"]})
    if not listing or listing.get("status") != "active":
        plan.add("publish_listing", "Publish the listing",
                 {"listing_id": listing_ref}, ApprovalGate.OWNER_APPROVAL)
    plan.add("score_application", "Score each application as it arrives",
             {"listing_id": listing_ref}, ApprovalGate.WAIT_FOR_EVENT)
    plan.add("rank_applications", "Rank scored applications and present a shortlist",
             {"listing_id": listing_ref}, ApprovalGate.OWNER_APPROVAL)

    plan.guidance = (
        "Execute the find-tenant workflow step by step. Report back after each step "
        "and ask for approval before any step marked owner_approval."
    )
    return plan


def build_onboard_tenant(state: Dict[str, Any], args: Dict[str, Any]) -> WorkflowPlan:
    application = state["application"]
    property_id = application.get("property_id")
    move_in = args.get("move_in_date")
    plan = WorkflowPlan("workflow_onboard_tenant", relevant_state={
        "application": application,
        "move_in_date": move_in,
    })

    plan.add("create_tenancy", "Create the tenancy from the accepted application",
             {"application_id": application["id"], "property_id": property_id,
              "lease_start_date": move_in}, ApprovalGate.OWNER_APPROVAL)
    plan.add("generate_lease", "Generate the lease for signing",
             {"tenancy_id": "<tenancy_id from create_tenancy>"})
    plan.add("lodge_bond", "Lodge the bond with the state authority",
             {"tenancy_id": "<tenancy_id from create_tenancy>"})
    plan.add("schedule_inspection", "Schedule the entry condition inspection",
             {"property_id": property_id, "inspection_type": "entry"})
    plan.add("invite_tenant", "Invite the tenant to the app",
             {"property_id": property_id, "email": application.get("email")})

    plan.guidance = (
        "Execute the tenant onboarding workflow in order; each later step needs the "
        "tenancy created in step 1. Report progress after each step."
    )
    return plan


def build_end_tenancy(state: Dict[str, Any], args: Dict[str, Any]) -> WorkflowPlan:
    tenancy = state["tenancy"]
    relist = bool(args.get("relist", False))
    plan = WorkflowPlan("workflow_end_tenancy", relevant_state={"tenancy": tenancy, "relist": relist})

    plan.add("schedule_inspection", "Schedule the exit inspection",
             {"property_id": tenancy.get("property_id"), "inspection_type": "exit"})
    plan.add("compare_inspections", "Compare exit against entry inspection once the exit inspection is done",
             {"tenancy_id": tenancy["id"]}, ApprovalGate.WAIT_FOR_EVENT)
    plan.add("claim_bond", "Claim or return the bond based on the comparison",
             {"tenancy_id": tenancy["id"]}, ApprovalGate.OWNER_APPROVAL)
    plan.add("terminate_lease", "Terminate the lease",
             {"tenancy_id": tenancy["id"]}, ApprovalGate.OWNER_APPROVAL)
    if relist:
        plan.add("workflow_find_tenant", "Start finding the next tenant",
                 {"property_id": tenancy.get("property_id")})

    plan.guidance = "Execute the end-tenancy workflow. Report at each step."
    return plan


def build_maintenance_lifecycle(state: Dict[str, Any], args: Dict[str, Any]) -> WorkflowPlan:
    request = state["request"]
    threshold = state["auto_approve_threshold"]
    plan = WorkflowPlan("workflow_maintenance_lifecycle", relevant_state={
        "request": request,
        "auto_approve_threshold": threshold,
    })

    plan.add("triage_maintenance", "Triage urgency and trade category", {"request_id": request["id"]})
    plan.add("find_local_trades", "Find suitable local trades",
             {"category": request.get("category"), "suburb": request.get("suburb")})
    plan.add("create_service_provider", "Add any new trades found to the network",
             {"request_id": request["id"]})
    plan.add("request_quote", "Request quotes from the top trades (owner CC'd)",
             {"request_id": request["id"]})
    plan.add("compare_quotes", "Compare quotes once they arrive",
             {"request_id": request["id"]}, ApprovalGate.WAIT_FOR_EVENT)
    plan.add("approve_quote",
             f"Approve the best quote if it is within the ${threshold:g} auto-approve threshold; "
             "otherwise present the options to the owner",
             {"request_id": request["id"]}, ApprovalGate.THRESHOLD_CHECK)
    plan.add("create_work_order", "Send the work order to the chosen trade (owner CC'd)",
             {"request_id": request["id"]})
    plan.add("update_work_order_status", "Track the work order through to completion",
             {"request_id": request["id"]}, ApprovalGate.WAIT_FOR_EVENT)

    plan.guidance = (
        "Execute the maintenance lifecycle. Use check_maintenance_threshold before "
        "approving any quote. CC the tenant on scheduling emails so they can arrange "
        "access. Report at each step."
    )
    return plan


def build_arrears_escalation(state: Dict[str, Any], args: Dict[str, Any]) -> WorkflowPlan:
    tenancy = state["tenancy"]
    arrears = state.get("arrears")
    rec: Optional[LadderRecommendation] = state.get("recommendation")
    plan = WorkflowPlan("workflow_arrears_escalation", relevant_state={
        "tenancy": tenancy,
        "arrears": arrears,
        "recommendation": rec.to_dict() if rec else None,
    })

    if not arrears:
        plan.guidance = "There is no unresolved arrears record for this tenancy. Nothing to escalate."
        return plan

    if rec.action == LadderAction.EXECUTE:
        gate = ApprovalGate.OWNER_APPROVAL if rec.rung in OWNER_APPROVAL_RUNGS else None
        plan.add(rec.tool, f"Take the {rec.rung.value.replace('_', ' ')} step",
                 {"tenancy_id": tenancy["id"], "arrears_id": arrears["id"]}, gate)
        plan.add("log_arrears_action", "Log the step against the arrears record",
                 {"arrears_id": arrears["id"], "action_type": RUNG_ACTION_TYPES[rec.rung]})
    elif rec.action == LadderAction.WAIT:
        plan.add("get_arrears_detail",
                 f"Re-check in {rec.days_until_next} day(s) before {rec.next_rung.value.replace('_', ' ')}",
                 {"arrears_id": arrears["id"]}, ApprovalGate.WAIT_FOR_EVENT)

    plan.guidance = (
        f"{rec.describe()} Do not repeat steps that have already been taken. "
        "Always log each action with log_arrears_action."
    )
    return plan


@dataclass(frozen=True)
class WorkflowDefinition:
    name: str
    entity: str         # used in the "<Entity> not found" failure
    id_field: str       # required input naming the root entity
    build: PlanBuilder


WORKFLOWS: Mapping[str, WorkflowDefinition] = {
    d.name: d for d in (
        WorkflowDefinition("workflow_find_tenant", "Property", "property_id", build_find_tenant),
        WorkflowDefinition("workflow_onboard_tenant", "Application", "application_id", build_onboard_tenant),
        WorkflowDefinition("workflow_end_tenancy", "Tenancy", "tenancy_id", build_end_tenancy),
        WorkflowDefinition("workflow_maintenance_lifecycle", "Request", "request_id", build_maintenance_lifecycle),
        WorkflowDefinition("workflow_arrears_escalation", "Tenancy", "tenancy_id", build_arrears_escalation),
    )
}
