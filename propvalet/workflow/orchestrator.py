"""
Workflow Orchestrator - returns state + plan for a named business process.

The orchestrator reads (never writes) the minimum state needed to reason
about the next step, always scoped to the acting owner, and hands back a
plan for the model to carry out. A root entity the actor does not own is
reported exactly like one that does not exist.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from ..audit_logger import AuditLogger
from ..constants import DEFAULT_AUTO_APPROVE_THRESHOLD
from ..db.repository import Repository
from ..result import Failure, Success, ToolResult
from .arrears import ArrearsLadder
from .definitions import WORKFLOWS, WorkflowDefinition

logger = logging.getLogger(__name__)


class WorkflowStateReader(Repository):
    """Ownership-scoped reads over the property-management tables."""

    TABLE_NAME = "properties"

    async def get_property(self, property_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        return await self._fetch_one(
            "id = $1 AND owner_id = $2 AND deleted_at IS NULL",
            (property_id, owner_id),
            columns="id, address_line_1, suburb, state, bedrooms, bathrooms, rent_amount",
        )

    async def get_open_listing(self, property_id: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            "SELECT id, status FROM listings "
            "WHERE property_id = $1 AND status IN ('draft', 'active') LIMIT 1",
            property_id,
        )
        return dict(row) if row else None

    async def get_application(self, application_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            """
            SELECT a.*, l.property_id, p.address_line_1, p.suburb, p.state
            FROM applications a
            JOIN listings l ON l.id = a.listing_id
            JOIN properties p ON p.id = l.property_id
            WHERE a.id = $1 AND l.owner_id = $2
            """,
            application_id, owner_id,
        )
        return dict(row) if row else None

    async def get_tenancy(self, tenancy_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            """
            SELECT t.*, p.address_line_1, p.suburb, p.state
            FROM tenancies t
            JOIN properties p ON p.id = t.property_id
            WHERE t.id = $1 AND p.owner_id = $2
            """,
            tenancy_id, owner_id,
        )
        return dict(row) if row else None

    async def get_maintenance_request(self, request_id: str, owner_id: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            """
            SELECT m.*, p.address_line_1, p.suburb, p.state, p.postcode
            FROM maintenance_requests m
            JOIN properties p ON p.id = m.property_id
            WHERE m.id = $1 AND p.owner_id = $2
            """,
            request_id, owner_id,
        )
        return dict(row) if row else None

    async def get_open_arrears(self, tenancy_id: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            "SELECT * FROM arrears_records WHERE tenancy_id = $1 AND is_resolved = FALSE LIMIT 1",
            tenancy_id,
        )
        return dict(row) if row else None

    async def get_arrears_actions(self, arrears_id: str) -> List[Dict[str, Any]]:
        rows = await self._db.fetch(
            "SELECT * FROM arrears_actions WHERE arrears_record_id = $1 ORDER BY created_at",
            arrears_id,
        )
        return [dict(r) for r in rows]

    async def get_maintenance_threshold_override(self, owner_id: str) -> Optional[float]:
        """The owner's maintenance_auto_approve_threshold, if they set one."""
        overrides = await self._db.fetchval(
            "SELECT category_overrides FROM agent_autonomy_settings WHERE user_id = $1",
            owner_id,
        )
        if isinstance(overrides, str):
            overrides = json.loads(overrides)
        if not overrides:
            return None
        value = overrides.get("maintenance_auto_approve_threshold")
        return float(value) if value is not None else None


class WorkflowOrchestrator:
    """
    Describes workflows for the model.

    Usage:
        orchestrator = WorkflowOrchestrator(WorkflowStateReader(db))
        result = await orchestrator.describe(
            "workflow_arrears_escalation", {"tenancy_id": "t-1"}, actor_id="owner-1"
        )
    """

    def __init__(
        self,
        reader: WorkflowStateReader,
        ladder: Optional[ArrearsLadder] = None,
        auto_approve_threshold: float = DEFAULT_AUTO_APPROVE_THRESHOLD,
        audit: Optional[AuditLogger] = None,
    ):
        self.reader = reader
        self.ladder = ladder or ArrearsLadder()
        self.auto_approve_threshold = auto_approve_threshold
        self._audit = audit or AuditLogger()
        self._loaders = {
            "workflow_find_tenant": self._load_find_tenant,
            "workflow_onboard_tenant": self._load_onboard_tenant,
            "workflow_end_tenancy": self._load_end_tenancy,
            "workflow_maintenance_lifecycle": self._load_maintenance,
            "workflow_arrears_escalation": self._load_arrears,
        }

    async def resolve_threshold(self, actor_id: str, requested: Any = None) -> float:
        """Explicit request, else the owner's override, else the configured default."""
        if requested is not None:
            return float(requested)
        override = await self.reader.get_maintenance_threshold_override(actor_id)
        return override if override is not None else float(self.auto_approve_threshold)

    async def describe(self, name: str, args: Dict[str, Any], actor_id: str) -> ToolResult:
        definition: Optional[WorkflowDefinition] = WORKFLOWS.get(name)
        if definition is None:
            return Failure(f"Unknown workflow: {name}")

        entity_id = args.get(definition.id_field)
        if not entity_id:
            return Failure(f"Missing required parameter: {definition.id_field}")

        state = await self._loaders[name](entity_id, args, actor_id)
        if state is None:
            return Failure(f"{definition.entity} not found")

        plan = definition.build(state, args)
        logger.info(f"Workflow {name} described for {actor_id}: {len(plan.steps)} step(s)")
        self._audit.log_workflow_described(name, len(plan.steps), actor_id=actor_id)

        payload = plan.to_dict()
        guidance = payload.pop("guidance")
        return Success(payload, guidance=guidance)

    # -- state loaders: None means the root entity is missing or not owned --

    async def _load_find_tenant(self, property_id, args, actor_id):
        prop, listing = await asyncio.gather(
            self.reader.get_property(property_id, actor_id),
            self.reader.get_open_listing(property_id),
        )
        if not prop:
            return None
        return {"property": prop, "existing_listing": listing}

    async def _load_onboard_tenant(self, application_id, args, actor_id):
        application = await self.reader.get_application(application_id, actor_id)
        return {"application": application} if application else None

    async def _load_end_tenancy(self, tenancy_id, args, actor_id):
        tenancy = await self.reader.get_tenancy(tenancy_id, actor_id)
        return {"tenancy": tenancy} if tenancy else None

    async def _load_maintenance(self, request_id, args, actor_id):
        request, threshold = await asyncio.gather(
            self.reader.get_maintenance_request(request_id, actor_id),
            self.resolve_threshold(actor_id, args.get("auto_approve_threshold")),
        )
        if not request:
            return None
        return {"request": request, "auto_approve_threshold": threshold}

    async def _load_arrears(self, tenancy_id, args, actor_id):
        tenancy = await self.reader.get_tenancy(tenancy_id, actor_id)
        if not tenancy:
            return None

        arrears = await self.reader.get_open_arrears(tenancy_id)
        if not arrears:
            return {"tenancy": tenancy, "arrears": None, "recommendation": None}

        actions = await self.reader.get_arrears_actions(arrears["id"])
        arrears["actions"] = actions
        days = args.get("current_days_overdue")
        if days is None:
            days = arrears.get("days_overdue") or 0
        recommendation = self.ladder.recommend(int(days), actions)
        return {"tenancy": tenancy, "arrears": arrears, "recommendation": recommendation}
