"""
Query handlers shipped with the framework.

Every query is scoped to the acting owner in SQL. A row that exists but
belongs to another owner is reported as "<Entity> not found", exactly
like a row that does not exist.
"""

import asyncio
import logging
from typing import Any, Dict, List

from ...models import ToolContext
from ...result import Failure, Success, ToolResult

logger = logging.getLogger(__name__)

_PROPERTY_COLUMNS = """
    p.id, p.address_line_1, p.address_line_2, p.suburb, p.state, p.postcode,
    p.property_type, p.bedrooms, p.bathrooms, p.parking_spaces,
    p.rent_amount, p.rent_frequency, p.bond_amount,
    p.status, p.notes, p.created_at, p.updated_at
"""


def _rows(records) -> List[Dict[str, Any]]:
    return [dict(r) for r in records]


async def _tenants_for(ctx: ToolContext, tenancy_id) -> List[Dict[str, Any]]:
    return _rows(await ctx.db.fetch(
        """
        SELECT tt.tenant_id, tt.is_primary, pr.full_name, pr.email, pr.phone
        FROM tenancy_tenants tt
        JOIN profiles pr ON pr.id = tt.tenant_id
        WHERE tt.tenancy_id = $1
        """,
        tenancy_id,
    ))


async def get_property(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    property_id = args.get("property_id")
    if not property_id:
        return Failure("Missing required parameter: property_id")

    row = await ctx.db.fetchrow(
        f"SELECT {_PROPERTY_COLUMNS} FROM properties p "
        "WHERE p.id = $1 AND p.owner_id = $2 AND p.deleted_at IS NULL",
        property_id, actor_id,
    )
    if not row:
        return Failure("Property not found")

    data = dict(row)
    includes = args.get("include") or []
    lookups = {}
    if "tenancy" in includes:
        lookups["tenancies"] = ctx.db.fetch(
            "SELECT id, status, rent_amount, rent_frequency, lease_start_date, lease_end_date "
            "FROM tenancies WHERE property_id = $1 ORDER BY lease_start_date DESC",
            property_id,
        )
    if "maintenance" in includes:
        lookups["maintenance_requests"] = ctx.db.fetch(
            "SELECT id, title, urgency, status, created_at FROM maintenance_requests "
            "WHERE property_id = $1 ORDER BY created_at DESC",
            property_id,
        )
    if "compliance" in includes:
        lookups["inspections"] = ctx.db.fetch(
            "SELECT id, inspection_type, status, scheduled_date, completed_at FROM inspections "
            "WHERE property_id = $1 ORDER BY scheduled_date DESC",
            property_id,
        )

    if lookups:
        results = await asyncio.gather(*lookups.values())
        for key, records in zip(lookups.keys(), results):
            data[key] = _rows(records)
    return Success(data)


async def get_properties(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    where = "p.owner_id = $1 AND p.deleted_at IS NULL"
    params: List[Any] = [actor_id]
    if args.get("status"):
        params.append(args["status"])
        where += f" AND p.status = ${len(params)}"

    rows = await ctx.db.fetch(
        f"SELECT {_PROPERTY_COLUMNS} FROM properties p WHERE {where} ORDER BY p.created_at DESC",
        *params,
    )
    properties = _rows(rows)
    return Success({"properties": properties, "count": len(properties)})


async def get_tenancy(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    tenancy_id = args.get("tenancy_id")
    property_id = args.get("property_id")
    if not tenancy_id and not property_id:
        return Failure("Missing required parameter: tenancy_id or property_id")

    if tenancy_id:
        condition, key = "t.id = $1", tenancy_id
    else:
        condition, key = "t.property_id = $1", property_id

    row = await ctx.db.fetchrow(
        f"""
        SELECT t.id, t.property_id, t.lease_start_date, t.lease_end_date, t.lease_type,
               t.is_periodic, t.rent_amount, t.rent_frequency, t.rent_due_day,
               t.bond_amount, t.bond_status, t.status, t.created_at,
               p.address_line_1, p.suburb, p.state
        FROM tenancies t
        JOIN properties p ON p.id = t.property_id
        WHERE {condition} AND p.owner_id = $2
        ORDER BY t.lease_start_date DESC
        LIMIT 1
        """,
        key, actor_id,
    )
    if not row:
        return Failure("Tenancy not found")

    data = dict(row)
    data["tenants"] = await _tenants_for(ctx, data["id"])
    return Success(data)


async def get_arrears_detail(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    arrears_id = args.get("arrears_id")
    tenancy_id = args.get("tenancy_id")
    if not arrears_id and not tenancy_id:
        return Failure("Missing required parameter: arrears_id or tenancy_id")

    condition = "a.id = $1" if arrears_id else "a.tenancy_id = $1 AND a.is_resolved = FALSE"
    row = await ctx.db.fetchrow(
        f"""
        SELECT a.*, t.rent_amount, p.address_line_1, p.suburb, p.state,
               pr.full_name AS tenant_name, pr.email AS tenant_email
        FROM arrears_records a
        JOIN tenancies t ON t.id = a.tenancy_id
        JOIN properties p ON p.id = t.property_id
        LEFT JOIN profiles pr ON pr.id = a.tenant_id
        WHERE {condition} AND p.owner_id = $2
        LIMIT 1
        """,
        arrears_id or tenancy_id, actor_id,
    )
    if not row:
        return Failure("Arrears record not found")

    data = dict(row)
    actions, plan = await asyncio.gather(
        ctx.db.fetch(
            "SELECT * FROM arrears_actions WHERE arrears_record_id = $1 ORDER BY created_at DESC",
            data["id"],
        ),
        ctx.db.fetchrow(
            "SELECT * FROM payment_plans WHERE arrears_record_id = $1 LIMIT 1",
            data["id"],
        ),
    )
    data["actions"] = _rows(actions)
    data["payment_plan"] = dict(plan) if plan else None
    return Success(data)


async def log_arrears_action(args: Dict[str, Any], actor_id: str, ctx: ToolContext) -> ToolResult:
    missing = [k for k in ("arrears_id", "action_type", "description") if not args.get(k)]
    if missing:
        return Failure(f"Missing required fields: {', '.join(missing)}")

    owned = await ctx.db.fetchrow(
        """
        SELECT a.id, a.tenant_id
        FROM arrears_records a
        JOIN tenancies t ON t.id = a.tenancy_id
        JOIN properties p ON p.id = t.property_id
        WHERE a.id = $1 AND p.owner_id = $2
        """,
        args["arrears_id"], actor_id,
    )
    if not owned:
        return Failure("Arrears record not found")

    row = await ctx.db.fetchrow(
        """
        INSERT INTO arrears_actions (arrears_record_id, action_type, description, is_automated)
        VALUES ($1, $2, $3, FALSE)
        RETURNING id, action_type, description, created_at
        """,
        args["arrears_id"], args["action_type"], args["description"],
    )
    data = dict(row)
    logger.info(f"Arrears action {data['action_type']} logged on {args['arrears_id']}")

    if ctx.notifier:
        ctx.notifier.dispatch(
            actor_id,
            "arrears_action_logged",
            "Arrears action logged",
            args["description"],
            {"arrears_id": args["arrears_id"], "action_type": data["action_type"]},
        )
    return Success(data)
