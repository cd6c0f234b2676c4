"""PropValet workflow - plan guidance for multi-step business processes."""

from .arrears import ArrearsLadder, ArrearsRung, LadderAction, LadderRecommendation
from .definitions import WORKFLOWS, WorkflowDefinition
from .models import ApprovalGate, PlanStep, WorkflowPlan
from .orchestrator import WorkflowOrchestrator, WorkflowStateReader

__all__ = [
    "ArrearsLadder",
    "ArrearsRung",
    "LadderAction",
    "LadderRecommendation",
    "WORKFLOWS",
    "WorkflowDefinition",
    "ApprovalGate",
    "PlanStep",
    "WorkflowPlan",
    "WorkflowOrchestrator",
    "WorkflowStateReader",
]
