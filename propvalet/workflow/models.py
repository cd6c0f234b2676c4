"""
PropValet Workflow Models - Plans returned to the model for multi-step processes

A workflow plan is advice, not an executor: the framework never runs the
steps itself. The model reads the plan, calls each tool in turn, and stops
at any gate to wait or ask the owner.

Gates:
- owner_approval: present the step to the owner and wait for a yes
- threshold_check: run only if within the owner's auto-approve threshold
- wait_for_event: do not proceed until something external happens
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ApprovalGate(str, Enum):
    OWNER_APPROVAL = "owner_approval"
    THRESHOLD_CHECK = "threshold_check"
    WAIT_FOR_EVENT = "wait_for_event"


@dataclass
class PlanStep:
    """One suggested tool call in a workflow plan."""
    step: int
    tool: str
    description: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    gate: Optional[ApprovalGate] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "tool": self.tool,
            "description": self.description,
            "inputs": self.inputs,
            "gate": self.gate.value if self.gate else None,
        }


@dataclass
class WorkflowPlan:
    workflow: str
    relevant_state: Dict[str, Any] = field(default_factory=dict)
    steps: List[PlanStep] = field(default_factory=list)
    guidance: str = ""

    def add(
        self,
        tool: str,
        description: str,
        inputs: Optional[Dict[str, Any]] = None,
        gate: Optional[ApprovalGate] = None,
    ) -> PlanStep:
        """Append the next step, numbering from 1."""
        step = PlanStep(len(self.steps) + 1, tool, description, inputs or {}, gate)
        self.steps.append(step)
        return step

    @property
    def tools(self) -> List[str]:
        return [s.tool for s in self.steps]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relevant_state": self.relevant_state,
            "plan": [s.to_dict() for s in self.steps],
            "guidance": self.guidance,
        }
