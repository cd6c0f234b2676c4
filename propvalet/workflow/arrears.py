"""
Arrears escalation ladder.

Rungs become due at fixed day offsets after rent first went overdue. The
ladder looks at what has already been logged against the arrears record
so it never recommends the same rung twice: it recommends the earliest
due rung that has not run yet, or says how long to wait for the next one.
A courtesy rung (the friendly reminder) lapses once a later rung is due;
an unsent reminder is then reported as overtaken instead of recommended.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from ..config import DEFAULT_ARREARS_LADDER


class ArrearsRung(str, Enum):
    FRIENDLY_REMINDER = "friendly_reminder"
    FORMAL_NOTICE = "formal_notice"
    BREACH_NOTICE = "breach_notice"
    PAYMENT_PLAN_OFFER = "payment_plan_offer"
    TRIBUNAL_PREPARATION = "tribunal_preparation"


LADDER_ORDER: List[ArrearsRung] = list(ArrearsRung)

RUNG_TOOLS: Mapping[ArrearsRung, str] = {
    ArrearsRung.FRIENDLY_REMINDER: "send_rent_reminder",
    ArrearsRung.FORMAL_NOTICE: "generate_notice",
    ArrearsRung.BREACH_NOTICE: "send_breach_notice",
    ArrearsRung.PAYMENT_PLAN_OFFER: "create_payment_plan",
    ArrearsRung.TRIBUNAL_PREPARATION: "escalate_arrears",
}

# Value to pass as action_type to log_arrears_action once a rung has run
RUNG_ACTION_TYPES: Mapping[ArrearsRung, str] = {
    ArrearsRung.FRIENDLY_REMINDER: "reminder_email",
    ArrearsRung.FORMAL_NOTICE: "letter_sent",
    ArrearsRung.BREACH_NOTICE: "breach_notice",
    ArrearsRung.PAYMENT_PLAN_OFFER: "payment_plan_created",
    ArrearsRung.TRIBUNAL_PREPARATION: "tribunal_application",
}

ACTION_TYPE_ALIASES: Mapping[str, ArrearsRung] = {
    "reminder_email": ArrearsRung.FRIENDLY_REMINDER,
    "reminder_sms": ArrearsRung.FRIENDLY_REMINDER,
    "letter_sent": ArrearsRung.FORMAL_NOTICE,
    "breach_notice": ArrearsRung.BREACH_NOTICE,
    "payment_plan_created": ArrearsRung.PAYMENT_PLAN_OFFER,
    "tribunal_application": ArrearsRung.TRIBUNAL_PREPARATION,
}

# Rungs with legal weight always go past the owner first
OWNER_APPROVAL_RUNGS = frozenset({ArrearsRung.BREACH_NOTICE, ArrearsRung.TRIBUNAL_PREPARATION})

# Only worth sending before the formal steps begin
COURTESY_RUNGS = frozenset({ArrearsRung.FRIENDLY_REMINDER})


class LadderAction(str, Enum):
    EXECUTE = "execute"
    WAIT = "wait"
    COMPLETE = "complete"


@dataclass
class LadderRecommendation:
    action: LadderAction
    days_overdue: int
    rung: Optional[ArrearsRung] = None
    next_rung: Optional[ArrearsRung] = None
    days_until_next: Optional[int] = None
    executed: List[ArrearsRung] = field(default_factory=list)
    overtaken: List[ArrearsRung] = field(default_factory=list)

    @property
    def tool(self) -> Optional[str]:
        return RUNG_TOOLS[self.rung] if self.rung else None

    def describe(self) -> str:
        if self.action == LadderAction.EXECUTE:
            return (
                f"{self.days_overdue} days overdue: next step is {self.rung.value} "
                f"(use {self.tool})."
            )
        if self.action == LadderAction.WAIT:
            return (
                f"{self.days_overdue} days overdue: every due step has been taken. "
                f"Wait {self.days_until_next} more day(s) before {self.next_rung.value}."
            )
        return f"{self.days_overdue} days overdue: every escalation step has been taken."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "days_overdue": self.days_overdue,
            "rung": self.rung.value if self.rung else None,
            "tool": self.tool,
            "next_rung": self.next_rung.value if self.next_rung else None,
            "days_until_next": self.days_until_next,
            "executed": [r.value for r in self.executed],
            "overtaken": [r.value for r in self.overtaken],
            "summary": self.describe(),
        }


class ArrearsLadder:
    """
    Day-overdue escalation ladder.

    Usage:
        ladder = ArrearsLadder()
        rec = ladder.recommend(9, [{"action_type": "reminder_email"}])
        rec.rung  # ArrearsRung.FORMAL_NOTICE
    """

    def __init__(self, offsets: Optional[Mapping[str, int]] = None):
        merged = dict(DEFAULT_ARREARS_LADDER)
        merged.update(offsets or {})
        self.offsets: Dict[ArrearsRung, int] = {r: int(merged[r.value]) for r in LADDER_ORDER}

    @staticmethod
    def rung_for(action_type: Optional[str]) -> Optional[ArrearsRung]:
        if not action_type:
            return None
        try:
            return ArrearsRung(action_type)
        except ValueError:
            return ACTION_TYPE_ALIASES.get(action_type)

    def executed_rungs(self, actions: Iterable[Dict[str, Any]]) -> Set[ArrearsRung]:
        executed = set()
        for action in actions or []:
            rung = self.rung_for(action.get("action_type"))
            if rung:
                executed.add(rung)
        return executed

    def due_rungs(self, days_overdue: int) -> List[ArrearsRung]:
        return [r for r in LADDER_ORDER if self.offsets[r] <= days_overdue]

    def overtaken_rungs(self, days_overdue: int, executed: Set[ArrearsRung]) -> List[ArrearsRung]:
        """Unsent courtesy rungs that a later due rung has made pointless."""
        due = self.due_rungs(days_overdue)
        return [
            r for r in due
            if r in COURTESY_RUNGS and r not in executed
            and any(self.offsets[later] > self.offsets[r] for later in due)
        ]

    def recommend(self, days_overdue: int, actions: Iterable[Dict[str, Any]] = ()) -> LadderRecommendation:
        days = max(int(days_overdue or 0), 0)
        executed = self.executed_rungs(actions)
        executed_ordered = [r for r in LADDER_ORDER if r in executed]
        overtaken = self.overtaken_rungs(days, executed)

        for rung in self.due_rungs(days):
            if rung not in executed and rung not in overtaken:
                return LadderRecommendation(
                    LadderAction.EXECUTE, days, rung=rung, executed=executed_ordered, overtaken=overtaken
                )

        for rung in LADDER_ORDER:
            if self.offsets[rung] > days and rung not in executed:
                return LadderRecommendation(
                    LadderAction.WAIT,
                    days,
                    next_rung=rung,
                    days_until_next=self.offsets[rung] - days,
                    executed=executed_ordered,
                    overtaken=overtaken,
                )

        return LadderRecommendation(LadderAction.COMPLETE, days, executed=executed_ordered, overtaken=overtaken)
