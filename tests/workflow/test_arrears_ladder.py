"""Tests for the arrears escalation ladder."""

import pytest

from propvalet.workflow import ArrearsLadder, ArrearsRung, LadderAction


class TestRungFor:

    def test_rung_values(self):
        assert ArrearsLadder.rung_for("breach_notice") == ArrearsRung.BREACH_NOTICE

    def test_logged_action_aliases(self):
        assert ArrearsLadder.rung_for("reminder_email") == ArrearsRung.FRIENDLY_REMINDER
        assert ArrearsLadder.rung_for("reminder_sms") == ArrearsRung.FRIENDLY_REMINDER
        assert ArrearsLadder.rung_for("letter_sent") == ArrearsRung.FORMAL_NOTICE
        assert ArrearsLadder.rung_for("payment_plan_created") == ArrearsRung.PAYMENT_PLAN_OFFER
        assert ArrearsLadder.rung_for("tribunal_application") == ArrearsRung.TRIBUNAL_PREPARATION

    def test_unrelated_actions(self):
        assert ArrearsLadder.rung_for("phone_call") is None
        assert ArrearsLadder.rung_for(None) is None


class TestRecommend:

    def test_not_yet_overdue_waits_for_reminder(self):
        rec = ArrearsLadder().recommend(0)
        assert rec.action == LadderAction.WAIT
        assert rec.next_rung == ArrearsRung.FRIENDLY_REMINDER
        assert rec.days_until_next == 1

    def test_first_day_sends_reminder(self):
        rec = ArrearsLadder().recommend(1)
        assert rec.action == LadderAction.EXECUTE
        assert rec.rung == ArrearsRung.FRIENDLY_REMINDER
        assert rec.tool == "send_rent_reminder"

    def test_reminder_already_sent(self):
        rec = ArrearsLadder().recommend(5, [{"action_type": "reminder_email"}])
        assert rec.action == LadderAction.WAIT
        assert rec.next_rung == ArrearsRung.FORMAL_NOTICE
        assert rec.days_until_next == 2
        assert rec.executed == [ArrearsRung.FRIENDLY_REMINDER]

    def test_late_start_skips_overtaken_reminder(self):
        # 25 days overdue with nothing logged: the formal steps are owed, the reminder has lapsed
        rec = ArrearsLadder().recommend(25)
        assert rec.rung == ArrearsRung.FORMAL_NOTICE
        assert rec.overtaken == [ArrearsRung.FRIENDLY_REMINDER]

    def test_reminder_still_due_before_formal_notice(self):
        rec = ArrearsLadder().recommend(6)
        assert rec.rung == ArrearsRung.FRIENDLY_REMINDER
        assert rec.overtaken == []

    def test_sent_reminder_is_not_overtaken(self):
        rec = ArrearsLadder().recommend(15, [{"action_type": "reminder_email"}])
        assert rec.rung == ArrearsRung.FORMAL_NOTICE
        assert rec.overtaken == []

    def test_complete_without_reminder(self):
        actions = [{"action_type": r.value} for r in ArrearsRung if r != ArrearsRung.FRIENDLY_REMINDER]
        rec = ArrearsLadder().recommend(40, actions)
        assert rec.action == LadderAction.COMPLETE
        assert rec.to_dict()["overtaken"] == ["friendly_reminder"]

    def test_escalates_to_breach(self):
        actions = [{"action_type": "reminder_email"}, {"action_type": "letter_sent"}]
        rec = ArrearsLadder().recommend(14, actions)
        assert rec.rung == ArrearsRung.BREACH_NOTICE
        assert rec.tool == "send_breach_notice"

    def test_complete(self):
        actions = [{"action_type": r.value} for r in ArrearsRung]
        rec = ArrearsLadder().recommend(40, actions)
        assert rec.action == LadderAction.COMPLETE
        assert rec.tool is None

    def test_negative_days_clamped(self):
        assert ArrearsLadder().recommend(-3).days_overdue == 0

    def test_custom_offsets(self):
        ladder = ArrearsLadder({"friendly_reminder": 3})
        assert ladder.recommend(2).action == LadderAction.WAIT
        assert ladder.recommend(3).rung == ArrearsRung.FRIENDLY_REMINDER
        assert ladder.offsets[ArrearsRung.FORMAL_NOTICE] == 7

    def test_to_dict(self):
        data = ArrearsLadder().recommend(8, [{"action_type": "reminder_email"}]).to_dict()
        assert data["action"] == "execute"
        assert data["rung"] == "formal_notice"
        assert data["tool"] == "generate_notice"
        assert data["executed"] == ["friendly_reminder"]
        assert data["summary"].startswith("8 days overdue")
