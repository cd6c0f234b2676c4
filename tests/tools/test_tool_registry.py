"""Tests for the static tool registry."""

import pytest

from propvalet.tools import (
    DEFAULT_STUB_MESSAGE,
    STUB_MESSAGES,
    TOOL_META,
    AutonomyLevel,
    RiskLevel,
    ToolCategory,
    ToolMeta,
    ToolRegistry,
)


class TestToolMetaTable:

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            TOOL_META["hallucinated_tool"] = None

    def test_every_entry_is_keyed_by_its_name(self):
        for name, meta in TOOL_META.items():
            assert meta.name == name

    def test_stub_flag_matches_stub_messages(self):
        stubs = {name for name, meta in TOOL_META.items() if meta.is_stub}
        assert stubs == set(STUB_MESSAGES)

    def test_send_push_expo_is_live(self):
        assert TOOL_META["send_push_expo"].is_stub is False

    def test_compensation_tools_are_registered(self):
        for meta in TOOL_META.values():
            if meta.compensation_tool:
                assert meta.compensation_tool in TOOL_META

    def test_known_categories(self):
        assert TOOL_META["get_property"].category == ToolCategory.QUERY
        assert TOOL_META["workflow_arrears_escalation"].category == ToolCategory.WORKFLOW
        assert TOOL_META["remember"].category == ToolCategory.MEMORY
        assert TOOL_META["plan_task"].category == ToolCategory.PLANNING
        assert TOOL_META["run_credit_check"].category == ToolCategory.INTEGRATION

    def test_to_dict(self):
        data = TOOL_META["create_property"].to_dict()
        assert data["name"] == "create_property"
        assert data["category"] == "action"
        assert data["compensation_tool"] == "delete_property"
        assert isinstance(data["autonomy_level"], int)


class TestToolRegistry:

    def test_singleton(self):
        assert ToolRegistry.get_instance() is ToolRegistry.get_instance()

    def test_get_unknown_returns_none(self):
        assert ToolRegistry().get("not_a_tool") is None
        assert "not_a_tool" not in ToolRegistry()

    def test_names_by_category(self):
        names = ToolRegistry().names_by_category(ToolCategory.MEMORY)
        assert set(names) == {"remember", "recall", "search_precedent"}

    def test_names_by_category_accepts_string(self):
        assert "plan_task" in ToolRegistry().names_by_category("planning")

    def test_visible_tools_hide_stubs(self):
        visible = {m.name for m in ToolRegistry().visible_tools()}
        assert "run_credit_check" not in visible
        assert "get_property" in visible
        assert len(visible) == len(TOOL_META) - len(STUB_MESSAGES)

    def test_is_tool_allowed_unknown_tool(self):
        assert ToolRegistry().is_tool_allowed("not_a_tool", autonomy_level=4) is False

    def test_is_tool_allowed_compares_levels(self):
        meta = ToolMeta("risky", ToolCategory.ACTION, AutonomyLevel.DRAFT, RiskLevel.HIGH)
        registry = ToolRegistry({"risky": meta})
        assert registry.is_tool_allowed("risky", autonomy_level=1) is False
        assert registry.is_tool_allowed("risky", autonomy_level=2) is True
        assert registry.is_tool_allowed("risky", autonomy_level=4) is True

    def test_stub_message(self):
        registry = ToolRegistry()
        assert "Equifax" in registry.stub_message("run_credit_check")
        assert registry.stub_message("anything_else") == DEFAULT_STUB_MESSAGE
