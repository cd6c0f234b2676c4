"""The in-repo tool handler set.

Every handler has the same shape:
    async def handler(args: dict, actor_id: str, ctx: ToolContext) -> ToolResult
"""
