from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from orchestra.config import CONFIG
from orchestra.registry.agents.base import AgentHandler
from orchestra.registry.agents.models import AgentCapabilities, AgentExecutionContext, AgentExecutionResult
from orchestra.registry.tools.models import ToolExecutionContext
from orchestra.services.templates import TemplateStore, create_template_store

TEXT_TOOL_ID = "text-analysis"
PROMPT_TEMPLATE_ID = "general-task"
REPORT_TEMPLATE_ID = "text-report"


class GeneralistAgent(AgentHandler):
    """Utility agent: analyses ``text`` parameters, otherwise drafts a prompt."""

    key = "generalist"

    def __init__(self, tool_registry=None, templates: Optional[TemplateStore] = None) -> None:
        super().__init__(tool_registry=tool_registry)
        self.templates = templates

    def initialize(self) -> None:
        if self.templates is None:
            self.templates = create_template_store()

    def cleanup(self) -> None:
        self.templates = None

    def get_capabilities(self) -> AgentCapabilities:
        return AgentCapabilities(
            supports_tool_use=True,
            supported_task_types=["general", "text-analysis"],
        )

    async def execute(self, context: AgentExecutionContext) -> AgentExecutionResult:
        if self.templates is None:
            raise RuntimeError("Generalist agent used before initialize()")

        text = context.parameters.get("text")
        if isinstance(text, str) and text.strip():
            return await self._analyse(context, text)

        details = {key: value for key, value in context.parameters.items() if key != "task"}
        prompt = self.templates.render(
            PROMPT_TEMPLATE_ID,
            {"task": context.task, "details": json.dumps(details, sort_keys=True, default=str) if details else "none"},
        )
        return self.build_result(context, data={"prompt": prompt})

    async def _analyse(self, context: AgentExecutionContext, text: str) -> AgentExecutionResult:
        if self.tool_registry is None or self.tool_registry.get_tool(TEXT_TOOL_ID) is None:
            return self.build_result(context, success=False, error=f"Tool '{TEXT_TOOL_ID}' is not available")

        tools_used: List[str] = [TEXT_TOOL_ID]
        tool_result = await self.tool_registry.execute_tool(
            ToolExecutionContext(
                tool_id=TEXT_TOOL_ID,
                parameters={"text": text},
                session_id=context.session_id,
                agent_id=context.agent_id,
                user_id=context.user_id,
                timeout=getattr(CONFIG, "default_tool_timeout_ms", 30_000),
                priority=context.priority,
            )
        )
        if not tool_result.success:
            return self.build_result(context, success=False, error=tool_result.error, tools_used=tools_used)

        stats: Dict[str, Any] = tool_result.data or {}
        summary = self.templates.render(REPORT_TEMPLATE_ID, stats)
        return self.build_result(
            context,
            data={"analysis": stats, "summary": summary},
            cost=tool_result.cost,
            tools_used=tools_used,
        )


AGENT_CLASS = GeneralistAgent
