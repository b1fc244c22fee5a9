"""Built-in tools that can be shared across agents."""

from __future__ import annotations

from typing import List, Optional

from orchestra.registry.tools.registry import ToolRegistry
from orchestra.services.templates import TemplateStore

from . import template_render, text_analysis


def register_builtin_tools(registry: ToolRegistry, *, templates: Optional[TemplateStore] = None) -> List[str]:
    """Register the bundled tools and return their ids."""

    return [
        registry.register_tool(text_analysis.DEFINITION, text_analysis.TextAnalysisTool()),
        registry.register_tool(template_render.DEFINITION, template_render.TemplateRenderTool(templates)),
    ]


__all__ = ["register_builtin_tools", "template_render", "text_analysis"]
