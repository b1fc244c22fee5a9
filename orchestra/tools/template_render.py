"""Template rendering tool backed by the shared template store."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from orchestra.registry.tools.base import ToolHandler
from orchestra.registry.tools.models import (
    ToolCapabilities,
    ToolDefinition,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolParameter,
)
from orchestra.services.templates import TemplateStore, create_template_store


class TemplateRenderInput(BaseModel):
    template_id: str = Field(min_length=1, description="Identifier of a stored template.")
    variables: Dict[str, Any] = Field(default_factory=dict)


DEFINITION = ToolDefinition(
    id="template-render",
    name="Template Render",
    description="Renders a stored prompt template by substituting {{placeholder}} tokens.",
    category="utility",
    version="1.0.0",
    parameters=[
        ToolParameter(name="template_id", type="string", description="Template identifier.", required=True),
        ToolParameter(name="variables", type="object", description="Placeholder values.", default_value={}),
    ],
    tags=["template", "prompt", "builtin"],
)


class TemplateRenderTool(ToolHandler):
    def __init__(self, templates: Optional[TemplateStore] = None) -> None:
        self.templates = templates if templates is not None else create_template_store()

    def validate_parameters(self, parameters: Dict[str, Any]) -> bool:
        try:
            payload = TemplateRenderInput.model_validate(parameters)
        except ValidationError:
            return False
        return self.templates.get_template(payload.template_id) is not None

    def get_capabilities(self) -> ToolCapabilities:
        return ToolCapabilities(supported_formats=["text"])

    async def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        payload = TemplateRenderInput.model_validate(context.parameters)
        rendered = self.templates.render(payload.template_id, payload.variables)
        return self.build_result(context, data={"template_id": payload.template_id, "text": rendered})


__all__ = ["DEFINITION", "TemplateRenderInput", "TemplateRenderTool"]
