"""Plain-text statistics tool shared across agents."""

from __future__ import annotations

import re
from collections import Counter
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError

from orchestra.registry.tools.base import ToolHandler
from orchestra.registry.tools.models import (
    ToolCapabilities,
    ToolDefinition,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolParameter,
)

_WORD = re.compile(r"[\w']+", re.UNICODE)
_SENTENCE_END = re.compile(r"[.!?]+(?:\s|$)")


class TextAnalysisInput(BaseModel):
    """Validated parameters for the text analysis tool."""

    text: str = Field(description="Text to analyse.")
    top_n: int = Field(default=5, ge=0, le=50, description="Number of most frequent words to report.")


DEFINITION = ToolDefinition(
    id="text-analysis",
    name="Text Analysis",
    description="Counts words, characters and sentences and reports the most frequent words.",
    category="analysis",
    version="1.0.0",
    parameters=[
        ToolParameter(name="text", type="string", description="Text to analyse.", required=True),
        ToolParameter(name="top_n", type="number", description="Frequent words to report.", default_value=5),
    ],
    cost=0.0,
    timeout=5_000,
    tags=["text", "analysis", "builtin"],
)


def analyse_text(text: str, top_n: int = 5) -> Dict[str, Any]:
    words = [word.lower() for word in _WORD.findall(text)]
    stripped = text.strip()
    sentences = len(_SENTENCE_END.findall(stripped))
    if stripped and stripped[-1] not in ".!?":
        sentences += 1
    return {
        "characters": len(text),
        "words": len(words),
        "sentences": sentences,
        "top_words": Counter(words).most_common(top_n) if top_n else [],
    }


class TextAnalysisTool(ToolHandler):
    """Deterministic text statistics; no external calls."""

    def validate_parameters(self, parameters: Dict[str, Any]) -> bool:
        try:
            TextAnalysisInput.model_validate(parameters)
        except ValidationError:
            return False
        return True

    def get_capabilities(self) -> ToolCapabilities:
        return ToolCapabilities(supports_retry=True, supported_formats=["text", "markdown"])

    async def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        payload = TextAnalysisInput.model_validate(context.parameters)
        return self.build_result(context, data=analyse_text(payload.text, payload.top_n))


__all__ = ["DEFINITION", "TextAnalysisInput", "TextAnalysisTool", "analyse_text"]
