"""Supporting services: session bookkeeping and prompt templates."""

from .session_manager import OrchestrationSession, SessionManager
from .templates import Template, TemplateStore, create_template_store, render_text

__all__ = [
    "OrchestrationSession",
    "SessionManager",
    "Template",
    "TemplateStore",
    "create_template_store",
    "render_text",
]
