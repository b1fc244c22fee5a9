"""Prompt template store used by tool and agent handlers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field

from ..config import CONFIG, PACKAGE_ROOT
from ..logger import log

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][\w.-]*)\s*\}\}")

BUNDLED_TEMPLATES_DIR = PACKAGE_ROOT / "templates"


class Template(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    content: str
    tags: List[str] = Field(default_factory=list)

    @property
    def placeholders(self) -> List[str]:
        seen: List[str] = []
        for match in _PLACEHOLDER.finditer(self.content):
            if match.group(1) not in seen:
                seen.append(match.group(1))
        return seen


def render_text(content: str, variables: Mapping[str, Any]) -> str:
    """Substitute ``{{name}}`` tokens; unknown names are left as-is."""

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key in variables and variables[key] is not None:
            return str(variables[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, content)


class TemplateStore:
    """In-memory template lookup with YAML directory loading."""

    def __init__(self) -> None:
        self._templates: Dict[str, Template] = {}

    def register(self, template: Union[Template, Mapping[str, Any]]) -> str:
        validated = Template.model_validate(template)
        self._templates[validated.id] = validated
        return validated.id

    def get_template(self, template_id: str) -> Optional[Template]:
        return self._templates.get(template_id)

    def list_templates(self) -> List[Template]:
        return list(self._templates.values())

    def render(self, template: Union[Template, str], variables: Optional[Mapping[str, Any]] = None) -> str:
        if isinstance(template, str):
            resolved = self.get_template(template)
            if resolved is None:
                raise KeyError(f"Template '{template}' not found")
            template = resolved
        return render_text(template.content, variables or {})

    def load_directory(self, directory: Union[str, Path]) -> int:
        """Load every ``*.yaml`` file in ``directory``; returns the count loaded."""
        base = Path(directory)
        if not base.is_dir():
            return 0

        loaded = 0
        for path in sorted(base.glob("*.yaml")):
            with path.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle)
            if not isinstance(payload, dict):
                continue
            payload.setdefault("id", path.stem)
            self.register(payload)
            loaded += 1

        log(f"[templates] loaded {loaded} template(s) from {base}")
        return loaded


def create_template_store(extra_dir: Optional[Union[str, Path]] = None) -> TemplateStore:
    """Build a store with the bundled templates plus an optional directory."""

    store = TemplateStore()
    store.load_directory(BUNDLED_TEMPLATES_DIR)
    extra_dir = extra_dir or getattr(CONFIG, "templates_dir", None)
    if extra_dir:
        store.load_directory(extra_dir)
    return store


__all__ = ["Template", "TemplateStore", "render_text", "create_template_store"]
