"""Template registry and YAML template loader."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import yaml

from synthgen.core.exceptions import TemplateNotFound
from .compiler import TemplateCompiler, TemplatePlan
from .schemas import SyntheticDataTemplate

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_DIR = Path(__file__).parent / "data"


class TemplateRegistry:
    """Holds registered templates and their compiled plans.

    Registration validates and compiles a template; a template that fails
    either step is never stored. Re-registering an id replaces the previous
    template.
    """

    def __init__(self, compiler: TemplateCompiler | None = None):
        self.compiler = compiler or TemplateCompiler()
        self._templates: dict[str, SyntheticDataTemplate] = {}
        self._plans: dict[str, TemplatePlan] = {}
        self._lock = threading.RLock()

    @classmethod
    def with_builtins(cls, compiler: TemplateCompiler | None = None) -> TemplateRegistry:
        """Create a registry preloaded with the built-in templates."""
        registry = cls(compiler=compiler)
        registry.load_directory(BUILTIN_TEMPLATES_DIR)
        return registry

    def register(self, template: SyntheticDataTemplate | dict) -> TemplatePlan:
        """Validate, compile and store a template.

        Args:
            template: A template model or its dictionary form.

        Returns:
            The compiled plan.

        Raises:
            pydantic.ValidationError: If the template is structurally invalid.
            FormulaSyntaxError: If a formula does not compile.
            CyclicDependencyError: In strict mode, on unresolvable dependencies.
        """
        if not isinstance(template, SyntheticDataTemplate):
            template = SyntheticDataTemplate.model_validate(template)

        plan = self.compiler.compile(template)
        with self._lock:
            self._templates[template.template_id] = template
            self._plans[template.template_id] = plan
        logger.info(
            "Registered template %s (%d rules)",
            template.template_id,
            len(template.generation_rules),
        )
        return plan

    def get(self, template_id: str) -> SyntheticDataTemplate:
        """Get a registered template.

        Raises:
            TemplateNotFound: If the id is not registered.
        """
        with self._lock:
            template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        return template

    def get_plan(self, template_id: str) -> TemplatePlan:
        with self._lock:
            plan = self._plans.get(template_id)
        if plan is None:
            raise TemplateNotFound(template_id)
        return plan

    def list_templates(self) -> list[SyntheticDataTemplate]:
        """Registered templates sorted by id."""
        with self._lock:
            return [self._templates[k] for k in sorted(self._templates)]

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    # =========================================================================
    # YAML loading
    # =========================================================================

    def load_file(self, path: str | Path) -> list[SyntheticDataTemplate]:
        """Load and register templates from a single YAML file.

        A file may hold one template mapping or a list of them.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Template file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)

        items = content if isinstance(content, list) else [content]
        templates = []
        for item in items:
            template = SyntheticDataTemplate.model_validate(item)
            self.register(template)
            templates.append(template)

        return templates

    def load_directory(self, path: str | Path) -> list[SyntheticDataTemplate]:
        """Load every ``*.yaml`` template file in a directory.

        Files that fail to load are logged and skipped.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Templates directory not found: {path}")

        templates = []
        for yaml_file in sorted(path.glob("*.yaml")):
            try:
                templates.extend(self.load_file(yaml_file))
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning("Failed to load %s: %s", yaml_file, e)

        return templates
