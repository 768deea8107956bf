"""Template manager for loading and rendering Jinja2 prompt templates.

Provides a centralized interface for rendering the documentation
instructions from Jinja2 templates stored in the templates/ directory.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError

from src.utils.errors import IoError

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATES_DIR = Path(__file__).parent.parent.parent / "templates"

_PREVIEW_CHARS = 250


class TemplateManager:
    """Loads and renders Jinja2 instruction templates.

    Rendering is deterministic: templates only see the context passed
    in by the caller, never the clock.
    """

    def __init__(self, templates_dir: Optional[str] = None) -> None:
        """Initialize the template manager.

        Args:
            templates_dir: Path to the templates directory. Uses the
                default templates/ directory if not specified.
        """
        self._templates_path = (
            Path(templates_dir) if templates_dir else _DEFAULT_TEMPLATES_DIR
        )

        if not self._templates_path.exists():
            logger.warning("Templates directory not found: %s", self._templates_path)

        self._env = Environment(
            loader=FileSystemLoader(str(self._templates_path)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        logger.debug("Template manager initialized with: %s", self._templates_path)

    def render_instructions(
        self,
        template_name: str = "notebook_doc.md.j2",
        author: str = "",
    ) -> str:
        """Render the instruction block for notebook documentation.

        The output skeleton inside the template keeps its literal
        placeholders (notebook name, creation time) for the model to fill.

        Args:
            template_name: Name of the instruction template.
            author: Value for the ``author`` front-matter field.

        Returns:
            Rendered instruction text.

        Raises:
            IoError: If the template cannot be loaded or rendered.
        """
        instructions = self._render(template_name, author=author)
        logger.debug(
            "Loaded prompt template from: %s\n--- Preview ---\n%s\n--- End of Preview ---",
            self._templates_path / template_name,
            instructions[:_PREVIEW_CHARS],
        )
        return instructions

    def _render(self, template_name: str, **kwargs: Any) -> str:
        """Render a template with the given context variables.

        Args:
            template_name: Name of the template file to render.
            **kwargs: Template context variables.

        Returns:
            Rendered template string.

        Raises:
            IoError: If the template is missing, unreadable or invalid.
        """
        try:
            template = self._env.get_template(template_name)
            rendered = template.render(**kwargs)
        except (TemplateError, OSError, UnicodeDecodeError) as e:
            raise IoError(
                f"Failed to read template {self._templates_path / template_name}: {e}"
            ) from e
        logger.debug("Rendered template %s (%d chars)", template_name, len(rendered))
        return rendered

    def list_templates(self) -> list[str]:
        """List all available template files.

        Returns:
            List of template file names.
        """
        return self._env.list_templates()
