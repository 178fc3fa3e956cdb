"""
Template engines for Pressed.

The generator only talks to the small TemplateEngine/Template interface
below, so a theme can be rendered by any engine that implements it.
"""

import io
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateSyntaxError

logger = logging.getLogger('Pressed.engine')

ENGINE_JINJA2 = 'jinja2'

ENGINE_ALIASES = {
    '': ENGINE_JINJA2,
    'jinja': ENGINE_JINJA2,
    ENGINE_JINJA2: ENGINE_JINJA2,
}


class TemplateLoadError(Exception):
    """A template set could not be read or parsed."""


class TemplateRenderError(Exception):
    """A parsed template failed while rendering."""


class Template:
    """A compiled template."""

    name = None

    def execute(self, writer, data: Dict[str, Any]):
        """Render the template with data into a writable text stream."""
        raise NotImplementedError

    def render(self, data: Dict[str, Any]) -> str:
        buffer = io.StringIO()
        self.execute(buffer, data)
        return buffer.getvalue()


class TemplateEngine:
    """Parses template sources into Template objects."""

    name = None

    def parse(self, name: str, source: str, functions: Optional[Dict[str, Callable]] = None) -> Template:
        raise NotImplementedError

    def parse_file(self, path: str, functions: Optional[Dict[str, Callable]] = None) -> Template:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
        return self.parse(os.path.basename(path), source, functions)


class Jinja2Template(Template):
    def __init__(self, name, template):
        self.name = name
        self._template = template

    def execute(self, writer, data):
        try:
            writer.write(self._template.render(**data))
        except TemplateError as e:
            raise TemplateRenderError(f"{self.name}: {e}") from e
        except Exception as e:
            raise TemplateRenderError(f"{self.name}: {type(e).__name__}: {e}") from e


class Jinja2Engine(TemplateEngine):
    """
    Jinja2-backed engine.

    search_path lets templates use {% extends %} and {% include %} against
    sibling files in the theme directory.
    """

    name = ENGINE_JINJA2

    def __init__(self, search_path: Optional[str] = None):
        loader = FileSystemLoader(search_path) if search_path else None
        self.env = Environment(loader=loader)

    def register(self, functions: Optional[Dict[str, Callable]]):
        """Expose functions both as globals and as filters."""
        if not functions:
            return
        self.env.globals.update(functions)
        self.env.filters.update(functions)

    def parse(self, name, source, functions=None):
        self.register(functions)
        try:
            template = self.env.from_string(source)
        except TemplateSyntaxError as e:
            raise TemplateLoadError(f"{name}: {e}") from e
        return Jinja2Template(name, template)


def available_engines() -> List[str]:
    return [ENGINE_JINJA2]


def new_engine(name: str = ENGINE_JINJA2, search_path: Optional[str] = None) -> TemplateEngine:
    """Create a template engine by name."""
    key = ENGINE_ALIASES.get((name or '').lower())
    if key == ENGINE_JINJA2:
        return Jinja2Engine(search_path)
    raise ValueError(f"Unknown template engine: {name} (available: {available_engines()})")


def load_template_set(template_path: str, engine: TemplateEngine,
                      functions: Optional[Dict[str, Callable]] = None) -> Dict[str, Template]:
    """Parse every *.html file of a theme directory, keyed by file name."""
    if not os.path.isdir(template_path):
        raise TemplateLoadError(f"Templates directory not found: {template_path}")

    templates = {}
    for name in sorted(os.listdir(template_path)):
        path = os.path.join(template_path, name)
        if not name.endswith('.html') or not os.path.isfile(path):
            continue
        try:
            templates[name] = engine.parse_file(path, functions)
        except OSError as e:
            raise TemplateLoadError(f"Failed to read template {path}: {e}") from e
        logger.debug(f"Parsed template {name}")

    if not templates:
        raise TemplateLoadError(f"No templates found in {template_path}")
    return templates
