"""
Shortcode registry for Pressed.

Content may contain {{name}} tokens. Each known name is replaced with HTML
produced either by a theme-supplied template or by a built-in renderer
chosen by the shortcode's type. Unknown names are left as they are.
"""

import html
import logging
import os
import re
from typing import Callable, Dict, Iterable, Optional

from .engine import TemplateEngine, TemplateLoadError, TemplateRenderError
from .models import Shortcode

logger = logging.getLogger('Pressed.shortcodes')

SHORTCODE_RE = re.compile(r'\{\{([A-Za-z0-9_-]+)\}\}')


def _escape(value) -> str:
    return html.escape(str(value or ''), quote=True)


def render_banner(sc: Shortcode) -> str:
    parts = ['<div class="shortcode-banner">']
    if sc.url:
        parts.append(f'<a href="{sc.url}" target="_blank" rel="noopener sponsored">')
    if sc.logo:
        parts.append(f'<img src="{sc.logo}" alt="{_escape(sc.title)}" class="shortcode-banner-logo">')
    if sc.title:
        parts.append(f'<strong class="shortcode-banner-title">{_escape(sc.title)}</strong>')
    if sc.text:
        parts.append(f'<span class="shortcode-banner-text">{_escape(sc.text)}</span>')
    if sc.url:
        parts.append('</a>')
    if sc.legal:
        parts.append(f'<small class="shortcode-banner-legal">{_escape(sc.legal)}</small>')
    parts.append('</div>')
    return ''.join(parts)


def render_link(sc: Shortcode) -> str:
    label = sc.text or sc.title or sc.url
    return (f'<a href="{sc.url}" class="shortcode-link" target="_blank" rel="noopener">'
            f'{_escape(label)}</a>')


def render_image(sc: Shortcode) -> str:
    src = sc.logo or sc.url
    if not src:
        return ''
    img = f'<img src="{src}" alt="{_escape(sc.title or sc.text)}" class="shortcode-image">'
    if sc.logo and sc.url:
        return f'<a href="{sc.url}" target="_blank" rel="noopener">{img}</a>'
    return img


def render_default(sc: Shortcode) -> str:
    """Plain link when a URL is set, escaped text otherwise."""
    if sc.url:
        return render_link(sc)
    return _escape(sc.text or sc.title)


BUILTIN_RENDERERS: Dict[str, Callable[[Shortcode], str]] = {
    'banner': render_banner,
    'link': render_link,
    'image': render_image,
}


class ShortcodeRegistry:
    """
    Read-only lookup of shortcode definitions.

    template_dir is where custom shortcode templates are resolved from;
    engine parses them. Without an engine custom templates are ignored and
    the built-in renderer is used.
    """

    def __init__(self, shortcodes: Iterable[Shortcode] = (), engine: Optional[TemplateEngine] = None,
                 template_dir: Optional[str] = None):
        self._shortcodes = {sc.name: sc for sc in shortcodes}
        self.engine = engine
        self.template_dir = template_dir

    @classmethod
    def from_config(cls, entries, engine=None, template_dir=None) -> 'ShortcodeRegistry':
        """Build a registry from the `shortcodes` list of a settings file."""
        shortcodes = []
        for entry in entries or []:
            if not isinstance(entry, dict):
                raise ValueError(f"Invalid shortcode definition: {entry!r}")
            shortcodes.append(Shortcode.from_dict(entry))
        return cls(shortcodes, engine=engine, template_dir=template_dir)

    def __contains__(self, name):
        return name in self._shortcodes

    def __len__(self):
        return len(self._shortcodes)

    def get(self, name: str) -> Optional[Shortcode]:
        return self._shortcodes.get(name)

    def render(self, name: str) -> Optional[str]:
        """HTML for a shortcode, or None if the name is not registered."""
        sc = self._shortcodes.get(name)
        if sc is None:
            return None
        if sc.template:
            rendered = self._render_template(sc)
            if rendered is not None:
                return rendered
        renderer = BUILTIN_RENDERERS.get(sc.type, render_default)
        return renderer(sc)

    def _render_template(self, sc: Shortcode) -> Optional[str]:
        if self.engine is None:
            logger.warning(f"Shortcode '{sc.name}': no template engine, using built-in renderer")
            return None
        path = sc.template
        if self.template_dir and not os.path.isabs(path):
            path = os.path.join(self.template_dir, path)
        try:
            template = self.engine.parse_file(path)
            return template.render(sc.context())
        except (OSError, TemplateLoadError, TemplateRenderError) as e:
            logger.warning(f"Shortcode '{sc.name}': template {sc.template} failed ({e}), "
                           f"using built-in renderer")
            return None

    def substitute(self, text: str) -> str:
        """Replace every known {{name}} token in text."""
        if not self._shortcodes or '{{' not in text:
            return text

        def replace(match):
            rendered = self.render(match.group(1))
            return match.group(0) if rendered is None else rendered

        return SHORTCODE_RE.sub(replace, text)
