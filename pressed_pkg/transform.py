"""
Text transform pipeline.

Turns a raw Markdown body (with shortcodes and WordPress leftovers) into
HTML that can be embedded in a template. Each stage is a plain
str -> str function; TextPipeline runs them in this fixed order:

1. shortcode substitution
2. Markdown artifact cleanup
3. autolinking of list items that name a known page
4. Markdown to HTML conversion
5. media path normalization

Later stages depend on the output of earlier ones, so the order matters.
"""

import html
import logging
import re
from functools import partial
from typing import Callable, Dict, List, Tuple

import mistune

from .media import fix_media_paths
from .models import SiteData
from .shortcodes import ShortcodeRegistry

logger = logging.getLogger('Pressed.transform')

ORPHAN_BOLD_RE = re.compile(r'^\s*\*\*\s*$', re.MULTILINE)
BOLD_RE = re.compile(r'\*\*(.*?)\*\*')
LIST_MARKERS = ('- ', '* ')


def create_markdown_parser():
    """Create a Mistune markdown parser that passes raw HTML through."""
    class CustomRenderer(mistune.HTMLRenderer):
        def __init__(self):
            super().__init__(escape=False)

        def block_code(self, code, info=None):
            escaped_code = mistune.escape(code)
            return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>\n'.format(escaped_code)

    return mistune.create_markdown(
        renderer=CustomRenderer(),
        plugins=['table', 'strikethrough']
    )


def build_page_links(site: SiteData) -> Dict[str, str]:
    """Map page and post titles (raw and entity-decoded) to their URLs."""
    links = {}
    for page in list(site.pages) + list(site.posts):
        title = page.title.strip()
        if not title:
            continue
        links[title] = page.url
        links[html.unescape(title)] = page.url
    return links


def substitute_shortcodes(text: str, registry: ShortcodeRegistry) -> str:
    return registry.substitute(text)


def cleanup_markdown_artifacts(text: str) -> str:
    """
    Remove lines holding only a stray ** and convert **text** to <strong>.

    The converter leaves bold markup inside raw HTML blocks untouched, so
    it is rewritten explicitly here.
    """
    text = ORPHAN_BOLD_RE.sub('', text)
    return BOLD_RE.sub(r'<strong>\1</strong>', text)


def autolink_list_items(text: str, page_links: Dict[str, str]) -> str:
    """Link "- Title" / "* Title" list items whose text is a known title."""
    if not page_links:
        return text

    lines = text.split('\n')
    for i, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed.startswith(LIST_MARKERS):
            continue
        item = trimmed[2:].strip()
        if not item:
            continue
        url = page_links.get(item)
        if url is None:
            url = page_links.get(html.unescape(item))
        if url is not None:
            lines[i] = line.replace(item, f"[{item}]({url})", 1)
    return '\n'.join(lines)


def markdown_to_html(text: str, parser=None) -> str:
    """Convert Markdown to HTML; on failure log it and return text unchanged."""
    parser = parser or create_markdown_parser()
    try:
        return parser(text)
    except Exception as e:
        logger.warning(f"Warning: markdown conversion failed: {e}")
        return text


class TextPipeline:
    """
    The safe_html chain bound to one site and one shortcode registry.
    """

    def __init__(self, site: SiteData, registry: ShortcodeRegistry = None):
        self.site = site
        self.registry = registry if registry is not None else ShortcodeRegistry()
        self.page_links = build_page_links(site)
        self.markdown_parser = create_markdown_parser()

    @property
    def stages(self) -> List[Tuple[str, Callable[[str], str]]]:
        return [
            ('shortcodes', partial(substitute_shortcodes, registry=self.registry)),
            ('cleanup', cleanup_markdown_artifacts),
            ('autolink', partial(autolink_list_items, page_links=self.page_links)),
            ('markdown', partial(markdown_to_html, parser=self.markdown_parser)),
            ('media', partial(fix_media_paths, media=self.site.media)),
        ]

    def render(self, raw: str) -> str:
        text = raw or ''
        for _, stage in self.stages:
            text = stage(text)
        return text
