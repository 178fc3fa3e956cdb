"""Functions made available to theme templates."""

import html
import re
from datetime import datetime
from typing import Callable, Dict

from .models import Page, SiteData, UNCATEGORIZED_ID, UNKNOWN_DATE
from .transform import TextPipeline

YOUTUBE_THUMB_RE = re.compile(
    r'\[youtube\]\s*(?:https?://)?(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/)([a-zA-Z0-9_-]+)\s*\[/youtube\]')
YOUTUBE_BLOCK_RE = re.compile(r'\[youtube\][^\[]*\[/youtube\]')
EMBED_BLOCK_RE = re.compile(r'\[embed\][^\[]*\[/embed\]')
TAG_RE = re.compile(r'<[^>]*>')


def decode_html(value) -> str:
    """Decode HTML entities like &#8211;."""
    return html.unescape(str(value or ''))


def format_date(value, fmt='%B %d, %Y') -> str:
    if isinstance(value, datetime):
        if value == UNKNOWN_DATE:
            return ''
        return value.strftime(fmt)
    return '' if value is None else str(value)


def thumbnail_from_youtube(value) -> str:
    match = YOUTUBE_THUMB_RE.search(str(value or ''))
    if match:
        return f"https://img.youtube.com/vi/{match.group(1)}/hqdefault.jpg"
    return ''


def strip_shortcodes(value) -> str:
    """Remove [youtube] and [embed] blocks, e.g. from excerpts."""
    text = YOUTUBE_BLOCK_RE.sub('', str(value or ''))
    return EMBED_BLOCK_RE.sub('', text).strip()


def strip_html(value) -> str:
    return TAG_RE.sub('', str(value or '')).strip()


def build_template_functions(site: SiteData, pipeline: TextPipeline) -> Dict[str, Callable]:
    """Functions bound to one site, registered as template globals and filters."""

    def get_category_name(cat_id):
        category = site.categories.get(cat_id)
        return category.name if category else ''

    def get_category_slug(cat_id):
        category = site.categories.get(cat_id)
        return category.slug if category else ''

    def get_author_name(author_id):
        author = site.authors.get(author_id)
        return author.name if author else ''

    def recent_posts(n):
        return site.posts[:max(0, n)]

    return {
        'safe_html': pipeline.render,
        'decode_html': decode_html,
        'format_date': format_date,
        'get_category_name': get_category_name,
        'get_category_slug': get_category_slug,
        'is_valid_category': lambda cat_id: cat_id != UNCATEGORIZED_ID,
        'get_author_name': get_author_name,
        'get_url': lambda page: page.url,
        'get_canonical': lambda page, domain: page.canonical(domain),
        'has_valid_categories': Page.has_valid_categories,
        'thumbnail_from_youtube': thumbnail_from_youtube,
        'strip_shortcodes': strip_shortcodes,
        'strip_html': strip_html,
        'recent_posts': recent_posts,
    }
