"""
Content loader for Pressed.

Reads metadata.json and the Markdown content files of one exported source
into a SiteData instance.
"""

import json
import logging
import os
from datetime import date, datetime
from typing import List

import yaml

from .models import (Author, Category, MediaItem, Page, SiteData, UNKNOWN_DATE, flex_int)

logger = logging.getLogger('Pressed.loader')

# Tried in order; the first that parses wins.
DATE_FORMATS = [
    '%Y-%m-%dT%H:%M:%S%z',  # 2025-01-01T12:00:00+02:00 / Z
    '%Y-%m-%dT%H:%M:%S.%f%z',
    '%Y-%m-%dT%H:%M:%S',    # 2025-01-01T12:00:00
    '%Y-%m-%d %H:%M:%S',    # 2025-01-01 12:00:00
    '%Y-%m-%d',             # 2025-01-01
    '%d-%m-%Y',             # 01-01-2025
    '%Y/%m/%d',             # 2025/01/01
]

EXCERPT_HEADING = '## Excerpt'
CONTENT_HEADING = '## Content'


def parse_flexible_date(value) -> datetime:
    """
    Parse a date in any of the accepted formats.

    Empty or unparseable values return UNKNOWN_DATE instead of raising.
    YAML may already have produced a date or datetime object.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return UNKNOWN_DATE

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=None)
        except ValueError:
            continue
    return UNKNOWN_DATE


def split_document(text: str):
    """
    Split a content file into (frontmatter, excerpt, content) strings.

    The body uses two reserved headings, "## Excerpt" and "## Content".
    "# Title" lines before the first reserved heading are discarded. A body
    with no reserved heading at all is taken as content.
    """
    frontmatter_lines = []
    excerpt_lines = []
    content_lines = []
    loose_lines = []

    in_frontmatter = False
    frontmatter_done = False
    section = None

    for line in text.splitlines():
        if line.rstrip() == '---' and not frontmatter_done:
            if not in_frontmatter:
                in_frontmatter = True
            else:
                in_frontmatter = False
                frontmatter_done = True
            continue

        if in_frontmatter:
            frontmatter_lines.append(line)
            continue

        if line.startswith(EXCERPT_HEADING):
            section = 'excerpt'
            continue
        if line.startswith(CONTENT_HEADING):
            section = 'content'
            continue

        if section == 'excerpt':
            if line.strip():
                excerpt_lines.append(line)
        elif section == 'content':
            content_lines.append(line)
        elif not line.startswith('# '):
            loose_lines.append(line)

    if in_frontmatter:
        raise ValueError("unterminated frontmatter block")

    if not excerpt_lines and not content_lines and section is None:
        content_lines = loose_lines

    return (
        '\n'.join(frontmatter_lines),
        '\n'.join(excerpt_lines).strip(),
        '\n'.join(content_lines).strip(),
    )


def parse_markdown_file(filepath: str) -> Page:
    """
    Parse a Markdown file with YAML frontmatter into a Page.

    Raises OSError if the file cannot be read and ValueError (or
    yaml.YAMLError) if its frontmatter is malformed.
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        text = f.read()

    frontmatter, excerpt, content = split_document(text.lstrip('\ufeff'))
    metadata = yaml.safe_load(frontmatter) if frontmatter.strip() else {}
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ValueError(f"frontmatter must be a mapping, got {type(metadata).__name__}")

    categories = metadata.get('categories') or []
    if not isinstance(categories, list):
        categories = [categories]

    return Page(
        id=flex_int(metadata.get('id')),
        title=str(metadata.get('title') or ''),
        slug=str(metadata.get('slug') or ''),
        date=parse_flexible_date(metadata.get('date')),
        modified=parse_flexible_date(metadata.get('modified')),
        status=str(metadata.get('status') or ''),
        type=str(metadata.get('type') or 'page'),
        link=str(metadata.get('link') or ''),
        author=flex_int(metadata.get('author')),
        categories=[flex_int(cat) for cat in categories],
        excerpt=excerpt,
        content=content,
    )


class ContentLoader:
    """Load one exported content source into a SiteData."""

    def __init__(self, domain: str = ''):
        self.domain = domain
        self.logger = logger

    def load(self, content_root: str, source_name: str) -> SiteData:
        """
        Load metadata, pages and posts for a source.

        A missing or malformed metadata.json is fatal. Missing pages/ and
        posts/ directories simply yield no content.
        """
        source_path = os.path.join(content_root, source_name)
        site = SiteData(domain=self.domain)

        self.load_metadata(os.path.join(source_path, 'metadata.json'), site)
        site.pages = self.load_markdown_dir(os.path.join(source_path, 'pages'))
        site.posts = self.load_posts_dir(os.path.join(source_path, 'posts'))
        site.sort_posts()

        self.logger.info(f"Loaded {len(site.pages)} pages")
        self.logger.info(f"Loaded {len(site.posts)} posts")
        self.logger.info(f"Loaded {len(site.categories)} categories")
        self.logger.info(f"Loaded {len(site.media)} media items")
        return site

    def load_metadata(self, path: str, site: SiteData):
        """Read categories, media and authors from metadata.json."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                metadata = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Metadata file not found: {path}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in metadata file {path}: {e}")

        if not isinstance(metadata, dict):
            raise ValueError(f"Metadata file {path} must contain a JSON object")

        try:
            for item in metadata.get('categories') or []:
                category = Category.from_dict(item)
                site.categories[category.id] = category
            for item in metadata.get('media') or []:
                media = MediaItem.from_dict(item)
                site.media[media.id] = media
            for item in metadata.get('users') or []:
                author = Author.from_dict(item)
                site.authors[author.id] = author
        except (AttributeError, ValueError) as e:
            raise ValueError(f"Invalid entry in metadata file {path}: {e}")

    def get_markdown_files(self, directory: str) -> List[str]:
        """Markdown files directly inside directory, in name order."""
        if not os.path.isdir(directory):
            return []
        return [
            os.path.join(directory, name)
            for name in sorted(os.listdir(directory))
            if name.endswith('.md') and os.path.isfile(os.path.join(directory, name))
        ]

    def load_markdown_dir(self, directory: str) -> List[Page]:
        """Parse every published page in a flat directory."""
        pages = []
        for file_path in self.get_markdown_files(directory):
            try:
                page = parse_markdown_file(file_path)
            except (OSError, ValueError, yaml.YAMLError) as e:
                self.logger.warning(f"Warning: failed to parse {os.path.basename(file_path)}: {e}")
                continue
            if page.status == 'publish':
                pages.append(page)
            else:
                self.logger.debug(f"Skipping unpublished {file_path} (status: {page.status!r})")
        return pages

    def load_posts_dir(self, directory: str) -> List[Page]:
        """Load posts from one subdirectory per category."""
        posts = []
        if not os.path.isdir(directory):
            return posts
        for name in sorted(os.listdir(directory)):
            category_dir = os.path.join(directory, name)
            if not os.path.isdir(category_dir):
                continue
            try:
                posts.extend(self.load_markdown_dir(category_dir))
            except OSError as e:
                self.logger.warning(f"Warning: failed to load category {name}: {e}")
        return posts
