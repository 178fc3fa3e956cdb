"""
Pressed - static site generator for exported blog content.

Pressed turns a WordPress-style export (Markdown files with YAML
frontmatter plus a metadata.json of categories, media and authors) and a
Jinja2 theme into a deployable static site with a sitemap, robots.txt and
Cloudflare Pages metadata.
"""

__version__ = "1.0.0"

from .core import Pressed
from .models import SiteData, Page, Category, Author, MediaItem, Shortcode

__all__ = ['Pressed', 'SiteData', 'Page', 'Category', 'Author', 'MediaItem', 'Shortcode']
