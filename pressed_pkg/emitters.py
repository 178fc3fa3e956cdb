"""
Site metadata emitters: sitemap.xml, robots.txt and the Cloudflare Pages
_headers and _redirects files.
"""

import logging
import os
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from .models import SiteData, UNCATEGORIZED_ID, UNKNOWN_DATE, is_root_path

logger = logging.getLogger('Pressed.emitters')

ROBOTS_PUBLIC = 'public'
ROBOTS_PRIVATE = 'private'

HEADERS_CONTENT = """# Cloudflare Pages Headers
# Generated by Pressed

# Security headers for all pages
/*
  X-Content-Type-Options: nosniff
  X-Frame-Options: DENY
  X-XSS-Protection: 1; mode=block
  Referrer-Policy: strict-origin-when-cross-origin
  Permissions-Policy: geolocation=(), microphone=(), camera=()

# Cache static assets for 1 year
/css/*
  Cache-Control: public, max-age=31536000, immutable

/js/*
  Cache-Control: public, max-age=31536000, immutable

/images/*
  Cache-Control: public, max-age=31536000, immutable

/media/*
  Cache-Control: public, max-age=31536000, immutable

# Cache HTML pages for 1 hour
/*.html
  Cache-Control: public, max-age=3600

/
  Cache-Control: public, max-age=3600
"""

REDIRECTS_CONTENT = """# Cloudflare Pages Redirects
# Generated by Pressed
# Format: /source /destination [status]

# Trailing slash normalization handled by Cloudflare automatically
"""


def format_sitemap_entry(loc, changefreq, priority, lastmod=None):
    """Format a single sitemap <url> entry."""
    entry = f"  <url>\n    <loc>{escape(loc)}</loc>\n"
    if lastmod is not None and lastmod != UNKNOWN_DATE:
        entry += f"    <lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>\n"
    entry += f"    <changefreq>{changefreq}</changefreq>\n"
    entry += f"    <priority>{priority}</priority>\n"
    entry += "  </url>\n"
    return entry


def generate_sitemap(site: SiteData, domain: str, category_ids: Optional[Iterable[int]] = None) -> str:
    """
    Build sitemap.xml content.

    category_ids restricts category entries to those that got a listing
    page; by default every category with at least one post is listed.
    """
    if category_ids is None:
        category_ids = site.category_posts().keys()

    sitemap = '<?xml version="1.0" encoding="UTF-8"?>\n'
    sitemap += '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
    sitemap += format_sitemap_entry(f"https://{domain}/", 'daily', '1.0')

    for page in site.pages:
        if is_root_path(page.output_path):
            continue
        lastmod = page.modified if page.modified != UNKNOWN_DATE else page.date
        sitemap += format_sitemap_entry(page.canonical(domain), 'monthly', '0.8', lastmod)

    for post in site.posts:
        if is_root_path(post.output_path):
            continue
        lastmod = post.modified if post.modified != UNKNOWN_DATE else post.date
        sitemap += format_sitemap_entry(post.canonical(domain), 'monthly', '0.6', lastmod)

    for cat_id in category_ids:
        category = site.categories.get(cat_id)
        if category is None or cat_id == UNCATEGORIZED_ID:
            continue
        sitemap += format_sitemap_entry(f"https://{domain}{category.url}", 'weekly', '0.5')

    sitemap += '</urlset>\n'
    return sitemap


def generate_robots(domain: str, mode: str = ROBOTS_PUBLIC) -> str:
    """robots.txt content. "private" blocks every crawler."""
    if mode == ROBOTS_PRIVATE:
        return "User-agent: *\nDisallow: /\n"
    if mode != ROBOTS_PUBLIC:
        raise ValueError(f"Unknown robots mode: {mode} (use '{ROBOTS_PUBLIC}' or '{ROBOTS_PRIVATE}')")
    return f"User-agent: *\nAllow: /\n\nSitemap: https://{domain}/sitemap.xml\n"


def _write(output_dir, name, content):
    path = os.path.join(output_dir, name)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    return path


def write_sitemap(output_dir, site, domain, category_ids=None):
    logger.info("Generating sitemap.xml")
    return _write(output_dir, 'sitemap.xml', generate_sitemap(site, domain, category_ids))


def write_robots(output_dir, domain, mode=ROBOTS_PUBLIC):
    logger.info("Generating robots.txt")
    return _write(output_dir, 'robots.txt', generate_robots(domain, mode))


def generate_deploy_files(output_dir):
    """Write the Cloudflare Pages _headers and _redirects files."""
    logger.info("Generating Cloudflare Pages files")
    return [
        _write(output_dir, '_headers', HEADERS_CONTENT),
        _write(output_dir, '_redirects', REDIRECTS_CONTENT),
    ]
