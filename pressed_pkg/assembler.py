"""
Site assembler.

Renders one document per index, page, post and category listing through
the theme's templates and writes it to its resolved output path.
"""

import io
import logging
import os
from typing import Dict, List

from .engine import Template, TemplateRenderError
from .models import Category, Page, SiteData, is_root_path

logger = logging.getLogger('Pressed.assembler')

INDEX_TEMPLATE = 'index.html'
PAGE_TEMPLATE = 'page.html'
POST_TEMPLATE = 'post.html'
CATEGORY_TEMPLATE = 'category.html'


class AssemblyError(Exception):
    """The site could not be assembled (missing or broken homepage)."""


class SiteAssembler:
    def __init__(self, site: SiteData, templates: Dict[str, Template], output_dir: str, domain: str = None):
        self.site = site
        self.templates = templates
        self.output_dir = output_dir
        self.domain = domain if domain is not None else site.domain
        self.pages_generated = 0
        self.posts_generated = 0
        self.categories_generated = 0
        self.skipped = 0
        # Category ids that received a listing page, in generation order.
        self.generated_categories: List[int] = []

    def assemble(self):
        """Render every document. Only a homepage failure is fatal."""
        self.build_index()
        for page in self.site.pages:
            self.build_page(page)
        for post in self.site.posts:
            self.build_post(post)
        for cat_id, posts in self.site.category_posts().items():
            self.build_category(self.site.categories[cat_id], posts)
        logger.info(f"Total pages generated: {self.pages_generated}")
        logger.info(f"Total posts generated: {self.posts_generated}")
        logger.info(f"Total categories generated: {self.categories_generated}")

    def render(self, template_name: str, context) -> str:
        template = self.templates.get(template_name)
        if template is None:
            raise TemplateRenderError(f"template {template_name} not found")
        buffer = io.StringIO()
        template.execute(buffer, context)
        return buffer.getvalue()

    def write(self, rel_dir: str, html: str) -> str:
        target_dir = os.path.join(self.output_dir, rel_dir) if rel_dir else self.output_dir
        os.makedirs(target_dir, exist_ok=True)
        path = os.path.join(target_dir, 'index.html')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(html)
        logger.debug(f"Generated HTML: {path}")
        return path

    def build_index(self):
        logger.info("Building index page")
        context = {
            'site': self.site,
            'posts': self.site.posts,
            'pages': self.site.pages,
            'domain': self.domain,
        }
        try:
            html = self.render(INDEX_TEMPLATE, context)
        except TemplateRenderError as e:
            raise AssemblyError(f"Failed to render index page: {e}") from e
        self.write('', html)

    def build_page(self, page: Page) -> bool:
        return self._build_document(page, PAGE_TEMPLATE, {'page': page})

    def build_post(self, post: Page) -> bool:
        return self._build_document(post, POST_TEMPLATE, {'post': post})

    def _build_document(self, page: Page, template_name: str, extra) -> bool:
        kind = 'post' if page.is_post else 'page'
        output_path = page.output_path
        if is_root_path(output_path):
            logger.warning(f"Warning: skipping {kind} '{page.slug}' (id {page.id}): "
                           f"its URL {page.url} would overwrite the homepage")
            self.skipped += 1
            return False

        context = {'site': self.site, 'domain': self.domain}
        context.update(extra)
        try:
            html = self.render(template_name, context)
            self.write(output_path, html)
        except (TemplateRenderError, OSError) as e:
            logger.warning(f"Warning: failed to generate {kind} '{page.slug}': {e}")
            self.skipped += 1
            return False

        if page.is_post:
            self.posts_generated += 1
        else:
            self.pages_generated += 1
        return True

    def build_category(self, category: Category, posts: List[Page]) -> bool:
        context = {
            'site': self.site,
            'category': category,
            'posts': posts,
            'domain': self.domain,
        }
        try:
            html = self.render(CATEGORY_TEMPLATE, context)
            self.write(os.path.join('category', category.slug), html)
        except (TemplateRenderError, OSError) as e:
            logger.warning(f"Warning: failed to generate category '{category.slug}': {e}")
            self.skipped += 1
            return False

        self.categories_generated += 1
        self.generated_categories.append(category.id)
        return True
