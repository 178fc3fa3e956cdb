import logging
import os
import shutil
import time
from datetime import datetime

from .assembler import SiteAssembler
from .deploy import create_zip
from .emitters import generate_deploy_files, write_robots, write_sitemap
from .engine import TemplateLoadError, load_template_set, new_engine
from .loader import ContentLoader
from .models import URL_FORMAT_DATE, URL_FORMAT_SLUG
from .postprocess import process_output_tree
from .shortcodes import ShortcodeRegistry
from .template_funcs import build_template_functions
from .theme import replace_theme
from .transform import TextPipeline
from .webp import DEFAULT_QUALITY, convert_directory, update_references

PACKAGE_TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

ASSET_DIRS = ('css', 'js', 'images')


class InfoFilter(logging.Filter):
    """Let warnings and selected INFO milestones through to the console."""
    allowed_messages = [
        "Cleaning output directory",
        "Downloading theme",
        "Loading content",
        "Loading templates",
        "Created default templates",
        "Generating site",
        "Building index page",
        "Total pages generated:",
        "Total posts generated:",
        "Total categories generated:",
        "Copying assets",
        "Generating sitemap.xml",
        "Generating robots.txt",
        "Generating Cloudflare Pages files",
        "Post-processing output",
        "Total images converted to WebP:",
        "Created deployment package:",
        "Site build completed in",
    ]

    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        return any(msg in record.getMessage() for msg in self.allowed_messages)


class Pressed:
    """
    Builds one site: content/<source> rendered with templates/<template>
    into output_dir for domain.
    """

    def __init__(self, source, template, domain, content_dir='content', templates_dir='templates',
                 output_dir='output', engine='jinja2', url_format=URL_FORMAT_DATE, online_theme=None,
                 clean=False, quiet=False, sitemap_off=False, robots_off=False, robots='public',
                 pretty_html=False, minify_html=False, minify_css=False, minify_js=False,
                 relative_links=False, shortcodes=None, log_dir=None):
        if not source or not template or not domain:
            raise ValueError("source, template and domain are required")
        if (url_format or URL_FORMAT_DATE) not in (URL_FORMAT_DATE, URL_FORMAT_SLUG):
            raise ValueError(f"Unknown url_format: {url_format} (use 'date' or 'slug')")

        self.source = source
        self.template = template
        self.domain = domain
        self.content_dir = content_dir
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.engine_name = engine
        self.url_format = url_format or URL_FORMAT_DATE
        self.online_theme = online_theme
        self.clean = clean
        self.quiet = quiet
        self.sitemap_off = sitemap_off
        self.robots_off = robots_off
        self.robots = robots
        self.pretty_html = pretty_html
        self.minify_html = minify_html
        self.minify_css = minify_css
        self.minify_js = minify_js
        self.relative_links = relative_links
        self.shortcodes = list(shortcodes or [])
        self.log_dir = log_dir

        self.site = None
        self.assembler = None
        self.files_postprocessed = 0

        self.setup_logging()

    @classmethod
    def from_settings(cls, settings, log_dir=None):
        """Create a builder from a merged settings dictionary."""
        return cls(
            source=settings.get('source'),
            template=settings.get('template'),
            domain=settings.get('domain'),
            content_dir=settings.get('content_dir') or 'content',
            templates_dir=settings.get('templates_dir') or 'templates',
            output_dir=settings.get('output_dir') or 'output',
            engine=settings.get('engine') or 'jinja2',
            url_format=settings.get('url_format') or URL_FORMAT_DATE,
            online_theme=settings.get('online_theme'),
            clean=bool(settings.get('clean')),
            quiet=bool(settings.get('quiet')),
            sitemap_off=bool(settings.get('sitemap_off')),
            robots_off=bool(settings.get('robots_off')),
            robots=settings.get('robots') or 'public',
            pretty_html=bool(settings.get('pretty_html')),
            minify_html=bool(settings.get('minify_html')),
            minify_css=bool(settings.get('minify_css')),
            minify_js=bool(settings.get('minify_js')),
            relative_links=bool(settings.get('relative_links')),
            shortcodes=settings.get('shortcodes'),
            log_dir=log_dir,
        )

    @property
    def source_path(self):
        return os.path.join(self.content_dir, self.source)

    @property
    def template_path(self):
        return os.path.join(self.templates_dir, self.template)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Pressed')
        self.logger.setLevel(logging.DEBUG if self.log_dir else logging.INFO)

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('pressed_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename))
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
                self.logger.addHandler(file_handler)

        console_level = logging.WARNING if self.quiet else logging.INFO
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(console_level)

    def clean_output_dir(self):
        if os.path.exists(self.output_dir):
            self.logger.info("Cleaning output directory")
            shutil.rmtree(self.output_dir)

    def ensure_templates(self):
        """Populate an empty theme directory with the default template set."""
        try:
            os.makedirs(self.template_path, exist_ok=True)
            names = os.listdir(self.template_path)
        except OSError as e:
            raise TemplateLoadError(f"Cannot create templates directory {self.template_path}: {e}") from e

        if any(name.endswith('.html') for name in names):
            return False

        for name in sorted(os.listdir(PACKAGE_TEMPLATES_DIR)):
            if name.endswith('.html'):
                shutil.copy2(os.path.join(PACKAGE_TEMPLATES_DIR, name), os.path.join(self.template_path, name))
        self.logger.info(f"Created default templates in {self.template_path}")
        return True

    def load_content(self):
        self.logger.info("Loading content")
        self.site = ContentLoader(self.domain).load(self.content_dir, self.source)
        self.site.apply_url_format(self.url_format)
        return self.site

    def load_templates(self):
        """Parse the theme with the site's template functions registered."""
        self.logger.info("Loading templates")
        self.ensure_templates()
        engine = new_engine(self.engine_name, self.template_path)
        registry = ShortcodeRegistry.from_config(self.shortcodes, engine=engine, template_dir=self.template_path)
        pipeline = TextPipeline(self.site, registry)
        functions = build_template_functions(self.site, pipeline)
        return load_template_set(self.template_path, engine, functions)

    def generate_site(self, templates):
        self.logger.info("Generating site")
        os.makedirs(self.output_dir, exist_ok=True)
        self.assembler = SiteAssembler(self.site, templates, self.output_dir, self.domain)
        self.assembler.assemble()

    def copy_assets_to_output(self):
        """Copy theme css/js/images and the source's media into the output."""
        self.logger.info("Copying assets")
        for name in ASSET_DIRS:
            src = os.path.join(self.template_path, name)
            if os.path.isdir(src):
                shutil.copytree(src, os.path.join(self.output_dir, name), dirs_exist_ok=True)
                self.logger.debug(f"Copied {src}")

        media_src = os.path.join(self.source_path, 'media')
        if os.path.isdir(media_src):
            try:
                shutil.copytree(media_src, os.path.join(self.output_dir, 'media'), dirs_exist_ok=True)
                self.logger.debug("Copied media files")
            except (OSError, shutil.Error) as e:
                self.logger.warning(f"Warning: couldn't copy media: {e}")

    def emit_metadata(self):
        if not self.sitemap_off:
            write_sitemap(self.output_dir, self.site, self.domain, self.assembler.generated_categories)
        if not self.robots_off:
            write_robots(self.output_dir, self.domain, self.robots)
        generate_deploy_files(self.output_dir)

    def post_process(self):
        minify_any = self.minify_html or self.minify_css or self.minify_js
        if not (minify_any or self.pretty_html or self.relative_links):
            return 0
        self.logger.info("Post-processing output")
        self.files_postprocessed = process_output_tree(
            self.output_dir,
            minify_html=self.minify_html,
            minify_css=self.minify_css,
            minify_js=self.minify_js,
            pretty_html=self.pretty_html and not self.minify_html,
            relative_links_domain=self.domain if self.relative_links else None,
        )
        return self.files_postprocessed

    def build(self):
        """
        Run the whole pipeline once.

        Returns a dictionary of build statistics. Fatal errors (metadata,
        templates, homepage, output directory) propagate.
        """
        start_time = time.time()

        if self.clean:
            self.clean_output_dir()
        if self.online_theme:
            self.logger.info(f"Downloading theme from {self.online_theme}")
            replace_theme(self.online_theme, self.template_path)

        self.load_content()
        templates = self.load_templates()
        self.generate_site(templates)
        self.copy_assets_to_output()
        self.emit_metadata()
        self.post_process()

        elapsed = time.time() - start_time
        self.logger.info(f"Site build completed in {elapsed:.2f} seconds")
        return self.statistics(elapsed)

    def statistics(self, elapsed=0.0):
        assembler = self.assembler
        return {
            'pages': assembler.pages_generated if assembler else 0,
            'posts': assembler.posts_generated if assembler else 0,
            'categories': assembler.categories_generated if assembler else 0,
            'skipped': assembler.skipped if assembler else 0,
            'files_postprocessed': self.files_postprocessed,
            'elapsed': elapsed,
        }

    def convert_images(self, quality=DEFAULT_QUALITY):
        """Convert output images to WebP and update references to them."""
        converted, saved_bytes = convert_directory(self.output_dir, quality)
        if converted:
            update_references(self.output_dir)
        self.logger.debug(f"Converted {converted} images, saved {saved_bytes / (1024 * 1024):.1f} MB")
        return converted

    def package(self, zip_path=None):
        """Zip the output tree as {domain}.zip."""
        zip_path = zip_path or f"{self.domain}.zip"
        create_zip(self.output_dir, zip_path)
        return zip_path
