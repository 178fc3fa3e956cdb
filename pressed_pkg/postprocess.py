"""
Output post-processors.

Whole-file rewriters applied to the generated tree after assembly. Each
string function is idempotent: running it on its own output changes
nothing.
"""

import logging
import os
import re
from typing import Optional

logger = logging.getLogger('Pressed.postprocess')

HTML_COMMENT_RE = re.compile(r'<!--[\s\S]*?-->')
BETWEEN_TAGS_RE = re.compile(r'>\s+<')
MULTI_SPACE_RE = re.compile(r'\s{2,}')
PLACEHOLDER_RE = re.compile(r'<\x00(\d+)\x00>')

CSS_COMMENT_RE = re.compile(r'/\*[\s\S]*?\*/')
CSS_PUNCT_RE = re.compile(r'\s*([:{};,])\s*')

JS_BLOCK_COMMENT_RE = re.compile(r'/\*[\s\S]*?\*/')
JS_LINE_COMMENT_RE = re.compile(r'^\s*//.*$', re.MULTILINE)
BLANK_LINES_RE = re.compile(r'\n\s*\n')


def minify_html(s: str) -> str:
    """
    Remove comments and collapse whitespace.

    Conditional comments (<!--[if ...]>) are kept byte for byte.
    """
    conditionals = []

    def drop_or_keep(match):
        comment = match.group(0)
        if not comment.startswith('<!--[if'):
            return ''
        conditionals.append(comment)
        return f'<\x00{len(conditionals) - 1}\x00>'

    s = HTML_COMMENT_RE.sub(drop_or_keep, s)
    s = BETWEEN_TAGS_RE.sub('><', s)
    s = MULTI_SPACE_RE.sub(' ', s)
    s = s.strip()
    return PLACEHOLDER_RE.sub(lambda m: conditionals[int(m.group(1))], s)


def minify_css(s: str) -> str:
    s = CSS_COMMENT_RE.sub('', s)
    s = s.replace('\n', '').replace('\r', '')
    s = CSS_PUNCT_RE.sub(r'\1', s)
    s = MULTI_SPACE_RE.sub(' ', s)
    return s.strip()


def minify_js(s: str) -> str:
    """
    Strip comments and blank lines.

    Not a JavaScript parser: a // or /* inside a string literal is treated
    as a comment.
    """
    s = JS_BLOCK_COMMENT_RE.sub('', s)
    s = JS_LINE_COMMENT_RE.sub('', s)
    s = BLANK_LINES_RE.sub('\n', s)
    return s.strip()


def prettify_html(s: str) -> str:
    """Drop blank lines and trailing whitespace; end with a single newline."""
    s = s.replace('\r\n', '\n').replace('\r', '\n')
    lines = [line.rstrip() for line in s.split('\n')]
    return '\n'.join(line for line in lines if line) + '\n'


def normalize_domain(domain: str) -> str:
    """example.com from example.com, https://example.com/ or //example.com."""
    domain = (domain or '').strip()
    domain = re.sub(r'^(?:https?:)?//', '', domain, flags=re.IGNORECASE)
    return domain.split('/', 1)[0]


def _root_relative(tail):
    if not tail:
        return '/'
    if tail.startswith('/'):
        return tail
    return '/' + tail


def rewrite_relative_links(s: str, domain: str) -> str:
    """
    Turn absolute links to domain into root-relative ones.

    Covers href, src and action attributes and CSS url() values, with
    http://, https:// and protocol-relative // prefixes. Links to other
    hosts (including hosts that merely start with domain) are untouched.
    """
    host = normalize_domain(domain)
    if not host:
        return s
    prefix = r'(?:https?:)?//' + re.escape(host)

    attr_re = re.compile(
        r'''(\b(?:href|src|action)\s*=\s*(["']))''' + prefix + r'''([/?#][^"']*)?(?=\2)''',
        re.IGNORECASE)
    s = attr_re.sub(lambda m: m.group(1) + _root_relative(m.group(3)), s)

    url_re = re.compile(
        r'''(url\(\s*["']?)''' + prefix + r'''([/?#][^"')\s]*)?(?=["']?\s*\))''',
        re.IGNORECASE)
    return url_re.sub(lambda m: m.group(1) + _root_relative(m.group(2)), s)


def process_file(path: str, minify: bool = False, pretty: bool = False,
                 minify_css_files: bool = False, minify_js_files: bool = False,
                 relative_links_domain: Optional[str] = None) -> bool:
    """Apply the enabled processors to one file. Returns True if it changed."""
    ext = os.path.splitext(path)[1].lower()
    if ext not in ('.html', '.htm', '.css', '.js'):
        return False

    with open(path, 'r', encoding='utf-8') as f:
        original = f.read()

    s = original
    if ext in ('.html', '.htm'):
        if relative_links_domain:
            s = rewrite_relative_links(s, relative_links_domain)
        if minify:
            s = minify_html(s)
        elif pretty:
            s = prettify_html(s)
    elif ext == '.css':
        if relative_links_domain:
            s = rewrite_relative_links(s, relative_links_domain)
        if minify_css_files:
            s = minify_css(s)
    elif ext == '.js' and minify_js_files:
        s = minify_js(s)

    if s == original:
        return False
    with open(path, 'w', encoding='utf-8') as f:
        f.write(s)
    return True


def process_output_tree(output_dir: str, minify_html: bool = False, minify_css: bool = False,
                        minify_js: bool = False, pretty_html: bool = False,
                        relative_links_domain: Optional[str] = None) -> int:
    """
    Run the enabled post-processors over every file in output_dir.

    Minifying HTML takes precedence over prettifying it. Returns the number
    of files rewritten.
    """
    if not any((minify_html, minify_css, minify_js, pretty_html, relative_links_domain)):
        return 0

    changed = 0
    for root, dirs, files in os.walk(output_dir):
        dirs.sort()
        for name in sorted(files):
            path = os.path.join(root, name)
            try:
                if process_file(path, minify=minify_html, pretty=pretty_html,
                                minify_css_files=minify_css, minify_js_files=minify_js,
                                relative_links_domain=relative_links_domain):
                    changed += 1
                    logger.debug(f"Post-processed {path}")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Warning: failed to post-process {path}: {e}")
    return changed
