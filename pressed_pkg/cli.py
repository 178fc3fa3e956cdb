#!/usr/bin/env python3
"""
Command-line interface for Pressed.
"""

import os
import sys
import json
import argparse
from typing import List, Optional
from . import __version__
from .core import Pressed
from .settings import PressedSettings

STARTER_SOURCE = 'example.com'

STARTER_METADATA = {
    'categories': [
        {'id': 1, 'name': 'Uncategorized', 'slug': 'uncategorized', 'count': 0},
        {'id': 2, 'name': 'News', 'slug': 'news', 'count': 1,
         'description': 'Updates and announcements'},
    ],
    'media': [],
    'users': [
        {'id': 1, 'name': 'Site Author', 'slug': 'site-author'},
    ],
}

STARTER_PAGE = """---
id: 2
title: About
slug: about
date: 2025-01-01T10:00:00
modified: 2025-01-01T10:00:00
status: publish
type: page
link: https://example.com/about/
author: 1
---

# About

## Excerpt
What this site is about.

## Content
This site is built with **Pressed** from exported blog content.

Edit `content/example.com/pages/about.md` to change this page.
"""

STARTER_POST = """---
id: 1
title: Hello world
slug: hello-world
date: 2025-01-15T09:30:00
modified: 2025-01-15T09:30:00
status: publish
type: post
author: 1
categories: [2]
---

# Hello world

## Excerpt
The first post on the new site.

## Content
Welcome! Posts live under `content/example.com/posts/<category>/`.

{{promo}}

Related pages:

- About
"""


def create_starter_content(base_dir: Optional[str] = None) -> List[str]:
    """Create a starter content source with metadata, one page and one post."""
    base_dir = base_dir or os.getcwd()
    source_dir = os.path.join(base_dir, 'content', STARTER_SOURCE)
    files = {
        os.path.join(source_dir, 'metadata.json'): json.dumps(STARTER_METADATA, indent=2) + '\n',
        os.path.join(source_dir, 'pages', 'about.md'): STARTER_PAGE,
        os.path.join(source_dir, 'posts', 'news', 'hello-world.md'): STARTER_POST,
    }

    created = []
    for path, content in files.items():
        rel_path = os.path.relpath(path, base_dir)
        if os.path.exists(path):
            print(f"File already exists: {rel_path}")
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"Created: {rel_path}")
        created.append(path)
    return created


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pressed',
        description='Pressed - static site generator for exported blog content',
        epilog='Example: pressed example.com simple example.com --webp --zip')
    parser.add_argument('source', nargs='?', help='Content source folder name (inside the content directory)')
    parser.add_argument('template', nargs='?', help='Template name (inside the templates directory)')
    parser.add_argument('domain', nargs='?', help='Target domain for the generated site')

    parser.add_argument('--config', type=str, help='Path to a configuration file')
    parser.add_argument('--content-dir', dest='content_dir', type=str, help='Content root directory')
    parser.add_argument('--templates-dir', dest='templates_dir', type=str, help='Templates root directory')
    parser.add_argument('--output-dir', '--output', dest='output_dir', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--engine', type=str, help='Template engine (jinja2)')
    parser.add_argument('--url-format', dest='url_format', type=str, choices=['date', 'slug'],
                        help='Post URLs: /YYYY/MM/DD/slug/ (date) or /slug/ (slug)')
    parser.add_argument('--online-theme', dest='online_theme', type=str,
                        help='Download the theme from a GitHub/GitLab repository or ZIP URL')
    parser.add_argument('--robots', type=str, choices=['public', 'private'],
                        help='Robots.txt configuration')
    parser.add_argument('--webp-quality', dest='webp_quality', type=int, help='WebP quality (1-100)')
    parser.add_argument('--log-dir', dest='log_dir', type=str, default='logs',
                        help="Directory for build log files ('' disables them)")

    flags = [
        ('--clean', 'Remove the output directory before building'),
        ('--quiet', 'Only print warnings and errors'),
        ('--sitemap-off', 'Do not generate sitemap.xml'),
        ('--robots-off', 'Do not generate robots.txt'),
        ('--pretty-html', 'Tidy generated HTML'),
        ('--minify-all', 'Minify HTML, CSS and JS'),
        ('--minify-html', 'Minify HTML files'),
        ('--minify-css', 'Minify CSS files'),
        ('--minify-js', 'Minify JS files'),
        ('--relative-links', 'Rewrite absolute links to the domain as root-relative'),
        ('--webp', 'Convert images to WebP after building'),
        ('--zip', 'Create {domain}.zip for Cloudflare Pages deployment'),
    ]
    for flag, help_text in flags:
        # None keeps config file values unless the flag is given.
        parser.add_argument(flag, action='store_true', default=None, help=help_text)

    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter content')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        settings_loader = PressedSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")
        print("\nCreating starter content...")
        create_starter_content()
        print("\nRun 'pressed' to build the starter site.")
        return

    try:
        # Load settings from configuration file
        settings_loader = PressedSettings()
        settings_loader.load_settings(args.config)
        cli_only = {'config', 'init', 'log_dir'}
        args_dict = {k: v for k, v in vars(args).items() if v is not None and k not in cli_only}
        final_settings = settings_loader.merge_with_args(args_dict)
        quiet = bool(final_settings.get('quiet'))
        if settings_loader.config_file_path and not quiet:
            print(f"Loaded configuration from: {os.path.relpath(settings_loader.config_file_path)}")

        missing = [key for key in ('source', 'template', 'domain') if not final_settings.get(key)]
        if missing:
            parser.error(f"missing {', '.join(missing)} (pass them as arguments or set them in a config file)")

        output_dir = os.path.expanduser(final_settings['output_dir'])
        final_settings['output_dir'] = output_dir

        generator = Pressed.from_settings(final_settings, log_dir=args.log_dir or None)
        generator.build()
        if not quiet:
            print(f"Site generated successfully to {output_dir}/")

        if final_settings.get('webp'):
            generator.convert_images(final_settings.get('webp_quality') or 60)

        if final_settings.get('zip'):
            generator.package()

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
