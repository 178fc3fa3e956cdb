#!/usr/bin/env python3
"""
Settings loader for Pressed.
Supports configuration from .pressed.yml, pressed.yaml, pressed.json and friends.
"""

import os
import json
import logging
import yaml
from typing import Dict, Any, Optional

logger = logging.getLogger('Pressed.settings')


class PressedSettings:
    """Load and manage Pressed configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'source': None,
        'template': None,
        'domain': None,
        'content_dir': 'content',
        'templates_dir': 'templates',
        'output_dir': 'output',
        'engine': 'jinja2',
        'url_format': 'date',
        'online_theme': None,
        'clean': False,
        'quiet': False,
        'sitemap_off': False,
        'robots_off': False,
        'robots': 'public',
        'pretty_html': False,
        'minify_all': False,
        'minify_html': False,
        'minify_css': False,
        'minify_js': False,
        'relative_links': False,
        'webp': False,
        'webp_quality': 60,
        'zip': False,
        'shortcodes': [],
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = [
        '.pressed.yml',
        '.pressed.yaml',
        '.pressed.json',
        'pressed.yml',
        'pressed.yaml',
        'pressed.json',
    ]

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = self.DEFAULT_SETTINGS.copy()
        self.settings['shortcodes'] = []
        self.config_file_path = None

    def load_settings(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load settings from a configuration file.

        An explicit config_path must exist and parse; a discovered file that
        fails to load only produces a warning.

        Returns:
            Dictionary of configuration settings
        """
        if config_path:
            if not os.path.exists(config_path):
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            self.config_file_path = config_path
            self._apply(self._load_config_file(config_path))
            return self.settings.copy()

        config_file = self._find_config_file()
        if config_file:
            self.config_file_path = config_file
            try:
                self._apply(self._load_config_file(config_file))
            except (OSError, ValueError) as e:
                logger.warning(f"Warning: Failed to load config file {config_file}: {e}")

        return self.settings.copy()

    def _apply(self, loaded_settings):
        if not loaded_settings:
            return
        if not isinstance(loaded_settings, dict):
            raise ValueError(f"Configuration file {self.config_file_path} must contain a mapping")
        self.settings.update(loaded_settings)
        self.settings = self.apply_minify_all(self.settings)
        logger.debug(f"Loaded configuration from: {self.config_file_path}")

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        if file_ext not in ('.yml', '.yaml', '.json'):
            raise ValueError(f"Unsupported config file format: {file_ext} (use .yml, .yaml or .json)")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                return json.load(f) or {}
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    @staticmethod
    def apply_minify_all(settings: Dict[str, Any]) -> Dict[str, Any]:
        """minify_all switches on every minifier."""
        if settings.get('minify_all'):
            settings['minify_html'] = True
            settings['minify_css'] = True
            settings['minify_js'] = True
        return settings

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        if file_format not in ('yml', 'yaml', 'json'):
            raise ValueError(f"Unsupported config file format: {file_format}")

        sample_config = {
            'source': 'example.com',
            'template': 'simple',
            'domain': 'example.com',
            'content_dir': 'content',
            'templates_dir': 'templates',
            'output_dir': 'output',
            'engine': 'jinja2',
            'url_format': 'date',
            'robots': 'public',
            'pretty_html': False,
            'minify_all': False,
            'relative_links': False,
            'webp': False,
            'webp_quality': 60,
            'zip': False,
            'shortcodes': [
                {
                    'name': 'promo',
                    'type': 'banner',
                    'title': 'Spring sale',
                    'text': 'Everything 20% off this week',
                    'url': 'https://shop.example.com/',
                    'legal': 'Terms apply',
                },
            ],
        }

        filename = f'pressed.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# Pressed Configuration File\n")
                    f.write("# Command-line flags override the values below\n\n")
                    f.write("# Site (positional arguments)\n")
                    f.write("source: example.com      # content/<source>\n")
                    f.write("template: simple         # templates/<template>\n")
                    f.write("domain: example.com\n\n")
                    f.write("# Paths\n")
                    f.write("content_dir: content\n")
                    f.write("templates_dir: templates\n")
                    f.write("output_dir: output\n\n")
                    f.write("# Rendering\n")
                    f.write("engine: jinja2\n")
                    f.write("url_format: date         # date or slug\n")
                    f.write("# online_theme: https://github.com/user/theme\n\n")
                    f.write("# Output\n")
                    f.write("robots: public           # public or private\n")
                    f.write("sitemap_off: false\n")
                    f.write("robots_off: false\n")
                    f.write("pretty_html: false\n")
                    f.write("minify_all: false\n")
                    f.write("relative_links: false\n\n")
                    f.write("# Images and deployment\n")
                    f.write("webp: false\n")
                    f.write("webp_quality: 60\n")
                    f.write("zip: false\n\n")
                    f.write("# Shortcodes: {{promo}} in content renders this banner\n")
                    f.write(yaml.safe_dump({'shortcodes': sample_config['shortcodes']},
                                           sort_keys=False, allow_unicode=True))
                else:
                    json.dump(sample_config, f, indent=2)
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = self.settings.copy()

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                merged[key] = value

        return self.apply_minify_all(merged)
