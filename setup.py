#!/usr/bin/env python3
"""
Setup script for Pressed - static site generator for exported blog content.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Dependencies are defined in pyproject.toml

setup(
    name='pressed',
    version='1.0.0',
    description='Static site generator for WordPress-exported Markdown content',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'pressed_pkg': [
            'templates/*.html',
        ],
    },
    include_package_data=True,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Software Development :: Code Generators',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.8',
    # Dependencies are defined in pyproject.toml
    entry_points={
        'console_scripts': [
            'pressed=pressed_pkg.cli:main',
        ],
    },
    keywords='static site generator, markdown, jinja2, wordpress, cloudflare pages',
)
