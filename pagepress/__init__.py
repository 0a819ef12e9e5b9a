# pagepress: markdown content → static site → hosting branch
"""
Minimal static-site publishing pipeline:
- content_store: markdown articles with front matter
- render_engine: Markdown + Jinja2 rendering, asset resolution
- publish_driver: full rebuild and hosting-branch replacement
"""

__version__ = "0.1.0"
