"""Tuzuru static blog generator.

Tuzuru turns a directory of Markdown files into a static HTML blog. Authorship
and publication dates are not written in front matter: they are derived from
each file's git history, and can be overridden later with marker commits.

The main entry point is the CLI module, which provides commands for
initializing a blog, generating it, listing posts, amending post metadata
and previewing the output locally.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
