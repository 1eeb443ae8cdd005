"""Keystone: launcher, diagnostics and admin tooling for a Directus CMS."""

__version__ = "0.1.0"
