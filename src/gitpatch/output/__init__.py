"""Renderers for parsed patch documents."""
