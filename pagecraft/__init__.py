"""Conversational landing-page generator: chat in, HTML/CSS and a sandboxed preview out."""

__version__ = "0.1.0"
