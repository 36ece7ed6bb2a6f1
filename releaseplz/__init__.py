"""Release configuration, changelog generation and changelog parsing for Cargo workspaces."""

__version__ = "0.1.0"