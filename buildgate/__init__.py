"""Build Gate: change filtering and build result notification for CI servers."""

__version__ = "1.0.0"
