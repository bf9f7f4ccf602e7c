"""folio: organize a folder tree of projects with sidecar metadata."""

__version__ = "0.3.0"
