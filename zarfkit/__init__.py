"""Air-gapped delivery helpers: JSON patches, admission webhook, archives and package checks."""

__version__ = "0.1.0"