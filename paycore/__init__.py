"""Payment orchestration and settlement-proof lifecycle service."""

__version__ = "1.0.0"
