"""Pre check-in exports: Alloggiati Web and GIES formatting and dispatch."""

__version__ = "0.1.0"
