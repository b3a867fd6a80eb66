"""codebrowser - cross-referenced HTML code browser generator."""

__version__ = "0.3.0"
