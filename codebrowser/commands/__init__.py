"""Commands module for cbgen CLI."""
