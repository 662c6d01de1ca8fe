# errorgen/internals/__init__.py
"""Parser setup, diagnostics and the coded error catalog."""
