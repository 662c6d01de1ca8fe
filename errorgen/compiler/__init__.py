# errorgen/compiler/__init__.py
"""Compilation pipeline, configuration and command line."""
