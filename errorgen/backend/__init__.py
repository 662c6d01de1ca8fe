# errorgen/backend/__init__.py
"""Python source emission for error descriptors."""
from errorgen.backend.codegen import generate_module

__all__ = ["generate_module"]
