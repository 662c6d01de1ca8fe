# errorgen/semantics/__init__.py
"""
Front end: format-string compilation and the descriptor builder.

Public API:
- compile_format: message literal -> template + raw arguments
- build_descriptors: lark tree -> ModuleDescriptor
"""
from errorgen.semantics.format_string import compile_format
from errorgen.semantics.descriptor import build_descriptors

__all__ = ["compile_format", "build_descriptors"]
