"""
Python client emitters.

Generates the TypedDict declarations, the typed client and the package
entry point of a generated API client.
"""

from .access_layer import AccessLayerEmitter
from .declarations import TypeDeclarationEmitter
from .exports import ExportSurfaceEmitter
from .naming import create_python_sanitizer
from .symbols import SymbolTable, build_symbol_table

__all__ = [
    "AccessLayerEmitter",
    "TypeDeclarationEmitter",
    "ExportSurfaceEmitter",
    "SymbolTable",
    "build_symbol_table",
    "create_python_sanitizer",
]
