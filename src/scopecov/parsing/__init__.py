"""Structure parsers producing the coverage model of a source file."""

from scopecov.parsing.base import StructureParser
from scopecov.parsing.python import PythonStructureParser

__all__ = [
    "StructureParser",
    "PythonStructureParser",
]
