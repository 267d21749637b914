"""Compiler adapter for the external schema toolchain."""

from schemadrift.compiler.adapter import (
    CommandCompiler,
    CompilerFailure,
    CompilerRun,
    RunCancelled,
    SchemaCompiler,
)

__all__ = [
    "CommandCompiler",
    "CompilerFailure",
    "CompilerRun",
    "RunCancelled",
    "SchemaCompiler",
]
