"""Deterministic document tools (no LLM calls)."""

from .document_compiler import compile_blocks, compile_document, section_heading, section_text
from .document_parser import DocumentChunk, escape_header_lines, iter_chunks, parse_document

__all__ = [
    "DocumentChunk",
    "compile_blocks",
    "compile_document",
    "escape_header_lines",
    "iter_chunks",
    "parse_document",
    "section_heading",
    "section_text",
]
