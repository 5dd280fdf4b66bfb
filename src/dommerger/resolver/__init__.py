"""
Id resolution across mods.

A fresh AllocationSession per merge hands out ids; the IdMapper decides which
ids each mod keeps and which it must give up.
"""

from dommerger.resolver.allocator import AllocationSession, IdAllocator, RangeExhaustedError
from dommerger.resolver.mapper import AllocationResult, IdMapper, allocate, contiguous_runs
from dommerger.resolver.report import format_id_ranges, render_markdown_report, render_text_report

__all__ = [
    "AllocationSession",
    "IdAllocator",
    "RangeExhaustedError",
    "AllocationResult",
    "IdMapper",
    "allocate",
    "contiguous_runs",
    "format_id_ranges",
    "render_markdown_report",
    "render_text_report",
]
