"""Rewriting mod bodies and writing the merged mod."""

from dommerger.writer.header import build_header
from dommerger.writer.merge import ModMerger, write_atomic
from dommerger.writer.rewriter import COMMENT_PREFIX, ContentRewriter, RewriteError, rewrite

__all__ = [
    "build_header",
    "ModMerger",
    "write_atomic",
    "COMMENT_PREFIX",
    "ContentRewriter",
    "RewriteError",
    "rewrite",
]
