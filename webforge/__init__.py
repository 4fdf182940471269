"""
WebForge preview core: raw model reply → project snapshot → preview document.
"""
from webforge.models import (
    CodeBlock, ParseResult, PreviewArtifact, ProjectFile, ProjectSnapshot,
)
from webforge.parser import ResponseParser, parse
from webforge.completer import ProjectCompleter, complete
from webforge.materializer import PreviewMaterializer, materialize

__all__ = [
    "CodeBlock", "ParseResult", "PreviewArtifact", "ProjectFile", "ProjectSnapshot",
    "ResponseParser", "parse",
    "ProjectCompleter", "complete",
    "PreviewMaterializer", "materialize",
]
