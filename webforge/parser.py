"""
ResponseParser: raw model reply → ordered ProjectFiles + summary text.

Extraction walks a ladder of strategies, strictest first. The first strategy
that yields at least one block is used on its own; lower rungs are never
merged in. If nothing yields, the whole reply becomes the App component so
the parser always returns something.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from webforge.models import CodeBlock, ParseResult, ProjectFile, unique_by_path
from webforge.signatures import (
    APP_FOR_FAMILY, DEFAULT_STYLESHEET, ENTRY_POINTS, HTML_HOST,
    annotation_lines, defines_app_component, family_for_tag, find_path_annotation,
    has_framework_directives, has_mount_call, looks_like_html_document,
    looks_like_package_manifest, looks_like_stylesheet, path_in_heading, path_in_info_string,
)

log = logging.getLogger("parser")

DEGRADED_SUMMARY = "No code blocks were found in the reply; the full text was used as the App component."

SCRIPT_TAGS = {"js", "javascript", "jsx", "mjs", "ts", "typescript", "tsx"}
STYLE_TAGS  = {"css", "scss"}
MARKUP_TAGS = {"html", "htm"}
DATA_TAGS   = {"json"}
SUPPORTED_TAGS = SCRIPT_TAGS | STYLE_TAGS | MARKUP_TAGS | DATA_TAGS

_FENCE_OPEN = re.compile(r"^[ ]{0,3}(`{3,}|~{3,})[ \t]*([^\n`]*)$")


# ── Fence scanning ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Fence:
    start: int      # line index of the opening fence
    end: int        # line index of the closing fence (len(lines) if unterminated)
    tag: str
    info: str
    body: str


@dataclass(frozen=True)
class Document:
    text: str
    lines: list
    fences: list

    @classmethod
    def of(cls, text: str) -> "Document":
        lines = text.split("\n")
        return cls(text=text, lines=lines, fences=scan_fences(lines))

    def fenced_lines(self) -> set:
        inside = set()
        for f in self.fences:
            inside.update(range(f.start, f.end + 1))
        return inside


def scan_fences(lines: list) -> list:
    fences, i = [], 0
    while i < len(lines):
        m = _FENCE_OPEN.match(lines[i])
        if not m:
            i += 1
            continue
        marker, info = m.group(1), m.group(2).strip()
        close = re.compile(rf"^[ ]{{0,3}}{re.escape(marker[0])}{{{len(marker)},}}[ \t]*$")
        j = i + 1
        while j < len(lines) and not close.match(lines[j]):
            j += 1
        tag = re.split(r"[\s:{,]", info, maxsplit=1)[0].lower() if info else ""
        fences.append(Fence(i, j, tag, info, "\n".join(lines[i + 1:j])))
        i = j + 1
    return fences


# ── Path assignment for blocks without an explicit path ───────────────────────

class _PathAssigner:
    """Per-response state: numbered components and singleton canonical paths."""

    def __init__(self):
        self.numbered_count = 0
        self.taken: set = set()

    def numbered(self, ext: str) -> str:
        self.numbered_count += 1
        return f"src/components/Component{self.numbered_count}{ext}"

    def stylesheet(self) -> str:
        if DEFAULT_STYLESHEET in self.taken:
            return self.numbered(".css")
        self.taken.add(DEFAULT_STYLESHEET)
        return DEFAULT_STYLESHEET

    def for_script(self, tag: str, body: str) -> str:
        family = family_for_tag(tag)
        if defines_app_component(body):
            return APP_FOR_FAMILY[family]
        if has_mount_call(body):
            return ENTRY_POINTS[family][0]
        if has_framework_directives(body):
            return self.stylesheet()
        return self.numbered(f".{family}")

    def for_tagged(self, tag: str, body: str) -> str:
        if tag in SCRIPT_TAGS:
            return self.for_script(tag, body)
        if tag in STYLE_TAGS:
            return self.stylesheet()
        if tag in MARKUP_TAGS:
            return HTML_HOST
        return "package.json" if looks_like_package_manifest(body) else "data.json"

    def for_untagged(self, body: str) -> str:
        if looks_like_html_document(body):
            return HTML_HOST
        if looks_like_stylesheet(body):
            return self.stylesheet()
        return self.numbered(".jsx")


# ── Strategies ────────────────────────────────────────────────────────────────
# Uniform signature: Document → list[CodeBlock]. Empty list means "not mine".

def header_fence_pairs(doc: Document) -> list:
    """A: `### src/App.jsx` (or a path on the fence's info line) + fenced body."""
    blocks = []
    for f in doc.fences:
        if not f.body.strip():
            continue
        path = path_in_info_string(f.info) if f.info else None
        if not path:
            k = f.start - 1
            while k >= 0 and not doc.lines[k].strip():
                k -= 1
            if k >= 0:
                path = path_in_heading(doc.lines[k])
        if path:
            blocks.append(CodeBlock(f.tag, f.body, len(blocks), path))
    return blocks


def inline_annotations(doc: Document) -> list:
    """B: `// File: src/App.jsx` lines outside fences; body runs to the next one."""
    inside = doc.fenced_lines()
    anns = [(i, p) for i, p in annotation_lines(doc.text) if i not in inside]
    blocks = []
    for n, (line_no, path) in enumerate(anns):
        stop = anns[n + 1][0] if n + 1 < len(anns) else len(doc.lines)
        region = [f for f in doc.fences if line_no < f.start < stop]
        if region:
            tag, body = region[0].tag, region[0].body
        else:
            tag, body = "", "\n".join(doc.lines[line_no + 1:stop]).strip("\n").rstrip()
        if body.strip():
            blocks.append(CodeBlock(tag, body, len(blocks), path))
    return blocks


def tagged_fences(doc: Document) -> list:
    """C: ```jsx blocks with no path; path inferred from content signatures."""
    assign = _PathAssigner()
    blocks = []
    for f in doc.fences:
        if f.tag not in SUPPORTED_TAGS or not f.body.strip():
            continue
        blocks.append(CodeBlock(f.tag, f.body, len(blocks), assign.for_tagged(f.tag, f.body)))
    return blocks


def untagged_fences(doc: Document) -> list:
    """D: bare ``` blocks, sniffed as host document / stylesheet / component."""
    assign = _PathAssigner()
    blocks = []
    for f in doc.fences:
        if f.tag or not f.body.strip():
            continue
        blocks.append(CodeBlock("", f.body, len(blocks), assign.for_untagged(f.body)))
    return blocks


STRATEGIES = [
    ("header", header_fence_pairs),
    ("annotation", inline_annotations),
    ("tagged", tagged_fences),
    ("untagged", untagged_fences),
]


# ── Parser ────────────────────────────────────────────────────────────────────

class ResponseParser:
    def __init__(self, strategies: Optional[list] = None):
        self.strategies: list = list(strategies or STRATEGIES)

    def parse(self, raw: str) -> ParseResult:
        text = (raw or "").replace("\r\n", "\n")
        doc  = Document.of(text)

        name, blocks = self._first_match(doc)
        degraded = not blocks
        if degraded:
            name = "fallback"
            blocks = [CodeBlock("", text.strip(), 0, APP_FOR_FAMILY["jsx"])]
            log.warning("   ⚠ parse: no usable blocks, whole reply becomes the App component")

        files = self._files(blocks)
        summary = DEGRADED_SUMMARY if degraded else self._summary(doc, name)
        log.info(f"   📄 parse: strategy '{name}' → {len(files)} file(s): {[f.path for f in files]}")
        return ParseResult(files=files, summary=summary, strategy=name, degraded=degraded)

    def _first_match(self, doc: Document):
        for name, strategy in self.strategies:
            try:
                blocks = strategy(doc)
            except Exception as e:
                log.warning(f"   parse: strategy '{name}' failed: {e}")
                continue
            if blocks:
                return name, blocks
        return "", []

    def _files(self, blocks: list) -> list:
        files = []
        for b in sorted(blocks, key=lambda b: b.order):
            # An inline filepath comment beats whatever the strategy decided
            path = find_path_annotation(b.body) or b.path
            files.append(ProjectFile.create(path, b.body))
        return unique_by_path(files)

    def _summary(self, doc: Document, strategy: str) -> str:
        if doc.fences:
            cut = doc.fences[0].start
        elif strategy == "annotation":
            cut = annotation_lines(doc.text)[0][0]
        else:
            cut = len(doc.lines)
        head = doc.lines[:cut]
        # The header naming the first block's path is not summary text
        while head and (not head[-1].strip() or path_in_heading(head[-1])
                        or find_path_annotation(head[-1])):
            head.pop()
        return "\n".join(head).strip()


_default = ResponseParser()


def parse(raw: str) -> ParseResult:
    return _default.parse(raw)
