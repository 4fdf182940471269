import posixpath
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Literal, Optional

Language = Literal["js", "ts", "jsx", "tsx", "css", "html", "json", "other"]
Origin   = Literal["generated", "synthesized"]
Mode     = Literal["live", "approximated", "none"]

_EXT_LANGUAGE = {
    ".js": "js",   ".mjs": "js",  ".cjs": "js",
    ".ts": "ts",   ".mts": "ts",  ".cts": "ts",
    ".jsx": "jsx", ".tsx": "tsx",
    ".css": "css",
    ".html": "html", ".htm": "html",
    ".json": "json",
}


# ── Errors ────────────────────────────────────────────────────────────────────
# Raised inside the materializer only; materialize() turns them into diagnostics.

class PreviewError(Exception):
    pass


class StrategyUnavailable(PreviewError):
    """The live strategy cannot build a document for this snapshot."""


class MarkupExtractionError(PreviewError):
    """A component's return markup could not be matched structurally."""


# ── Path helpers ──────────────────────────────────────────────────────────────

def normalize_path(path: str) -> str:
    p = path.strip().strip("`'\"").rstrip(":").strip()
    p = p.replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    p = p.lstrip("/")
    return posixpath.normpath(p) if p else p


def language_for_path(path: str) -> Language:
    ext = posixpath.splitext(path)[1].lower()
    return _EXT_LANGUAGE.get(ext, "other")


# ── Data model ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CodeBlock:
    """Parser-internal block; discarded once a path has been assigned."""
    language_tag: str
    body: str
    order: int
    path: Optional[str] = None


@dataclass(frozen=True)
class ProjectFile:
    path: str
    content: str
    language: Language
    origin: Origin = "generated"

    @classmethod
    def create(cls, path: str, content: str, origin: Origin = "generated") -> "ProjectFile":
        p = normalize_path(path)
        return cls(path=p, content=content, language=language_for_path(p), origin=origin)

    @property
    def synthesized(self) -> bool:
        return self.origin == "synthesized"

    def to_dict(self) -> dict:
        return {"path": self.path, "content": self.content,
                "language": self.language, "origin": self.origin}

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectFile":
        return cls.create(data.get("path", ""), data.get("content", ""),
                          data.get("origin", "generated"))


def unique_by_path(files: Iterable[ProjectFile]) -> list:
    """First occurrence of each path wins."""
    seen, out = set(), []
    for f in files:
        if f.path in seen:
            continue
        seen.add(f.path)
        out.append(f)
    return out


@dataclass(frozen=True)
class ProjectSnapshot:
    files: tuple = ()
    summary: str = ""

    @classmethod
    def build(cls, files: Iterable[ProjectFile], summary: str = "") -> "ProjectSnapshot":
        return cls(files=tuple(unique_by_path(files)), summary=summary)

    def __iter__(self) -> Iterator[ProjectFile]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def paths(self) -> list:
        return [f.path for f in self.files]

    def get(self, path: str) -> Optional[ProjectFile]:
        path = normalize_path(path)
        return next((f for f in self.files if f.path == path), None)

    def to_dict(self) -> dict:
        return {"summary": self.summary, "files": [f.to_dict() for f in self.files]}

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectSnapshot":
        files = [ProjectFile.from_dict(f) for f in data.get("files", []) if isinstance(f, dict)]
        return cls.build(files, data.get("summary", ""))


@dataclass
class ParseResult:
    files: list
    summary: str
    strategy: str = ""
    degraded: bool = False

    def __iter__(self):
        # files, summary = parser.parse(raw)
        yield self.files
        yield self.summary


@dataclass
class PreviewArtifact:
    mode: Mode
    document: Optional[str] = None
    diagnostics: list = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.document is not None

    @property
    def is_fallback(self) -> bool:
        return self.mode == "approximated"
