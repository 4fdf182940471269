"""
Canonical path vocabulary and content signatures.

Every heuristic here is a plain predicate over text so it can be tuned (and
tested) without touching the parser / completer / materializer control flow.
They are pattern matches, not grammars: false positives are expected and the
callers are written to tolerate them.
"""
import posixpath
import re
from typing import Iterable, Optional

# ── Canonical paths ───────────────────────────────────────────────────────────

HTML_HOST = "index.html"
MOUNT_ID  = "root"

ENTRY_POINTS = {
    "jsx": ("src/main.jsx", "src/index.jsx", "src/main.js", "src/index.js"),
    "tsx": ("src/main.tsx", "src/index.tsx", "src/main.ts", "src/index.ts"),
}
ALL_ENTRY_POINTS = ENTRY_POINTS["jsx"] + ENTRY_POINTS["tsx"]

APP_PATHS      = ("src/App.jsx", "src/App.tsx", "src/App.js")
APP_FOR_FAMILY = {"jsx": "src/App.jsx", "tsx": "src/App.tsx"}

STYLESHEETS       = ("src/index.css", "src/App.css", "src/styles.css")
DEFAULT_STYLESHEET = STYLESHEETS[0]

TAILWIND_CONFIGS = ("tailwind.config.js", "tailwind.config.cjs", "tailwind.config.mjs", "tailwind.config.ts")
POSTCSS_CONFIGS  = ("postcss.config.js", "postcss.config.cjs", "postcss.config.mjs")

COMPONENT_EXTS = (".jsx", ".tsx", ".js", ".ts")

_TS_TAGS = {"ts", "tsx", "typescript"}


def family_for_tag(tag: str) -> str:
    return "tsx" if tag.lower() in _TS_TAGS else "jsx"


def is_root_html(path: str) -> bool:
    return "/" not in path and path.lower().endswith((".html", ".htm"))


def is_config_path(path: str) -> bool:
    return bool(re.search(r"\.config\.[cm]?[jt]s$", posixpath.basename(path)))


def is_entry_path(path: str) -> bool:
    return path in ALL_ENTRY_POINTS


def is_component_path(path: str) -> bool:
    return (path.endswith(COMPONENT_EXTS)
            and not is_entry_path(path)
            and not is_config_path(path))


def dominant_family(files: Iterable) -> str:
    """
    "tsx" when generated TypeScript sources outnumber generated JavaScript ones.
    Synthesized files never vote, so completing a set cannot flip its family.
    """
    ts = js = 0
    for f in files:
        if f.origin != "generated" or is_config_path(f.path):
            continue
        if f.language in ("ts", "tsx"):
            ts += 1
        elif f.language in ("js", "jsx"):
            js += 1
    return "tsx" if ts > js else "jsx"


# ── Path detection in prose ───────────────────────────────────────────────────

_EXTS = r"(?:mjs|cjs|jsx|tsx|json|js|ts|scss|sass|less|css|html|htm|md|svg|txt)"
PATH_TOKEN = re.compile(rf"(?:[\w@.\-\[\]]+/)*[\w@\-\[\].]*\w\.{_EXTS}\b")

_HEADING = re.compile(
    r"^[ ]{0,3}(?:#{1,6}[ \t]+(?P<h>.+?)[ \t]*#*[ \t]*"
    r"|\*\*(?P<b>[^*]+?)\*\*:?[ \t]*"
    r"|__(?P<u>[^_]+?)__:?[ \t]*)$"
)
_HEADING_PREFIX = re.compile(r"^(?:\d+[.)][ \t]*)?(?:(?:file(?:[ _-]?(?:name|path))?|path)[ \t]*[:\-][ \t]*)?", re.I)

_ANNOTATION = re.compile(
    r"^[ \t]*(?://|/\*+|<!--|#|\{/\*+)[ \t]*"
    r"(?:file[ _-]?path|file[ _-]?name|file|path)[ \t]*:[ \t]*"
    r"(?P<path>[^\s*]+?)[ \t]*(?:\*+/\}?|-->)?[ \t]*$",
    re.I | re.M,
)


def looks_like_path(text: str) -> bool:
    return bool(PATH_TOKEN.fullmatch(text.strip().strip("`'\"")))


def path_in_heading(line: str) -> Optional[str]:
    """Path named by a markdown header (`### src/App.jsx`) or a bold-only line."""
    m = _HEADING.match(line.rstrip())
    if not m:
        return None
    text = (m.group("h") or m.group("b") or m.group("u") or "").replace("`", "").replace("*", "").strip()
    text = _HEADING_PREFIX.sub("", text, count=1)
    tok = PATH_TOKEN.match(text)
    if not tok:
        return None
    rest = text[tok.end():].strip()
    # "### src/App.jsx (main component)" is fine, "### App.jsx and friends" is prose
    if rest and not rest.startswith(("(", "-", "–", ":")):
        return None
    return tok.group(0)


def path_in_info_string(info: str) -> Optional[str]:
    """Path carried on a fence's info line: ```jsx src/App.jsx / ```tsx title="src/App.tsx"."""
    head, _, rest = info.partition(":")
    candidates = []
    if rest and looks_like_path(rest):
        candidates.append(rest)
    for word in info.split()[1:]:
        word = re.sub(r"^(?:title|file(?:name|path)?|path)=", "", word, flags=re.I)
        candidates.append(word)
    for c in candidates:
        c = c.strip().strip("`'\"")
        if looks_like_path(c):
            return c
    return None


def find_path_annotation(text: str) -> Optional[str]:
    """First `// filepath: src/App.jsx` style annotation naming a path."""
    for m in _ANNOTATION.finditer(text):
        p = m.group("path")
        if looks_like_path(p):
            return p.strip("`'\"")
    return None


def annotation_lines(text: str) -> list:
    """[(line_index, path)] for every annotation line in text."""
    out = []
    for i, line in enumerate(text.split("\n")):
        m = _ANNOTATION.match(line)
        if m and looks_like_path(m.group("path")):
            out.append((i, m.group("path").strip("`'\"")))
    return out


# ── Script signatures ─────────────────────────────────────────────────────────

_APP_DEF     = re.compile(r"\bfunction\s+App\s*[(<]|\b(?:const|let|var)\s+App\s*(?::[^=\n]+)?=|\bclass\s+App\s+extends\b")
_MOUNT_CALL  = re.compile(r"\bcreateRoot\s*\(|\bReactDOM\.render\s*\(|\bhydrateRoot\s*\(")
_MOUNT_ID    = re.compile(r"getElementById\(\s*['\"]([\w-]+)['\"]\s*\)")

_DEFAULT_EXPORTS = (
    re.compile(r"\bexport\s+default\s+(?:async\s+)?function\s+([A-Z]\w*)"),
    re.compile(r"\bexport\s+default\s+class\s+([A-Z]\w*)"),
    re.compile(r"\bexport\s+default\s+(?:React\.)?(?:memo|forwardRef)\(\s*([A-Z]\w*)"),
    re.compile(r"^[ \t]*export\s+default\s+([A-Z]\w*)\s*;?[ \t]*$", re.M),
    re.compile(r"\bexport\s*\{[^}]*?\b([A-Z]\w*)\s+as\s+default\b"),
)
_ANON_DEFAULT = re.compile(r"\bexport\s+default\s+(?:async\s+)?(?:function\s*\(|\([^)]*\)\s*=>|class\s*(?:extends|\{))")


def defines_app_component(text: str) -> bool:
    return bool(_APP_DEF.search(text))


def has_mount_call(text: str) -> bool:
    return bool(_MOUNT_CALL.search(text))


def mount_element_id(text: str) -> Optional[str]:
    m = _MOUNT_ID.search(text)
    return m.group(1) if m else None


def default_export_name(text: str) -> Optional[str]:
    for pat in _DEFAULT_EXPORTS:
        m = pat.search(text)
        if m:
            return m.group(1)
    if defines_app_component(text) and re.search(r"\bexport\s+default\b", text):
        return "App"
    return None


def has_default_component_export(text: str) -> bool:
    return any(p.search(text) for p in _DEFAULT_EXPORTS) or bool(_ANON_DEFAULT.search(text))


# ── Style signatures ──────────────────────────────────────────────────────────

_DIRECTIVES = re.compile(r"@tailwind\s+[\w-]+|@apply\s+\S|@import\s+['\"]tailwindcss")
_CLASS_ATTR = re.compile(
    r"\bclass(?:Name)?\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|\{\s*[`'\"]([^`'\"]*)[`'\"]\s*\})"
)
_UTILITY = re.compile(
    r"^-?(?:"
    r"(?:p[xytblr]?|m[xytblr]?|w|h|min-w|min-h|max-w|max-h|gap(?:-[xy])?|space-[xy]|inset|top|left|right|bottom|z"
    r"|bg|text|font|leading|tracking|rounded(?:-[tblr]{1,2})?|shadow|border(?:-[tblrxy])?|ring|opacity"
    r"|grid-cols|grid-rows|col-span|row-span|items|justify|self|place-items|from|via|to|fill|stroke"
    r"|translate-[xy]|scale|rotate|duration|ease|delay|blur|backdrop-blur|overflow(?:-[xy])?|order|basis)"
    r"-[\w./\[\]#%()-]+"
    r"|flex|grid|block|inline-block|inline-flex|hidden|relative|absolute|fixed|sticky|truncate|uppercase"
    r"|lowercase|capitalize|italic|underline|antialiased|shadow|rounded|border|transition|flex-col|flex-row"
    r"|flex-wrap|flex-1|mx-auto|min-h-screen|w-full|h-full|sr-only)$"
)
_CSS_AT_RULE  = re.compile(r"@media\b|@keyframes\b|@import\b|@font-face\b|:root\s*\{")
_CSS_RULE     = re.compile(r"^[^{}\n;=()]+\{[^{}]*?[\w-]+\s*:\s*[^;{}]+;?[^{}]*\}", re.M)
_SCRIPT_WORDS = re.compile(r"^\s*(?:import|export|const|let|var|function|return|class)\b", re.M)
_HTML_DOC     = re.compile(r"<!doctype\s+html|<html[\s>]", re.I)


def has_framework_directives(text: str) -> bool:
    return bool(_DIRECTIVES.search(text))


def utility_class_count(text: str) -> int:
    n = 0
    for m in _CLASS_ATTR.finditer(text):
        value = m.group(1) or m.group(2) or m.group(3) or ""
        for tok in value.split():
            tok = tok.rsplit(":", 1)[-1]   # md:hover:bg-x → bg-x
            if _UTILITY.match(tok):
                n += 1
    return n


def uses_utility_classes(text: str) -> bool:
    return utility_class_count(text) >= 2


def looks_like_html_document(text: str) -> bool:
    return bool(_HTML_DOC.search(text))


def looks_like_stylesheet(text: str) -> bool:
    if has_framework_directives(text):
        return True
    if _SCRIPT_WORDS.search(text) or looks_like_html_document(text):
        return False
    return bool(_CSS_AT_RULE.search(text) or _CSS_RULE.search(text))


def looks_like_package_manifest(text: str) -> bool:
    return bool(re.search(r"\"(?:dependencies|devDependencies|scripts)\"\s*:", text)
                and re.search(r"\"name\"\s*:", text))


_HOST_MOUNT = re.compile(
    r"<(div|main|section)\b[^>]*?\bid\s*=\s*[\"']([\w-]+)[\"'][^>]*>\s*</\1\s*>", re.I
)


def host_mount_id(html: str) -> Optional[str]:
    """Id of the first empty container element in a host document."""
    m = _HOST_MOUNT.search(html)
    return m.group(2) if m else None
