"""
PreviewMaterializer: complete file set → one self-contained preview document.

Two tiers. "live" embeds the App and every project module it imports with a
browser-side React + Babel runtime so the real component tree runs. "approximated" never executes anything:
it lifts the literal markup out of each component's return expression and
pastes it into the host page. If neither produces content the artifact has
mode "none" and explains why. Nothing here raises to the caller.
"""
import html
import logging
import posixpath
import re
from typing import Iterable, Optional

from webforge import templates
from webforge.models import MarkupExtractionError, PreviewArtifact, ProjectFile, StrategyUnavailable
from webforge.signatures import (
    APP_PATHS, MOUNT_ID, default_export_name, has_default_component_export,
    has_framework_directives, host_mount_id,
    is_config_path, is_entry_path, is_root_html, mount_element_id, uses_utility_classes,
)

log = logging.getLogger("materializer")

MODES = ("live", "approximated")

SCRIPT_LANGUAGES = ("jsx", "tsx", "js", "ts")
MODULE_EXTS      = (".jsx", ".tsx", ".js", ".ts", ".mjs")
MODULE_PREFIX    = "@project/"
STYLE_EXTS       = (".css", ".scss", ".sass", ".less")
VOID_ELEMENTS    = {"area", "base", "br", "col", "embed", "hr", "img", "input",
                    "link", "meta", "source", "track", "wbr"}
UNITLESS_STYLES  = {"opacity", "z-index", "font-weight", "line-height", "flex", "flex-grow",
                    "flex-shrink", "order", "zoom"}

_IMPORT      = re.compile(r"^[ \t]*(?:import|export)\s+(?:[\w*{}\s,$]+?\s+from\s+)?['\"]([^'\"]+)['\"][ \t]*;?[ \t]*$", re.M)
_REACT_BOUND = re.compile(r"^[ \t]*import\s+(?:\*\s+as\s+)?React\b", re.M)
_TITLE       = re.compile(r"<title>(.*?)</title>", re.I | re.S)
_LOCAL_SCRIPT = re.compile(
    r"<script\b[^>]*\bsrc\s*=\s*[\"'](?!https?:|//)[^\"']*[\"'][^>]*>\s*</script>\s*", re.I
)
_MARKUP_START = re.compile(r"(?:\breturn|=>)\s*(?:\(\s*)?(?=<[A-Za-z>])")
_JSX_COMMENT  = re.compile(r"\{\s*/\*.*?\*/\s*\}", re.S)
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.S)


# ── Scanning helpers ──────────────────────────────────────────────────────────
# Structural matching over JSX-ish text. Quotes only open a string where an
# expression can start, so apostrophes in JSX text ("Don't") are left alone.

def _prev_significant(src: str, i: int) -> str:
    j = i - 1
    while j >= 0 and src[j] in " \t\r\n":
        j -= 1
    return src[j] if j >= 0 else ""


def _skip_string(src: str, i: int) -> int:
    q, j, n = src[i], i + 1, len(src)
    while j < n:
        if src[j] == "\\":
            j += 2
            continue
        if src[j] == q:
            return j + 1
        j += 1
    raise MarkupExtractionError("unterminated string literal")


def _skip_braces(src: str, i: int) -> int:
    """src[i] == '{'; index just past the matching '}'."""
    depth, j, n = 0, i, len(src)
    while j < n:
        c = src[j]
        if src.startswith("/*", j):
            end = src.find("*/", j + 2)
            if end == -1:
                raise MarkupExtractionError("unterminated comment")
            j = end + 2
            continue
        if c in "'\"`" and _prev_significant(src, j) in "=(,:[!&|?+{};":
            j = _skip_string(src, j)
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return j + 1
        j += 1
    raise MarkupExtractionError("unbalanced braces")


def _tag_end(src: str, i: int) -> int:
    """src[i] == '<'; index of the '>' closing this tag."""
    j, n = i + 1, len(src)
    while j < n:
        c = src[j]
        if c in "\"'":
            end = src.find(c, j + 1)
            if end == -1:
                raise MarkupExtractionError("unterminated attribute value")
            j = end + 1
            continue
        if c == "{":
            j = _skip_braces(src, j)
            continue
        if c == ">":
            return j
        j += 1
    raise MarkupExtractionError("unterminated tag")


def _match_element(src: str, i: int) -> int:
    """src[i] == '<'; index just past the element (or fragment) that opens there."""
    depth, j, n = 0, i, len(src)
    while j < n:
        c = src[j]
        if c == "{":
            j = _skip_braces(src, j)
            continue
        if c == "<":
            if src.startswith("</", j):
                end = src.find(">", j)
                if end == -1:
                    raise MarkupExtractionError("unterminated closing tag")
                depth -= 1
                j = end + 1
                if depth == 0:
                    return j
                if depth < 0:
                    raise MarkupExtractionError("closing tag without opening tag")
                continue
            if j + 1 < n and (src[j + 1].isalpha() or src[j + 1] == ">"):
                end = _tag_end(src, j)
                if src[end - 1] != "/":
                    depth += 1
                j = end + 1
                if depth == 0:
                    return j
                continue
        j += 1
    raise MarkupExtractionError("unclosed element in return expression")


def extract_markup(source: str) -> Optional[str]:
    """
    Literal JSX of the component's render expression: the last outermost
    `return <...>` / `return (<...>)` / `=> (<...>)` in the file. None when the
    file renders no markup; MarkupExtractionError when it does but the
    structure does not balance.
    """
    spans, failures = [], []
    for m in _MARKUP_START.finditer(source):
        start = m.end()
        try:
            spans.append((start, _match_element(source, start)))
        except MarkupExtractionError as e:
            failures.append(e)
    if not spans:
        if failures:
            raise failures[0]
        return None
    outer = [s for s in spans if not any(o[0] < s[0] and s[1] <= o[1] for o in spans)]
    start, end = outer[-1]
    return source[start:end]


# ── JSX → portable HTML ───────────────────────────────────────────────────────

def _literal(expr: str) -> Optional[str]:
    e = expr.strip()
    m = re.fullmatch(r"(['\"])(.*)\1", e, re.S)
    if m and m.group(1) not in m.group(2):
        return m.group(2)
    m = re.fullmatch(r"`([^`]*)`", e, re.S)
    if m and "${" not in m.group(1):
        return m.group(1)
    if re.fullmatch(r"-?\d+(?:\.\d+)?", e):
        return e
    return None


def _kebab(name: str) -> str:
    return re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name.strip().strip("'\""))


def _style_object(expr: str) -> str:
    body = expr.strip()
    if not (body.startswith("{") and body.endswith("}")):
        return ""
    decls = []
    for part in body[1:-1].split(","):
        key, sep, value = part.partition(":")
        if not sep or not key.strip():
            continue
        lit = _literal(value)
        if lit is None:
            continue
        prop = _kebab(key)
        if re.fullmatch(r"-?\d+(?:\.\d+)?", lit) and lit != "0" and prop not in UNITLESS_STYLES:
            lit += "px"
        decls.append(f"{prop}: {lit}")
    return "; ".join(decls)


def _parse_attrs(rest: str) -> list:
    attrs, i, n = [], 0, len(rest)
    while i < n:
        if rest[i].isspace():
            i += 1
            continue
        if rest[i] == "{":   # {...props}
            i = _skip_braces(rest, i)
            continue
        m = re.match(r"[\w:.-]+", rest[i:])
        if not m:
            i += 1
            continue
        name = m.group(0)
        i += len(name)
        while i < n and rest[i].isspace():
            i += 1
        if i >= n or rest[i] != "=":
            attrs.append((name, "bool", ""))
            continue
        i += 1
        while i < n and rest[i].isspace():
            i += 1
        if i < n and rest[i] in "\"'":
            end = rest.find(rest[i], i + 1)
            end = n if end == -1 else end
            attrs.append((name, "string", rest[i + 1:end]))
            i = end + 1
        elif i < n and rest[i] == "{":
            end = _skip_braces(rest, i)
            attrs.append((name, "expr", rest[i + 1:end - 1]))
            i = end
        else:
            m = re.match(r"[^\s>]+", rest[i:])
            value = m.group(0) if m else ""
            attrs.append((name, "string", value))
            i += len(value) or 1
    return attrs


def _element_name(tag: str) -> Optional[str]:
    """motion.div → div, Navbar → None (component), '' → '' (fragment)."""
    if "." in tag:
        member = tag.rsplit(".", 1)[1]
        return member if member[:1].islower() else None
    if tag[:1].isupper():
        return None
    return tag


def _html_attrs(attrs: list) -> str:
    out = []
    for name, kind, value in attrs:
        if name in ("key", "ref") or re.match(r"on[A-Z]", name):
            continue
        name = {"className": "class", "htmlFor": "for"}.get(name, name)
        if kind == "bool":
            out.append(name)
            continue
        if kind == "expr":
            value = _style_object(value) if name == "style" else _literal(value)
            if not value:
                continue
        out.append(f'{name}="{html.escape(value, quote=True)}"' if '"' in value else f'{name}="{value}"')
    return "".join(" " + a for a in out)


def _open_tag(tag_src: str) -> str:
    inner = tag_src[1:-1].strip()
    self_closing = inner.endswith("/")
    if self_closing:
        inner = inner[:-1].rstrip()
    m = re.match(r"[\w.:-]*", inner)
    tag = m.group(0)
    if not tag:
        return ""
    element = _element_name(tag)
    if element is None:
        return "" if self_closing else f'<div data-component="{tag}">'
    attrs = _html_attrs(_parse_attrs(inner[m.end():]))
    if element in VOID_ELEMENTS:
        return f"<{element}{attrs}>"
    return f"<{element}{attrs}></{element}>" if self_closing else f"<{element}{attrs}>"


def _close_tag(tag: str) -> str:
    tag = tag.strip()
    if not tag:
        return ""
    element = _element_name(tag)
    if element is None:
        return "</div>"
    return "" if element in VOID_ELEMENTS else f"</{element}>"


def portable_markup(jsx: str) -> str:
    """Strip what only makes sense inside a component runtime."""
    src = _HTML_COMMENT.sub("", _JSX_COMMENT.sub("", jsx))
    out, i, n = [], 0, len(src)
    while i < n:
        c = src[i]
        if c == "<" and src.startswith("</", i):
            end = src.find(">", i)
            if end == -1:
                raise MarkupExtractionError("unterminated closing tag")
            out.append(_close_tag(src[i + 2:end]))
            i = end + 1
        elif c == "<" and i + 1 < n and (src[i + 1].isalpha() or src[i + 1] == ">"):
            end = _tag_end(src, i)
            out.append(_open_tag(src[i:end + 1]))
            i = end + 1
        elif c == "{":
            end = _skip_braces(src, i)
            lit = _literal(src[i + 1:end - 1])
            if lit is not None:
                out.append(html.escape(lit, quote=False))
            i = end
        else:
            out.append(c)
            i += 1
    return "".join(out)


# ── Module resolution ─────────────────────────────────────────────────────────

def _is_runtime(specifier: str) -> bool:
    return specifier in ("react", "react-dom") or specifier.startswith(("react/", "react-dom/"))


def resolve_import(importer: str, specifier: str, by_path: dict) -> Optional[ProjectFile]:
    """Project module a relative import points at, trying bundler-style extensions and index files."""
    if specifier.startswith("/"):
        base = posixpath.normpath(specifier.lstrip("/"))
    else:
        base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    candidates = [base] + [base + ext for ext in MODULE_EXTS] + [f"{base}/index{ext}" for ext in MODULE_EXTS]
    for c in candidates:
        f = by_path.get(c)
        if f is not None and f.language in SCRIPT_LANGUAGES:
            return f
    return None


# ── Materializer ──────────────────────────────────────────────────────────────

class PreviewMaterializer:

    def materialize(self, files: Iterable[ProjectFile], mode: Optional[str] = None) -> PreviewArtifact:
        files = list(files)
        diagnostics: list = []
        requested = mode or "live"
        if requested not in MODES:
            diagnostics.append(f"unknown preview mode '{mode}', trying live first")
            requested = "live"

        if requested == "live":
            try:
                document = self.live(files, diagnostics)
                log.info(f"   🖼  live preview ready ({len(document)}B)")
                return PreviewArtifact("live", document, diagnostics)
            except StrategyUnavailable as e:
                diagnostics.append(f"live preview unavailable: {e}")
            except Exception as e:
                log.error(f"   live preview failed: {e}")
                diagnostics.append(f"live preview failed: {e}")
            diagnostics.append("showing an approximated static preview instead")
        else:
            diagnostics.append("live preview skipped on request; showing an approximated static preview")

        try:
            document = self.approximated(files, diagnostics)
        except Exception as e:
            log.error(f"   approximated preview failed: {e}")
            diagnostics.append(f"approximated preview failed: {e}")
            document = None
        if document is not None:
            log.warning(f"   ⚠ approximated preview ({len(document)}B)")
            return PreviewArtifact("approximated", document, diagnostics)

        diagnostics.append("no preview available: the project has no renderable component markup")
        log.warning("   ⚠ no preview available")
        return PreviewArtifact("none", None, diagnostics)

    # ── Lookups ───────────────────────────────────────────────────────────────

    @staticmethod
    def find_app(files: list) -> Optional[ProjectFile]:
        by_path = {f.path: f for f in files}
        return next((by_path[p] for p in APP_PATHS if p in by_path), None)

    @staticmethod
    def find_host(files: list) -> Optional[ProjectFile]:
        hosts = [f for f in files if is_root_html(f.path)]
        return next((f for f in hosts if f.path == "index.html"), hosts[0] if hosts else None)

    def mount_id(self, files: list) -> str:
        for f in files:
            if is_entry_path(f.path):
                found = mount_element_id(f.content)
                if found:
                    return found
        host = self.find_host(files)
        return (host and host_mount_id(host.content)) or MOUNT_ID

    def title(self, files: list) -> str:
        host = self.find_host(files)
        m = _TITLE.search(host.content) if host else None
        return html.unescape(m.group(1).strip()) if m and m.group(1).strip() else "Preview"

    @staticmethod
    def stylesheets(files: list) -> list:
        return [{"path": f.path,
                 "css": templates.script_safe(f.content),
                 "tailwind": has_framework_directives(f.content)}
                for f in files if f.language == "css"]

    def _head_context(self, files: list) -> dict:
        sheets = self.stylesheets(files)
        tailwind = any(s["tailwind"] for s in sheets) or any(
            uses_utility_classes(f.content) for f in files if f.language in SCRIPT_LANGUAGES + ("html",))
        return {"stylesheets": sheets, "tailwind": tailwind}

    # ── Strategy: live ────────────────────────────────────────────────────────

    def live(self, files: list, diagnostics: list) -> str:
        app = self.find_app(files)
        if app is None:
            raise StrategyUnavailable("no root App component (src/App.jsx, src/App.tsx or src/App.js)")
        if not (default_export_name(app.content) or has_default_component_export(app.content)):
            raise StrategyUnavailable(f"{app.path} has no default export to mount")

        modules, bare = self.collect_modules(app, files)
        if len(modules) > 1:
            log.info(f"   📦 live preview bundles {len(modules)} module(s): {[m['path'] for m in modules]}")

        mount = self.mount_id(files)
        mount_call = (
            "import * as React from 'react';\n"
            "import { createRoot } from 'react-dom/client';\n"
            f"import App from '{MODULE_PREFIX}{app.path}';\n"
            f"createRoot(document.getElementById('{mount}')).render(React.createElement(App));"
        )
        return templates.render(
            "live.html",
            title=self.title(files),
            mount_id=mount,
            module_prefix=MODULE_PREFIX,
            import_map=templates.script_safe(templates.import_map(bare)),
            modules=modules,
            mount=mount_call,
            **self._head_context(files),
        )

    def collect_modules(self, app: ProjectFile, files: list):
        """
        Every project module reachable from the App, App first. Relative
        imports are rewritten to MODULE_PREFIX + path so the page's import map
        can point them at the compiled module. An import that matches no
        project module makes the live strategy unavailable.
        """
        by_path = {f.path: f for f in files}
        queue, seen = [app], {app.path}
        modules, bare = [], []

        while queue:
            module = queue.pop(0)

            def rewrite(m):
                specifier = m.group(1)
                if not specifier.startswith((".", "/")):
                    if not _is_runtime(specifier) and specifier not in bare:
                        bare.append(specifier)
                    return m.group(0)
                # Stylesheets are inlined in <head>, their imports would 404 in the sandbox
                if specifier.endswith(STYLE_EXTS):
                    return f"// stylesheet inlined: {m.group(0).strip()}"
                target = resolve_import(module.path, specifier, by_path)
                if target is None:
                    raise StrategyUnavailable(f"{module.path}: import '{specifier}' matches no project module")
                if target.path not in seen:
                    seen.add(target.path)
                    queue.append(target)
                whole, start = m.group(0), m.start(0)
                return whole[:m.start(1) - start] + MODULE_PREFIX + target.path + whole[m.end(1) - start:]

            source = _IMPORT.sub(rewrite, module.content)
            preamble = "" if _REACT_BOUND.search(source) else "import React from 'react';\n"
            modules.append({
                "path": module.path,
                "presets": "tsx,react" if module.language in ("tsx", "ts") else "react",
                "source": templates.script_safe(preamble + source),
            })
        return modules, bare

    # ── Strategy: approximated ───────────────────────────────────────────────

    def approximated(self, files: list, diagnostics: list) -> Optional[str]:
        fragments = []
        for f in files:
            if f.language not in SCRIPT_LANGUAGES or is_entry_path(f.path) or is_config_path(f.path):
                continue
            try:
                markup = extract_markup(f.content)
                if markup is None:
                    continue
                fragment = portable_markup(markup).strip()
            except MarkupExtractionError as e:
                log.warning(f"   skipped {f.path}: {e}")
                diagnostics.append(f"skipped {f.path}: {e}")
                continue
            except Exception as e:
                log.warning(f"   skipped {f.path}: {e}")
                diagnostics.append(f"skipped {f.path}: unexpected extraction error: {e}")
                continue
            if fragment:
                fragments.append(f"<!-- {f.path} -->\n{fragment}")

        if not fragments:
            diagnostics.append("approximated preview found no component markup")
            return None

        mount = self.mount_id(files)
        host = self.find_host(files)
        page = host.content if host else templates.render("host.html", title="Preview", mount_id=mount)
        page = _LOCAL_SCRIPT.sub("", page)
        return self._inject(page, "\n".join(fragments), mount,
                            templates.render("assets.html", **self._head_context(files)))

    @staticmethod
    def _inject(page: str, body: str, mount: str, head_assets: str) -> str:
        mount_el = re.compile(
            rf"(<(div|main|section)\b[^>]*?\bid\s*=\s*[\"']{re.escape(mount)}[\"'][^>]*>)\s*(</\2\s*>)", re.I
        )
        if mount_el.search(page):
            page = mount_el.sub(lambda m: f"{m.group(1)}\n{body}\n{m.group(3)}", page, count=1)
        elif re.search(r"</body\s*>", page, re.I):
            page = re.sub(r"</body\s*>", lambda m: f'<div id="{mount}">\n{body}\n</div>\n{m.group(0)}',
                          page, count=1, flags=re.I)
        else:
            page += f'\n<div id="{mount}">\n{body}\n</div>\n'

        if head_assets.strip():
            if re.search(r"</head\s*>", page, re.I):
                page = re.sub(r"</head\s*>", lambda m: f"{head_assets}{m.group(0)}", page, count=1, flags=re.I)
            else:
                page = head_assets + page
        return page


_default = PreviewMaterializer()


def materialize(files: Iterable[ProjectFile], mode: Optional[str] = None) -> PreviewArtifact:
    return _default.materialize(files, mode)
