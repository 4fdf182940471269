"""
ProjectCompleter: candidate files → a set that always holds an HTML host, an
entry point, a root App component and a stylesheet.

Checks run in a fixed order and each one can only append. Later checks read
files that earlier ones may have added (the stylesheet check inspects a
synthesized App, the build-config check inspects a synthesized stylesheet),
so the order is part of the contract. Running the completer on its own output
adds nothing.
"""
import logging
import posixpath
import re
from typing import Iterable, Optional

from webforge import templates
from webforge.models import ProjectFile, unique_by_path
from webforge.signatures import (
    APP_FOR_FAMILY, APP_PATHS, DEFAULT_STYLESHEET, ENTRY_POINTS, MOUNT_ID,
    POSTCSS_CONFIGS, STYLESHEETS, TAILWIND_CONFIGS,
    default_export_name, dominant_family, has_default_component_export,
    has_framework_directives, host_mount_id, is_component_path, is_root_html,
    uses_utility_classes,
)

log = logging.getLogger("completer")


def _import_path(path: str) -> str:
    """Import specifier for `path` as seen from src/App.*, extension dropped."""
    rel = posixpath.relpath(posixpath.splitext(path)[0], "src")
    return rel if rel.startswith("../") else f"./{rel}"


def _identifier(name: str) -> str:
    ident = "".join(part[:1].upper() + part[1:] for part in re.split(r"[^A-Za-z0-9]+", name) if part)
    if not ident or ident[0].isdigit():
        ident = f"Component{ident}"
    return ident


class ProjectCompleter:

    def complete(self, files: Iterable[ProjectFile]) -> list:
        out = unique_by_path(files)
        family = dominant_family(out)

        for check in (self._entry_point, self._app_component, self._html_host,
                      self._stylesheet, self._build_config):
            for f in check(out, family):
                log.info(f"   ➕ synthesized {f.path} ({len(f.content)}B)")
                out.append(f)
        return out

    # ── 1. Entry point ────────────────────────────────────────────────────────

    def _entry_point(self, files: list, family: str) -> list:
        paths = {f.path for f in files}
        if any(p in paths for p in ENTRY_POINTS[family]):
            return []
        sheet = next((p for p in STYLESHEETS if p in paths), DEFAULT_STYLESHEET)
        host  = next((f for f in files if is_root_html(f.path)), None)
        mount = (host and host_mount_id(host.content)) or MOUNT_ID
        content = templates.entry_point(_import_path(sheet) + ".css", mount)
        return [ProjectFile.create(ENTRY_POINTS[family][0], content, "synthesized")]

    # ── 2. Root App component ────────────────────────────────────────────────

    def _app_component(self, files: list, family: str) -> list:
        if any(f.path in APP_PATHS for f in files):
            return []
        path = APP_FOR_FAMILY[family]
        root = self.find_root_candidate(files)
        if root is None:
            log.info("   no default-exported component found, using placeholder App")
            return [ProjectFile.create(path, templates.PLACEHOLDER_APP, "synthesized")]

        name = default_export_name(root.content) or _identifier(posixpath.splitext(posixpath.basename(root.path))[0])
        if name == "App":
            name = "AppComponent"
        log.info(f"   App will render {root.path} as <{name} />")
        return [ProjectFile.create(path, templates.app_wrapper(_import_path(root.path), name), "synthesized")]

    @staticmethod
    def find_root_candidate(files: list) -> Optional[ProjectFile]:
        """First generated component file, in emission order, with a default-exported component."""
        for f in files:
            if f.origin == "generated" and is_component_path(f.path) and has_default_component_export(f.content):
                return f
        return None

    # ── 3. HTML host ─────────────────────────────────────────────────────────

    def _html_host(self, files: list, family: str) -> list:
        if any(is_root_html(f.path) for f in files):
            return []
        paths = {f.path for f in files}
        entry = next((p for p in ENTRY_POINTS[family] if p in paths), ENTRY_POINTS[family][0])
        return [ProjectFile.create("index.html", templates.index_html(entry, mount_id=MOUNT_ID), "synthesized")]

    # ── 4. Stylesheet ────────────────────────────────────────────────────────

    def _stylesheet(self, files: list, family: str) -> list:
        if any(f.path in STYLESHEETS for f in files):
            return []
        tailwind = any(uses_utility_classes(f.content) or has_framework_directives(f.content) for f in files)
        return [ProjectFile.create(DEFAULT_STYLESHEET, templates.stylesheet(tailwind), "synthesized")]

    # ── 5. Build configuration ───────────────────────────────────────────────

    def _build_config(self, files: list, family: str) -> list:
        if not any(has_framework_directives(f.content) for f in files):
            return []
        paths = {f.path for f in files}
        added = []
        if not any(p in paths for p in TAILWIND_CONFIGS):
            added.append(ProjectFile.create(TAILWIND_CONFIGS[0], templates.TAILWIND_CONFIG, "synthesized"))
        if not any(p in paths for p in POSTCSS_CONFIGS):
            added.append(ProjectFile.create(POSTCSS_CONFIGS[0], templates.POSTCSS_CONFIG, "synthesized"))
        return added


_default = ProjectCompleter()


def complete(files: Iterable[ProjectFile]) -> list:
    return _default.complete(files)
