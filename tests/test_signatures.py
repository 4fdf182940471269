from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from webforge.models import ProjectFile, normalize_path
from webforge.signatures import (
    default_export_name,
    dominant_family,
    find_path_annotation,
    has_default_component_export,
    has_framework_directives,
    host_mount_id,
    is_component_path,
    looks_like_stylesheet,
    mount_element_id,
    path_in_heading,
    path_in_info_string,
    uses_utility_classes,
)


def test_path_in_heading_accepts_markdown_headers_and_bold_lines() -> None:
    assert path_in_heading("### src/App.jsx") == "src/App.jsx"
    assert path_in_heading("**src/components/Button.jsx**") == "src/components/Button.jsx"
    assert path_in_heading("## File: `src/index.css`") == "src/index.css"
    assert path_in_heading("### src/App.jsx (main component)") == "src/App.jsx"


def test_path_in_heading_keeps_directories_named_path() -> None:
    assert path_in_heading("### path/to/widget.js") == "path/to/widget.js"


def test_path_in_heading_rejects_prose() -> None:
    assert path_in_heading("### Here is the App.jsx and more") is None
    assert path_in_heading("### src/App.jsx and friends") is None
    assert path_in_heading("src/App.jsx") is None


def test_path_in_info_string() -> None:
    assert path_in_info_string('jsx title="src/components/Nav.jsx"') == "src/components/Nav.jsx"
    assert path_in_info_string("jsx:src/App.jsx") == "src/App.jsx"
    assert path_in_info_string("jsx") is None


def test_find_path_annotation_comment_styles() -> None:
    assert find_path_annotation("// filepath: src/App.jsx\nimport React from 'react'") == "src/App.jsx"
    assert find_path_annotation("/* File: src/index.css */\nbody {}") == "src/index.css"
    assert find_path_annotation("<!-- file: index.html -->\n<html></html>") == "index.html"
    assert find_path_annotation("{/* path: src/Hero.jsx */}") == "src/Hero.jsx"
    assert find_path_annotation("// just a comment") is None


def test_default_export_name_variants() -> None:
    assert default_export_name("export default function Hero() {}") == "Hero"
    assert default_export_name("const App = () => <div/>;\nexport default App;") == "App"
    assert default_export_name("class Board extends React.Component {}\nexport default Board") == "Board"
    assert default_export_name("export default memo(Card)") == "Card"
    assert default_export_name("export const x = 1") is None


def test_has_default_component_export_includes_anonymous() -> None:
    assert has_default_component_export("export default () => <div/>")
    assert has_default_component_export("export default function () { return null }")
    assert not has_default_component_export("export const Button = () => null")


def test_utility_classes_need_two_tokens() -> None:
    assert uses_utility_classes('<div className="flex p-4 bg-white">')
    assert uses_utility_classes("<div className={`md:flex hover:bg-blue-500`}>")
    assert not uses_utility_classes('<div className="card">')
    assert not uses_utility_classes('<div className="flex">')


def test_framework_directives() -> None:
    assert has_framework_directives("@tailwind base;\n@tailwind utilities;")
    assert has_framework_directives(".btn { @apply px-4 py-2; }")
    assert not has_framework_directives("body { margin: 0; }")


def test_looks_like_stylesheet() -> None:
    assert looks_like_stylesheet(".btn { color: red; }")
    assert looks_like_stylesheet("@media (max-width: 600px) { .a { display: none; } }")
    assert not looks_like_stylesheet("const a = { color: 'red' };")
    assert not looks_like_stylesheet("<!DOCTYPE html><html></html>")


def test_mount_ids() -> None:
    assert mount_element_id("createRoot(document.getElementById('app'))") == "app"
    assert host_mount_id('<body>\n  <div id="app"></div>\n</body>') == "app"
    assert host_mount_id('<div id="x">content</div>') is None


def test_dominant_family_ignores_synthesized_files() -> None:
    files = [
        ProjectFile.create("src/components/A.tsx", ""),
        ProjectFile.create("src/components/B.tsx", ""),
        ProjectFile.create("src/components/C.jsx", ""),
    ]
    assert dominant_family(files) == "tsx"

    files = [
        ProjectFile.create("src/components/C.jsx", ""),
        ProjectFile.create("src/App.tsx", "", "synthesized"),
        ProjectFile.create("src/main.tsx", "", "synthesized"),
    ]
    assert dominant_family(files) == "jsx"


def test_component_path_excludes_entries_and_configs() -> None:
    assert is_component_path("src/components/Hero.jsx")
    assert not is_component_path("src/main.jsx")
    assert not is_component_path("tailwind.config.js")
    assert not is_component_path("src/index.css")


def test_normalize_path() -> None:
    assert normalize_path("./src\\App.jsx") == "src/App.jsx"
    assert normalize_path("`src/App.jsx`") == "src/App.jsx"
    assert normalize_path("/src//components/../App.jsx") == "src/App.jsx"
