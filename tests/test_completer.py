from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from webforge import templates
from webforge.completer import complete
from webforge.models import ProjectFile
from webforge.parser import parse

FENCE = "```"


def _paths(files) -> list:
    return [f.path for f in files]


def test_app_only_reply_completes_to_four_files() -> None:
    raw = (
        "Here is your app.\n### src/App.jsx\n"
        f"{FENCE}jsx\nexport default function App(){{return <div>Hi</div>}}\n{FENCE}"
    )
    files = complete(parse(raw).files)
    assert _paths(files) == ["src/App.jsx", "src/main.jsx", "index.html", "src/index.css"]
    assert [f.origin for f in files] == ["generated", "synthesized", "synthesized", "synthesized"]
    entry, host, sheet = files[1], files[2], files[3]
    assert "import App from './App'" in entry.content
    assert "import './index.css'" in entry.content
    assert "getElementById('root')" in entry.content
    assert '<div id="root"></div>' in host.content
    assert 'src="/src/main.jsx"' in host.content
    assert "@tailwind" not in sheet.content


def test_empty_input_gets_placeholder_project() -> None:
    files = complete([])
    assert _paths(files) == [
        "src/main.jsx",
        "src/App.jsx",
        "index.html",
        "src/index.css",
        "tailwind.config.js",
        "postcss.config.js",
    ]
    app = files[1]
    assert app.content == templates.PLACEHOLDER_APP
    assert "Your application is ready!" in app.content
    assert all(f.synthesized for f in files)


def test_complete_is_idempotent() -> None:
    inputs = [
        [],
        [ProjectFile.create("src/App.jsx", "export default function App() { return <p/> }")],
        [ProjectFile.create("src/components/Card.tsx", "export default function Card() { return <div/> }")],
        [ProjectFile.create("src/components/Hero.jsx", '<div className="flex p-4 bg-white" />')],
        [ProjectFile.create("src/index.css", "@tailwind base;")],
    ]
    for files in inputs:
        once = complete(files)
        assert complete(once) == once


def test_complete_project_is_left_alone() -> None:
    files = [
        ProjectFile.create("index.html", templates.index_html("src/main.jsx")),
        ProjectFile.create("src/main.jsx", templates.entry_point()),
        ProjectFile.create("src/App.jsx", "export default function App() { return <p>ok</p> }"),
        ProjectFile.create("src/index.css", "body { margin: 0; }"),
    ]
    assert complete(files) == files


def test_existing_files_are_never_removed_or_reordered() -> None:
    files = [
        ProjectFile.create("src/components/B.jsx", "export default function B() { return <b/> }"),
        ProjectFile.create("src/components/A.jsx", "export default function A() { return <a/> }"),
        ProjectFile.create("src/data.json", "{}"),
    ]
    out = complete(files)
    assert out[:len(files)] == files
    assert len(set(_paths(out))) == len(out)


def test_duplicate_input_paths_collapse_to_first() -> None:
    files = [
        ProjectFile.create("src/App.jsx", "export default function App() { return <p>1</p> }"),
        ProjectFile.create("src/App.jsx", "export default function App() { return <p>2</p> }"),
    ]
    out = complete(files)
    apps = [f for f in out if f.path == "src/App.jsx"]
    assert len(apps) == 1
    assert "<p>1</p>" in apps[0].content


def test_app_wraps_first_default_exported_component() -> None:
    files = [
        ProjectFile.create("src/utils/format.js", "export const format = (x) => x"),
        ProjectFile.create("src/components/Hero.jsx", "export default function Hero() { return <h1/> }"),
        ProjectFile.create("src/components/Footer.jsx", "export default function Footer() { return <footer/> }"),
    ]
    out = complete(files)
    app = next(f for f in out if f.path == "src/App.jsx")
    assert app.synthesized
    assert "import Hero from './components/Hero'" in app.content
    assert "<Hero />" in app.content
    assert "Footer" not in app.content


def test_wrapped_component_named_app_is_aliased() -> None:
    files = [ProjectFile.create("src/components/Main.jsx", "export default function App() { return <main/> }")]
    app = next(f for f in complete(files) if f.path == "src/App.jsx")
    assert "import AppComponent from './components/Main'" in app.content
    assert "<AppComponent />" in app.content


def test_typescript_family_gets_typescript_entry_and_app() -> None:
    files = [ProjectFile.create("src/components/Card.tsx", "export default function Card() { return <div/> }")]
    out = complete(files)
    assert "src/main.tsx" in _paths(out)
    assert "src/App.tsx" in _paths(out)
    host = next(f for f in out if f.path == "index.html")
    assert 'src="/src/main.tsx"' in host.content


def test_existing_entry_is_reused_by_the_host() -> None:
    files = [
        ProjectFile.create("src/index.jsx", "ReactDOM.createRoot(document.getElementById('root')).render(<App />)"),
        ProjectFile.create("src/App.jsx", "export default function App() { return <p/> }"),
    ]
    out = complete(files)
    assert "src/main.jsx" not in _paths(out)
    host = next(f for f in out if f.path == "index.html")
    assert 'src="/src/index.jsx"' in host.content


def test_entry_mounts_into_the_host_element() -> None:
    files = [
        ProjectFile.create("index.html", '<html><body><div id="app"></div></body></html>'),
        ProjectFile.create("src/App.jsx", "export default function App() { return <p/> }"),
    ]
    entry = next(f for f in complete(files) if f.path == "src/main.jsx")
    assert "getElementById('app')" in entry.content


def test_entry_imports_the_existing_stylesheet() -> None:
    files = [
        ProjectFile.create("src/App.jsx", "export default function App() { return <p/> }"),
        ProjectFile.create("src/styles.css", "body { margin: 0; }"),
    ]
    out = complete(files)
    entry = next(f for f in out if f.path == "src/main.jsx")
    assert "import './styles.css'" in entry.content
    assert "src/index.css" not in _paths(out)


def test_utility_classes_pull_in_tailwind() -> None:
    files = [ProjectFile.create("src/App.jsx", 'export default function App() { return <div className="flex p-4 bg-white" /> }')]
    out = complete(files)
    sheet = next(f for f in out if f.path == "src/index.css")
    assert sheet.content.startswith("@tailwind base;")
    assert "tailwind.config.js" in _paths(out)
    assert "postcss.config.js" in _paths(out)


def test_existing_build_config_is_kept() -> None:
    files = [
        ProjectFile.create("src/App.jsx", "export default function App() { return <p/> }"),
        ProjectFile.create("src/index.css", "@tailwind base;\n@tailwind utilities;"),
        ProjectFile.create("tailwind.config.cjs", "module.exports = {}"),
    ]
    out = complete(files)
    assert "tailwind.config.js" not in _paths(out)
    assert "postcss.config.js" in _paths(out)


def test_plain_css_gets_no_build_config() -> None:
    files = [ProjectFile.create("src/App.jsx", 'export default function App() { return <div className="card" /> }')]
    out = complete(files)
    assert "tailwind.config.js" not in _paths(out)
    assert "@tailwind" not in next(f for f in out if f.path == "src/index.css").content
