from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pipeline
from webforge.models import PreviewArtifact, ProjectFile, ProjectSnapshot
from webforge.probe import ProbeReport

FENCE = "```"
REPLY = (
    "Here is your app.\n### src/App.jsx\n"
    f"{FENCE}jsx\nexport default function App(){{return <div>Hi</div>}}\n{FENCE}\n"
)


class StubProbe:
    def __init__(self, report):
        self.report = report
        self.calls = []

    def check(self, document, mount_id="root"):
        self.calls.append((document, mount_id))
        return self.report


def _reply(tmp_path: Path, text: str = REPLY, name: str = "Landing Page.txt") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_run_pipeline_writes_project_and_live_preview(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(pipeline, "PROBE_ENABLED", False)
    out = tmp_path / "out"
    artifact = pipeline.run_pipeline(_reply(tmp_path), out_dir=out)

    project = out / "landing_page"
    assert artifact.mode == "live"
    assert (project / "src" / "App.jsx").read_text(encoding="utf-8").startswith("export default function App()")
    assert (project / "src" / "main.jsx").exists()
    assert (project / "index.html").exists()

    snapshot = json.loads((project / "snapshot.json").read_text(encoding="utf-8"))
    assert snapshot["summary"] == "Here is your app."
    assert [f["path"] for f in snapshot["files"]] == ["src/App.jsx", "src/main.jsx", "index.html", "src/index.css"]

    assert "src/App.jsx" in (project / "preview.html").read_text(encoding="utf-8")
    readme = (project / "README.md").read_text(encoding="utf-8")
    assert readme.startswith("# Landing Page")
    assert "`src/main.jsx` (synthesized)" in readme
    assert "Mode: `live`" in readme


def test_probe_failure_switches_to_approximated(tmp_path) -> None:
    probe = StubProbe(ProbeReport(False, ["App never rendered into #root"]))
    artifact = pipeline.run_pipeline(_reply(tmp_path), out_dir=tmp_path / "out", probe=probe)

    assert len(probe.calls) == 1
    assert probe.calls[0][1] == "root"
    assert artifact.mode == "approximated"
    assert artifact.diagnostics[0] == "live preview failed to render: App never rendered into #root"
    preview = (tmp_path / "out" / "landing_page" / "preview.html").read_text(encoding="utf-8")
    assert "<div>Hi</div>" in preview
    assert "text/babel" not in preview


def test_probe_without_verdict_keeps_live(tmp_path) -> None:
    probe = StubProbe(ProbeReport(None))
    artifact = pipeline.run_pipeline(_reply(tmp_path), out_dir=tmp_path / "out", probe=probe)
    assert artifact.mode == "live"


def test_empty_reply_is_skipped(tmp_path) -> None:
    assert pipeline.run_pipeline(_reply(tmp_path, "   \n"), out_dir=tmp_path / "out") is None
    assert not (tmp_path / "out").exists()


def test_unreadable_reply_is_skipped(tmp_path) -> None:
    assert pipeline.run_pipeline(tmp_path / "missing.txt", out_dir=tmp_path / "out") is None


def test_write_preview_removes_stale_document(tmp_path) -> None:
    (tmp_path / "preview.html").write_text("old", encoding="utf-8")
    pipeline.write_preview(PreviewArtifact("none", None, ["no preview available"]), tmp_path)
    assert not (tmp_path / "preview.html").exists()


def test_write_snapshot_stays_inside_project_dir(tmp_path) -> None:
    snapshot = ProjectSnapshot.build([
        ProjectFile.create("src/App.jsx", "x"),
        ProjectFile.create("../escape.js", "y"),
    ])
    pipeline.write_snapshot(snapshot, tmp_path / "proj")
    assert (tmp_path / "proj" / "src" / "App.jsx").read_text(encoding="utf-8") == "x"
    assert not (tmp_path / "escape.js").exists()


def test_project_name_for() -> None:
    assert pipeline.project_name_for(Path("responses/My Shop.txt")) == "my_shop"


def test_response_file_handler_filters_events(tmp_path) -> None:
    seen = []
    handler = pipeline.ResponseFileHandler(runner=seen.append, settle=0)

    handler.on_created(SimpleNamespace(src_path=str(tmp_path / "a.txt"), is_directory=False))
    handler.on_modified(SimpleNamespace(src_path=str(tmp_path / "b.md"), is_directory=False))
    handler.on_created(SimpleNamespace(src_path=str(tmp_path / "c.png"), is_directory=False))
    handler.on_created(SimpleNamespace(src_path=str(tmp_path / "dir.txt"), is_directory=True))

    assert seen == [tmp_path / "a.txt", tmp_path / "b.md"]
    assert handler.processing == set()


def test_readme_asks_for_a_package_manifest_when_none_was_generated(tmp_path) -> None:
    snapshot = ProjectSnapshot.build([ProjectFile.create("src/App.jsx", "x")], "Shop")
    pipeline.write_readme("my_shop", tmp_path, snapshot, PreviewArtifact("live", "<html></html>"))
    readme = (tmp_path / "README.md").read_text(encoding="utf-8")
    assert "No `package.json` was generated" in readme
    assert "```bash" not in readme


def test_readme_run_steps_when_package_manifest_exists(tmp_path) -> None:
    snapshot = ProjectSnapshot.build([
        ProjectFile.create("src/App.jsx", "x"),
        ProjectFile.create("package.json", '{"name": "shop"}'),
    ], "Shop")
    pipeline.write_readme("my_shop", tmp_path, snapshot, PreviewArtifact("live", "<html></html>"))
    readme = (tmp_path / "README.md").read_text(encoding="utf-8")
    assert "```bash\nnpm install\nnpm run dev\n```" in readme
    assert "No `package.json`" not in readme
