#!/usr/bin/env python3
import os
import sys
import json
import time
import logging
from pathlib import Path
from typing import Callable, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from webforge.models import PreviewArtifact, ProjectSnapshot
from webforge.parser import ResponseParser
from webforge.completer import ProjectCompleter
from webforge.materializer import PreviewMaterializer
from webforge.probe import RenderProbe

BASE_DIR         = Path(__file__).parent
RESPONSES_DIR    = Path(os.environ.get("WEBFORGE_RESPONSES_DIR", BASE_DIR / "responses"))
PROD_DIR         = Path(os.environ.get("WEBFORGE_PROD_DIR", BASE_DIR / "production-ready"))
LOGS_DIR         = Path(os.environ.get("WEBFORGE_LOGS_DIR", BASE_DIR / "logs"))
PROBE_ENABLED    = os.environ.get("WEBFORGE_PROBE", "1").lower() not in ("0", "false", "no", "off")
PROBE_TIMEOUT_MS = int(os.environ.get("WEBFORGE_PROBE_TIMEOUT_MS", "8000"))
REPLY_SUFFIXES   = (".txt", ".md")

log = logging.getLogger("pipeline")

parser       = ResponseParser()
completer    = ProjectCompleter()
materializer = PreviewMaterializer()


def setup_logging():
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(LOGS_DIR / "pipeline.log"),
            logging.StreamHandler(sys.stdout)
        ]
    )


class ResponseFileHandler(FileSystemEventHandler):
    def __init__(self, runner: Optional[Callable] = None, settle: float = 0.5):
        self.processing = set()
        self.runner = runner or run_pipeline
        self.settle = settle

    def on_created(self, event):  self._handle(event)
    def on_modified(self, event): self._handle(event)

    def _handle(self, event):
        if event.is_directory:
            return
        p = Path(event.src_path)
        if p.suffix.lower() in REPLY_SUFFIXES and p not in self.processing:
            time.sleep(self.settle)
            self.processing.add(p)
            try: self.runner(p)
            finally: self.processing.discard(p)


def project_name_for(reply_file: Path) -> str:
    return reply_file.stem.strip().replace(" ", "_").lower() or "project"


def run_pipeline(reply_file: Path, out_dir: Optional[Path] = None,
                 probe: Optional[RenderProbe] = None) -> Optional[PreviewArtifact]:
    log.info("=" * 60)
    log.info(f"🚀 PIPELINE STARTED: {reply_file.name}")
    log.info("=" * 60)
    try:
        raw = reply_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error(f"Cannot read {reply_file}: {e}")
        return None
    if not raw.strip():
        log.warning("Reply file is empty. Skipping.")
        return None

    # ── 1. Parse ──────────────────────────────────────────────────────────────
    result = parser.parse(raw)
    if result.degraded:
        log.warning("⚠️  No code blocks found, the reply text became the App component")

    # ── 2. Complete ───────────────────────────────────────────────────────────
    snapshot = ProjectSnapshot.build(completer.complete(result.files), result.summary)
    project_name = project_name_for(reply_file)
    project_dir  = (out_dir or PROD_DIR) / project_name
    write_snapshot(snapshot, project_dir)
    log.info(f"✅ {len(snapshot)} file(s) at: {project_dir}")

    # ── 3. Materialize (+ probe) ──────────────────────────────────────────────
    artifact = materializer.materialize(snapshot)
    if probe is None and PROBE_ENABLED:
        probe = RenderProbe(timeout_ms=PROBE_TIMEOUT_MS)
    if artifact.mode == "live" and probe is not None:
        report = probe.check(artifact.document, materializer.mount_id(list(snapshot)))
        if report.failed:
            log.warning("⚠️  Live preview broke at runtime, re-materializing as approximated")
            fallback = materializer.materialize(snapshot, "approximated")
            fallback.diagnostics[:0] = [f"live preview failed to render: {e}" for e in report.errors]
            artifact = fallback

    write_preview(artifact, project_dir)
    write_readme(project_name, project_dir, snapshot, artifact)
    for d in artifact.diagnostics:
        log.info(f"   • {d}")

    log.info("=" * 60)
    log.info(f"🎉 DONE!  preview mode: {artifact.mode}")
    log.info(f"   📁 Code: {project_dir}")
    log.info("=" * 60)
    return artifact


def write_snapshot(snapshot: ProjectSnapshot, project_dir: Path):
    project_dir.mkdir(parents=True, exist_ok=True)
    root = project_dir.resolve()
    for f in snapshot:
        target = (project_dir / f.path).resolve()
        if root not in target.parents:
            log.warning(f"   skipped {f.path}: resolves outside the project directory")
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f.content, encoding="utf-8")
    (project_dir / "snapshot.json").write_text(
        json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8"
    )


def write_preview(artifact: PreviewArtifact, project_dir: Path):
    preview = project_dir / "preview.html"
    if artifact.document is None:
        # A stale preview from an earlier reply must not outlive this one
        preview.unlink(missing_ok=True)
        return
    preview.write_text(artifact.document, encoding="utf-8")
    log.info(f"🖥️  Preview ({artifact.mode}) → {preview}")


def write_readme(project_name: str, project_dir: Path, snapshot: ProjectSnapshot, artifact: PreviewArtifact):
    files = "\n".join(
        f"- `{f.path}`" + (" (synthesized)" if f.synthesized else "") for f in snapshot
    )
    notes = "\n".join(f"- {d}" for d in artifact.diagnostics) or "- none"
    if snapshot.get("package.json") is not None:
        run = "```bash\nnpm install\nnpm run dev\n```\n"
    else:
        run = ("No `package.json` was generated. Add one that depends on `react`, "
               "`react-dom` and `vite` before running `npm install` and `npm run dev`.\n")
    (project_dir / "README.md").write_text(
        f"# {project_name.replace('_',' ').title()}\n\n"
        f"## Summary\n{snapshot.summary or '(no summary)'}\n\n"
        f"## Files\n{files}\n\n"
        f"## Preview\nMode: `{artifact.mode}`\n\n{notes}\n\n"
        f"## Run\n{run}",
        encoding="utf-8",
    )


def watch():
    handler = ResponseFileHandler()
    observer = Observer()
    observer.schedule(handler, str(RESPONSES_DIR), recursive=False)
    observer.start()
    log.info("Drop a .txt or .md reply into responses/ to start!")
    try:
        while True: time.sleep(1)
    except KeyboardInterrupt:
        log.info("\n⛔ Stopping...")
        observer.stop()
    observer.join()


if __name__ == "__main__":
    for d in [RESPONSES_DIR, PROD_DIR, LOGS_DIR]:
        d.mkdir(parents=True, exist_ok=True)
    setup_logging()

    log.info("🤖 WebForge: reply → project → preview")
    log.info(f"   👁️  Watching : {RESPONSES_DIR}")
    log.info(f"   📦 Output   : {PROD_DIR}")
    log.info(f"   🎭 Probe    : {'on' if PROBE_ENABLED else 'off'} ({PROBE_TIMEOUT_MS} ms)")

    if len(sys.argv) > 1:
        for arg in sys.argv[1:]:
            run_pipeline(Path(arg))
    else:
        watch()
