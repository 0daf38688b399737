"""
multiservice_lint v0.3 - File watch daemon.

Re-lints the compilations touched by recent edits. A change to a source
file re-lints its owning project; a change to an .editorconfig or a project
file re-lints everything, since classification may have changed.

Usage:
    python -m multiservice_lint --watch
    python -m multiservice_lint --watch --interval 1.0
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Iterable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .config import LintConfig, should_exclude_path
from .editorconfig import EDITORCONFIG_NAME
from .policy import DependencyPolicy
from .runner import lint_compilations
from .scanner import Compilation, discover_compilations

logger = logging.getLogger(__name__)


class _ChangeQueue:
    """Thread-safe set of changed paths with their last change time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[Path, float] = {}

    def push(self, path: Path, ts: float) -> None:
        with self._lock:
            prev = self._items.get(path)
            if prev is None or ts > prev:
                self._items[path] = ts

    def drain_settled(self, settled_before: float) -> list[Path]:
        """Pop paths whose last change is older than settled_before (debounce)."""
        with self._lock:
            ready = [p for p, ts in self._items.items() if ts <= settled_before]
            for p in ready:
                del self._items[p]
            return ready

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def is_config_change(path: Path, cfg: LintConfig) -> bool:
    return path.name == EDITORCONFIG_NAME or path.suffix.lower() in cfg.project_exts


class _ChangeHandler(FileSystemEventHandler):
    """Queues changed source, project and .editorconfig files."""

    def __init__(self, cfg: LintConfig, queue: _ChangeQueue) -> None:
        super().__init__()
        self.cfg = cfg
        self.queue = queue

    def _relevant(self, path: Path) -> bool:
        try:
            rel = path.relative_to(self.cfg.root)
        except ValueError:
            return False
        if should_exclude_path(self.cfg, rel):
            return False
        return path.suffix.lower() in self.cfg.source_exts or is_config_change(path, self.cfg)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        now = time.time()
        for raw in paths:
            path = Path(raw if isinstance(raw, str) else raw.decode())
            if self._relevant(path):
                self.queue.push(path, now)


def affected_compilations(
    cfg: LintConfig,
    compilations: list[Compilation],
    changed: Iterable[Path],
) -> list[Compilation]:
    """Compilations that must be re-linted for the changed paths."""
    changed = list(changed)
    if any(is_config_change(p, cfg) for p in changed):
        return compilations

    affected: dict[Path, Compilation] = {}
    for path in changed:
        owners = [c for c in compilations if c.root in path.parents]
        if not owners:
            continue
        # The deepest project directory owns the file
        owner = max(owners, key=lambda c: len(c.root.parts))
        affected[owner.root] = owner
    return list(affected.values())


def run_daemon(
    cfg: LintConfig,
    policy: DependencyPolicy,
    interval: float = 0.75,
    debounce_seconds: float = 1.0,
) -> int:
    """Run the watch loop until interrupted."""
    queue = _ChangeQueue()
    observer = Observer()
    observer.schedule(_ChangeHandler(cfg, queue), str(cfg.root), recursive=True)
    observer.start()

    print(f"[multiservice_lint] watching {cfg.root}")
    print(f"[multiservice_lint] interval={interval}s debounce={debounce_seconds}s")

    try:
        print(lint_compilations(cfg, policy, discover_compilations(cfg)).render_human())
        while True:
            time.sleep(interval)
            changed = queue.drain_settled(time.time() - debounce_seconds)
            if not changed:
                continue
            targets = affected_compilations(cfg, discover_compilations(cfg), changed)
            if not targets:
                continue
            logger.debug(f"{len(changed)} change(s) -> re-linting {[c.name for c in targets]}")
            print(f"\n[multiservice_lint] re-lint {', '.join(c.name for c in targets)} (queue={len(queue)})")
            print(lint_compilations(cfg, policy, targets).render_human())
    except KeyboardInterrupt:
        print("\n[multiservice_lint] stopping...")
    finally:
        observer.stop()
        observer.join()

    return 0
