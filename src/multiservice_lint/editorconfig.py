"""
.editorconfig resolution.

Computes the key/value settings that apply to one source file, the way
.NET analyzers receive them: every .editorconfig from the file's directory
up to (and including) the first one marked root = true, farther files
applied first, sections applied in file order.

Section globs follow the EditorConfig rules:
    *         any characters except /
    **        any characters
    ?         one character except /
    [abc]     [!abc]   character classes
    {a,b}     alternatives
    {1..5}    integer ranges
A glob without a / matches the file name in any subdirectory.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

EDITORCONFIG_NAME = ".editorconfig"

_NUM_RANGE = re.compile(r"([+-]?\d+)\.\.([+-]?\d+)")
_MAX_EXPANDED_RANGE = 1000


@dataclass(frozen=True)
class EditorConfigSection:
    """A [glob] section with its properties in file order."""
    glob: str
    properties: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class EditorConfigFile:
    """A parsed .editorconfig file."""
    path: Path
    is_root: bool
    sections: tuple[EditorConfigSection, ...]

    @property
    def directory(self) -> Path:
        return self.path.parent


def parse_editorconfig(text: str, path: Path) -> EditorConfigFile:
    """Parse .editorconfig text. Keys are lowercased, values keep their case."""
    is_root = False
    sections: list[EditorConfigSection] = []
    current_glob: Optional[str] = None
    current_props: list[tuple[str, str]] = []

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#;":
            continue
        if line.startswith("[") and line.endswith("]"):
            if current_glob is not None:
                sections.append(EditorConfigSection(current_glob, tuple(current_props)))
            current_glob = line[1:-1]
            current_props = []
            continue
        if "=" not in line:
            logger.debug(f"Ignoring malformed line in {path}: {line!r}")
            continue
        key, value = line.split("=", 1)
        key = key.strip().lower()
        value = value.strip()
        if current_glob is None:
            # Preamble: only root is meaningful
            if key == "root":
                is_root = value.lower() == "true"
            continue
        current_props.append((key, value))

    if current_glob is not None:
        sections.append(EditorConfigSection(current_glob, tuple(current_props)))

    return EditorConfigFile(path=path, is_root=is_root, sections=tuple(sections))


def _matching_brace(glob: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(glob):
        c = glob[i]
        if c == "\\":
            i += 2
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _split_alternatives(body: str) -> list[str]:
    """Split a brace body on top-level commas."""
    parts: list[str] = []
    depth = 0
    start = 0
    i = 0
    while i < len(body):
        c = body[i]
        if c == "\\":
            i += 2
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
        elif c == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
        i += 1
    parts.append(body[start:])
    return parts


def _range_regex(low: int, high: int) -> str:
    if low > high:
        low, high = high, low
    if high - low > _MAX_EXPANDED_RANGE:
        return r"[+-]?\d+"
    return "(?:" + "|".join(str(n) for n in range(low, high + 1)) + ")"


def _translate(glob: str) -> str:
    out: list[str] = []
    i = 0
    n = len(glob)
    while i < n:
        c = glob[i]
        if c == "\\" and i + 1 < n:
            out.append(re.escape(glob[i + 1]))
            i += 2
        elif c == "*":
            if glob.startswith("**", i):
                out.append(".*")
                i += 2
            else:
                out.append("[^/]*")
                i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            end = glob.find("]", i + 1)
            if end == -1:
                out.append(r"\[")
                i += 1
                continue
            body = glob[i + 1:end].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append(f"[{body}]")
            i = end + 1
        elif c == "{":
            end = _matching_brace(glob, i)
            if end == -1:
                out.append(r"\{")
                i += 1
                continue
            body = glob[i + 1:end]
            m = _NUM_RANGE.fullmatch(body)
            alternatives = _split_alternatives(body)
            if m:
                out.append(_range_regex(int(m.group(1)), int(m.group(2))))
            elif len(alternatives) == 1:
                # {single} is literal
                out.append(r"\{" + _translate(body) + r"\}")
            else:
                out.append("(?:" + "|".join(_translate(a) for a in alternatives) + ")")
            i = end + 1
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def compile_section_glob(glob: str) -> re.Pattern[str]:
    """Compile a section glob into a regex matched against a POSIX relative path."""
    if "/" in glob:
        pattern = _translate(glob.lstrip("/"))
    else:
        pattern = "(?:.*/)?" + _translate(glob)
    return re.compile(pattern + r"\Z")


def section_matches(section: EditorConfigSection, config_dir: Path, file_path: Path) -> bool:
    """Check if a section applies to file_path."""
    try:
        rel = file_path.relative_to(config_dir).as_posix()
    except ValueError:
        return False
    return compile_section_glob(section.glob).match(rel) is not None


@lru_cache(maxsize=512)
def _read_editorconfig(path: Path, mtime_ns: int) -> EditorConfigFile:
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    return parse_editorconfig(text, path)


def find_editorconfig_files(file_path: Path) -> list[EditorConfigFile]:
    """Return the .editorconfig files that apply to file_path, nearest first."""
    found: list[EditorConfigFile] = []
    start = file_path.parent.resolve()
    for directory in (start, *start.parents):
        candidate = directory / EDITORCONFIG_NAME
        try:
            stat = candidate.stat()
        except OSError:
            continue
        try:
            parsed = _read_editorconfig(candidate, stat.st_mtime_ns)
        except OSError as e:
            logger.warning(f"Could not read {candidate}: {e}")
            continue
        found.append(parsed)
        if parsed.is_root:
            break
    return found


def load_options(file_path: Path) -> dict[str, str]:
    """Resolve the .editorconfig settings that apply to file_path."""
    file_path = file_path.resolve()
    options: dict[str, str] = {}
    for config in reversed(find_editorconfig_files(file_path)):
        for section in config.sections:
            if section_matches(section, config.directory, file_path):
                options.update(section.properties)
    logger.debug(f"Resolved {len(options)} .editorconfig options for {file_path}")
    return options
