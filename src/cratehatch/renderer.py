"""
cratehatch.renderer - Template Tree Rendering
=============================================

Walks a template tree depth-first and writes the generated project.

For every entry, in name order:

    1. Ask the ``IgnoreEvaluator`` what to do with it; a skipped directory
       is not descended into
    2. Render the entry name, so ``src/{{ project_name }}.rs`` becomes
       ``src/demo.rs``
    3. Directories are walked and only created once a file is written into
       them; files are either rendered (text) or copied byte for byte
       (binary, or ``ignore_from = "template"``)

Symbolic links and special files (sockets, FIFOs, devices) are skipped with
a warning; links are never followed.

Nothing is rolled back on failure: files written before the error stay in
the destination.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from cratehatch.context import RenderContext
from cratehatch.engine import TemplateEngine
from cratehatch.errors import FilesystemError, TemplateError
from cratehatch.ignore import FileAction, IgnoreEvaluator


logger = logging.getLogger(__name__)

# Number of leading bytes inspected for NUL bytes.
SNIFF_SIZE = 8192

BINARY_MEDIA_TYPES = frozenset({"image", "audio", "font"})
BINARY_APPLICATION_TYPES = frozenset({
    "octet-stream", "pdf", "zip", "gzip", "x-tar", "wasm", "java-archive",
})


# =============================================================================
# Binary Detection
# =============================================================================

def decode_text(name: str, data: bytes) -> str | None:
    """
    Return the content as text, or ``None`` if it should be treated as binary.

    A file is binary when its extension names a known binary media type
    (images except SVG, audio, fonts, archives, PDF), when its first 8 KiB
    contain a NUL byte, or when it is not valid UTF-8.

    Examples
    --------
    >>> decode_text("README.md", b"# {{ project_name }}")
    '# {{ project_name }}'
    >>> decode_text("logo.png", b"\\x89PNG") is None
    True
    """
    mime, _ = mimetypes.guess_type(name)
    if mime:
        major, _, minor = mime.partition("/")
        if major in BINARY_MEDIA_TYPES and not minor.endswith("+xml"):
            return None
        if major == "application" and minor in BINARY_APPLICATION_TYPES:
            return None

    if b"\x00" in data[:SNIFF_SIZE]:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


# =============================================================================
# Renderer
# =============================================================================

@dataclass
class RenderReport:
    """
    What a render pass did.

    Attributes
    ----------
    rendered : list[Path]
        Destination files produced by the template engine.

    copied : list[Path]
        Destination files copied byte for byte.

    directories : list[Path]
        Destination directories files were written into (created if missing).

    skipped : list[str]
        Template paths left out by ignore rules, links or special files.

    partials : list[str]
        Template files only used through includes.
    """

    rendered: list[Path] = field(default_factory=list)
    copied: list[Path] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    partials: list[str] = field(default_factory=list)

    @property
    def files_written(self) -> list[Path]:
        return [*self.rendered, *self.copied]


class TreeRenderer:
    """
    Renders a template tree into a destination directory.

    Parameters
    ----------
    source_root : Path
        Root of the template tree.

    destination : Path
        Output directory; created if it does not exist. Existing files with
        the same relative path are overwritten.

    context : RenderContext
        Variables for paths and contents.

    evaluator : IgnoreEvaluator
        Decides which paths are rendered, copied or skipped.

    engine : TemplateEngine
        Engine for paths and contents.
    """

    def __init__(
        self,
        source_root: Path,
        destination: Path,
        context: RenderContext,
        evaluator: IgnoreEvaluator,
        engine: TemplateEngine,
    ) -> None:
        self.source_root = source_root
        self.destination = destination
        self.context = context
        self.evaluator = evaluator
        self.engine = engine
        self.report = RenderReport()

    def render(self) -> RenderReport:
        """
        Render the whole tree.

        Returns
        -------
        RenderReport
            Summary of written, copied and skipped paths.

        Raises
        ------
        TemplateError
            If a path, content or ignore condition fails to render.
        FilesystemError
            If reading the template or writing the output fails.
        """
        self._ensure_dir(self.destination)
        self._walk(self.source_root, PurePosixPath(), self.destination, FileAction.RENDER)
        return self.report

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def _entries(self, directory: Path) -> list[os.DirEntry[str]]:
        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise FilesystemError(directory, "read", e) from e

    def _walk(
        self,
        directory: Path,
        relative: PurePosixPath,
        out_dir: Path,
        inherited: FileAction,
    ) -> None:
        for entry in self._entries(directory):
            rel_path = relative / entry.name
            try:
                is_link = entry.is_symlink()
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as e:
                raise FilesystemError(Path(entry.path), "read", e) from e

            if is_link or not (is_dir or is_file):
                kind = "symbolic link" if is_link else "special file"
                logger.warning("Skipping %s %s", kind, rel_path)
                self.report.skipped.append(rel_path.as_posix())
                continue

            action = self.evaluator.decide(rel_path.as_posix(), is_dir=is_dir)
            if action is FileAction.SKIP:
                self.report.skipped.append(rel_path.as_posix())
                continue
            if action is FileAction.RENDER:
                action = inherited

            target = out_dir / self._render_name(entry.name, rel_path)
            if is_dir:
                # Created lazily by _write
                self._walk(Path(entry.path), rel_path, target, action)
            else:
                self._render_file(Path(entry.path), rel_path, target, action)

    def _render_name(self, name: str, rel_path: PurePosixPath) -> str:
        rendered = self.engine.render(name, self.context, name=f"path {rel_path}")
        parts = PurePosixPath(rendered).parts
        if not parts or rendered.startswith("/") or ".." in parts:
            msg = f"file name renders to the invalid path `{rendered}`"
            raise TemplateError(f"path {rel_path}", msg)
        return rendered

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def _render_file(
        self,
        source: Path,
        rel_path: PurePosixPath,
        target: Path,
        action: FileAction,
    ) -> None:
        if action is FileAction.PARTIAL:
            logger.debug("Keeping %s as partial", rel_path)
            self.report.partials.append(rel_path.as_posix())
            return

        try:
            data = source.read_bytes()
        except OSError as e:
            raise FilesystemError(source, "read", e) from e

        text = decode_text(source.name, data) if action is FileAction.RENDER else None
        if text is None:
            logger.debug("Copying %s", rel_path)
            self._write(target, data, source)
            self.report.copied.append(target)
        else:
            logger.debug("Rendering %s", rel_path)
            content = self.engine.render(text, self.context, name=rel_path.as_posix())
            self._write(target, content.encode("utf-8"), source)
            self.report.rendered.append(target)

    def _ensure_dir(self, path: Path) -> None:
        if path in self.report.directories:
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(path, "create directory", e) from e
        self.report.directories.append(path)

    def _write(self, target: Path, payload: bytes, source: Path) -> None:
        self._ensure_dir(target.parent)
        try:
            target.write_bytes(payload)
            shutil.copymode(source, target)
        except OSError as e:
            raise FilesystemError(target, "write", e) from e
