# src/flowbench/engine/workspace.py
"""Editor-side inputs to a run: open tabs, generated content, samples.

The Workspace is the mutable model the editor edits. The controller never
keeps copies of it; every run resolves sources from its current contents.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from flowbench.contracts import ContentEntry, OpenBuffer, SourceLanguage
from flowbench.engine.samples import SAMPLE_CONTENTS

SOURCE_SUFFIXES = frozenset({".py", ".sql"})


@dataclass
class Workspace:
    """Open buffers (in tab order) plus the generated and sample content maps."""

    open_buffers: list[OpenBuffer] = field(default_factory=list)
    generated: dict[str, ContentEntry] = field(default_factory=dict)
    samples: Mapping[str, ContentEntry] = field(default_factory=dict)

    def get_buffer(self, file_id: str) -> OpenBuffer | None:
        for buffer in self.open_buffers:
            if buffer.id == file_id:
                return buffer
        return None

    def open_file(self, file_id: str, name: str, content: str | None = None) -> OpenBuffer:
        """Open a tab, or return the existing one for the same id.

        Without explicit content the tab is seeded from generated content,
        then sample content, then left empty.
        """
        existing = self.get_buffer(file_id)
        if existing is not None:
            return existing

        if content is None:
            entry = self.generated.get(file_id) or self.samples.get(file_id)
            content = entry.content if entry is not None else ""

        buffer = OpenBuffer(id=file_id, name=name, content=content)
        self.open_buffers.append(buffer)
        return buffer

    def update_buffer(self, file_id: str, content: str) -> OpenBuffer:
        """Replace the text of an open tab.

        Raises:
            KeyError: If no tab with this id is open
        """
        for index, buffer in enumerate(self.open_buffers):
            if buffer.id == file_id:
                updated = OpenBuffer(id=buffer.id, name=buffer.name, content=content)
                self.open_buffers[index] = updated
                return updated
        raise KeyError(f"No open buffer with id '{file_id}'")

    def close_buffer(self, file_id: str) -> None:
        """Close a tab. Closing a tab that is not open does nothing."""
        self.open_buffers = [buffer for buffer in self.open_buffers if buffer.id != file_id]

    def set_generated(self, file_id: str, content: str, language: str = "python") -> None:
        self.generated[file_id] = ContentEntry(content=content, language=language)


def load_workspace(directory: Path, *, include_samples: bool = False) -> Workspace:
    """Open every .py and .sql file under `directory` as a buffer.

    Files are opened in sorted path order; the id and tab name are the path
    relative to `directory` (POSIX separators).

    Args:
        directory: Root of the pipeline sources
        include_samples: Make the built-in demo pipeline available

    Raises:
        NotADirectoryError: If `directory` is not a directory
    """
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    workspace = Workspace(samples=SAMPLE_CONTENTS if include_samples else {})
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in SOURCE_SUFFIXES:
            continue
        relative = path.relative_to(directory).as_posix()
        if SourceLanguage.from_filename(relative).is_parseable:
            workspace.open_file(relative, relative, path.read_text(encoding="utf-8"))
    return workspace
