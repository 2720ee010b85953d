"""Source text contracts.

These types answer: "What code is the pipeline made of right now?"
The editor owns the mutable buffers; everything here is a value copy.
"""

from dataclasses import dataclass

from flowbench.contracts.enums import SourceLanguage, SourceOrigin


@dataclass(frozen=True)
class OpenBuffer:
    """An open editor tab.

    The language is derived from the file name, matching what the editor
    uses to pick syntax highlighting.
    """

    id: str
    name: str
    content: str

    @property
    def language(self) -> SourceLanguage:
        return SourceLanguage.from_filename(self.name)

    @property
    def has_content(self) -> bool:
        return bool(self.content.strip())


@dataclass(frozen=True)
class ContentEntry:
    """Content keyed by file id in the generated and sample maps."""

    content: str
    language: str = "python"

    @property
    def source_language(self) -> SourceLanguage:
        return SourceLanguage.from_label(self.language)

    @property
    def has_content(self) -> bool:
        return bool(self.content.strip())


@dataclass(frozen=True)
class ResolvedSource:
    """The authoritative text for one logical file at run time."""

    file_id: str
    name: str
    content: str
    language: SourceLanguage
    origin: SourceOrigin
