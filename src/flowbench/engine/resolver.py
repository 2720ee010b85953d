# src/flowbench/engine/resolver.py
"""Resolve the effective source text of every logical file.

Precedence per file id:
1. Open buffer content (what the user is looking at), when non-blank
2. Previously generated content for the same id
3. Built-in sample content for the same id

Sample files that no buffer or generated entry knows about only count when
nothing else resolved: they are the demo pipeline shown to a new user.

Nothing is cached. Every call reads the current inputs, so an edit made
after a file was opened is always reflected by the next run.
"""

from collections.abc import Mapping, Sequence

from flowbench.contracts import (
    ContentEntry,
    OpenBuffer,
    ResolvedSource,
    SourceOrigin,
)


def resolve_sources(
    buffers: Sequence[OpenBuffer],
    generated: Mapping[str, ContentEntry],
    samples: Mapping[str, ContentEntry],
) -> list[ResolvedSource]:
    """Produce the authoritative, parseable sources for a run.

    Args:
        buffers: Open editor tabs, in tab order
        generated: Assistant-generated content by file id
        samples: Built-in sample content by file id

    Returns:
        Resolved sources in tab order, then generated order, then sample
        order. Files in a language the parser does not understand are left
        out.
    """
    buffers_by_id = {buffer.id: buffer for buffer in buffers}
    file_ids = list(buffers_by_id)
    file_ids.extend(file_id for file_id in generated if file_id not in buffers_by_id)

    resolved: list[ResolvedSource] = []
    for file_id in file_ids:
        source = _resolve_one(
            file_id,
            buffers_by_id.get(file_id),
            generated.get(file_id),
            samples.get(file_id),
        )
        if source is not None and source.language.is_parseable:
            resolved.append(source)

    if not resolved:
        known = set(file_ids)
        for file_id, entry in samples.items():
            if file_id in known or not entry.has_content:
                continue
            if entry.source_language.is_parseable:
                resolved.append(_from_entry(file_id, entry, SourceOrigin.SAMPLE))

    return resolved


def _resolve_one(
    file_id: str,
    buffer: OpenBuffer | None,
    generated: ContentEntry | None,
    sample: ContentEntry | None,
) -> ResolvedSource | None:
    if buffer is not None and buffer.has_content:
        return ResolvedSource(
            file_id=file_id,
            name=buffer.name,
            content=buffer.content,
            language=buffer.language,
            origin=SourceOrigin.BUFFER,
        )

    # A buffer's name decides the language even when its text comes from a fallback
    name = buffer.name if buffer is not None else file_id
    language = buffer.language if buffer is not None else None

    for entry, origin in ((generated, SourceOrigin.GENERATED), (sample, SourceOrigin.SAMPLE)):
        if entry is not None and entry.has_content:
            return ResolvedSource(
                file_id=file_id,
                name=name,
                content=entry.content,
                language=language or entry.source_language,
                origin=origin,
            )
    return None


def _from_entry(file_id: str, entry: ContentEntry, origin: SourceOrigin) -> ResolvedSource:
    return ResolvedSource(
        file_id=file_id,
        name=file_id,
        content=entry.content,
        language=entry.source_language,
        origin=origin,
    )


def has_runnable_content(
    buffers: Sequence[OpenBuffer],
    generated: Mapping[str, ContentEntry],
) -> bool:
    """True iff any open buffer or generated entry has non-whitespace content.

    Samples do not count: a user who has written nothing cannot run.
    """
    return any(buffer.has_content for buffer in buffers) or any(
        entry.has_content for entry in generated.values()
    )

