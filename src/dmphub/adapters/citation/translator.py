"""Render CSL-JSON metadata as an author-date citation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import CslItem, CslName


def _first(value: str | list[str] | None) -> str | None:
    if isinstance(value, list):
        value = next((entry for entry in value if entry and entry.strip()), None)
    if value is None or not value.strip():
        return None
    return value.strip()


def _name(name: CslName) -> str | None:
    if name.family:
        initials = " ".join(f"{part[0]}." for part in (name.given or "").split() if part)
        return f"{name.family.strip()}, {initials}" if initials else name.family.strip()
    return name.literal.strip() if name.literal and name.literal.strip() else None


def _authors(names: list[CslName]) -> str | None:
    rendered = [value for value in (_name(name) for name in names) if value]
    if not rendered:
        return None
    if len(rendered) == 1:
        return rendered[0]
    return f"{', '.join(rendered[:-1])}, & {rendered[-1]}"


def _work_type_label(work_type: str) -> str:
    return work_type.replace("_", " ").strip().capitalize()


def render_citation(item: CslItem, *, doi_url: str, work_type: str | None = None) -> str | None:
    """``Authors (Year). Title. [Work type]. Container. Publisher. <link>``.

    Returns ``None`` when the metadata has no title.
    """

    title = _first(item.title)
    if title is None:
        return None

    parts: list[str] = []
    authors = _authors(item.author)
    date = item.issued or item.published
    year = date.year if date is not None else None
    if authors:
        parts.append(f"{authors} ({year or 'n.d.'}).")
    elif year:
        parts.append(f"({year}).")
    parts.append(f"{title.rstrip('.')}.")
    if work_type:
        parts.append(f"[{_work_type_label(work_type)}].")
    container = _first(item.container_title)
    if container:
        parts.append(f"{container.rstrip('.')}.")
    if item.publisher and item.publisher.strip():
        parts.append(f"{item.publisher.strip().rstrip('.')}.")
    parts.append(f'<a href="{doi_url}" target="_blank">{doi_url}</a>')
    return " ".join(parts)
