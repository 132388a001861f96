from collections import OrderedDict
from typing import Iterable

from ..core.timeutils import as_utc


def _log_line(log) -> str:
    stamp = as_utc(log.timestamp).strftime("%b %d")
    title = getattr(log, "display_title", None) or log.log_type
    subtitle = getattr(log, "display_subtitle", None)
    line = f"  - {stamp}: {title}"
    if subtitle:
        line += f" ({subtitle})"
    return line


def group_logs_by_type(logs: Iterable) -> "OrderedDict[str, list]":
    """Newest first within each type; types in order of their newest entry."""
    ordered = sorted(
        (log for log in logs if not getattr(log, "is_deleted", False)),
        key=lambda log: as_utc(log.timestamp),
        reverse=True,
    )
    groups: "OrderedDict[str, list]" = OrderedDict()
    for log in ordered:
        groups.setdefault(log.log_type, []).append(log)
    return groups


def format_log_summary(logs: Iterable, per_type: int = 5) -> str:
    groups = group_logs_by_type(logs)
    if not groups:
        return "No health logs recorded in this period."
    sections = []
    for log_type, entries in groups.items():
        lines = [f"{log_type} ({len(entries)} entries):"]
        lines.extend(_log_line(log) for log in entries[:per_type])
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def format_dog_profile(dog) -> str:
    lines = [f"Name: {dog.name}"]
    if dog.breed:
        lines.append(f"Breed: {dog.breed}")
    lines.append(f"Age: {dog.age_display}")
    if dog.weight_lbs is not None:
        lines.append(f"Weight: {dog.weight_lbs:g} lbs")
    lines.append(f"Sex: {dog.sex}{', neutered' if dog.is_neutered else ''}")
    for label, value in (
        ("Medical history", dog.medical_history),
        ("Allergies", dog.allergies),
        ("Current medications", dog.current_medications),
    ):
        if value:
            lines.append(f"{label}: {value}")
    return "\n".join(lines)
