#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/diff/normalizer.py
"""Normalization of diff-like text into canonical unified diff form.

Input arrives in several shapes: a ready unified diff (``git diff``
output), a filesystem tool's dry-run report (JSON with a ``diff`` field,
or a Markdown fenced ``diff`` block), or bare changed lines without any
header. :func:`normalize` turns all of them into a :class:`DiffDocument`
whose text the renderer can rely on.

The contract is best-effort: normalization never raises for string input.
Text that cannot be interpreted is kept verbatim so the renderer still
has something to show.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from diffviz.constants import DEFAULT_PLACEHOLDER_PATH, DRY_RUN_DIFF_FIELDS, DRY_RUN_PATH_FIELDS

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^\s*(`{3,}|~{3,})[ \t]*(?:diff|patch|udiff)?[ \t]*\n(.*?)\n[ \t]*\1[ \t]*$", re.DOTALL)
_NULL_PATHS = ("/dev/null", "dev/null")


@dataclass(frozen=True)
class DiffDocument:
    """Canonical unified diff plus the recovered path pair.

    Attributes
    ----------
    canonical_text : str
        Unified diff text with a ``---``/``+++`` header pair
    old_path : str or None
        Path of the original file, if known
    new_path : str or None
        Path of the modified file, if known

    """

    canonical_text: str
    old_path: str | None = None
    new_path: str | None = None

    @property
    def display_old_path(self) -> str:
        """Old path for labels, falling back to the placeholder."""
        return self.old_path or self.new_path or DEFAULT_PLACEHOLDER_PATH

    @property
    def display_new_path(self) -> str:
        """New path for labels, falling back to the placeholder."""
        return self.new_path or self.old_path or DEFAULT_PLACEHOLDER_PATH


@dataclass(frozen=True)
class UnwrappedInput:
    """Result of dry-run unwrapping: diff text plus any path hints found."""

    text: str
    old_path: str | None = None
    new_path: str | None = None


def is_unified(text: str) -> bool:
    """Return True when the text carries both header markers anywhere.

    This is the permissive pass-through heuristic: no structural check
    beyond the presence of ``---`` and ``+++``.
    """
    return "---" in text and "+++" in text


def unwrap_dry_run(raw: str) -> UnwrappedInput:
    """Extract the diff text from a dry-run report wrapper.

    Parameters
    ----------
    raw : str
        Raw input, possibly a JSON dry-run report or a fenced block

    Returns
    -------
    UnwrappedInput
        The embedded diff text (or ``raw`` itself) and path hints

    """
    stripped = raw.strip()

    if stripped.startswith("{"):
        try:
            payload = json.loads(stripped)
        except ValueError:
            logger.debug("Input looks like JSON but does not parse, treating it as diff text")
        else:
            if isinstance(payload, dict):
                for field_name in DRY_RUN_DIFF_FIELDS:
                    value = payload.get(field_name)
                    if isinstance(value, str):
                        logger.debug(f"Unwrapped dry-run report field '{field_name}'")
                        old_path, new_path = _paths_from_report(payload)
                        inner = unwrap_dry_run(value)
                        return UnwrappedInput(
                            text=inner.text,
                            old_path=old_path or inner.old_path,
                            new_path=new_path or inner.new_path,
                        )

    # Fenced text that already has header markers is a diff as-is
    match = None if is_unified(raw) else _FENCE_PATTERN.match(raw)
    if match:
        logger.debug("Unwrapped fenced diff block")
        return UnwrappedInput(text=match.group(2))

    return UnwrappedInput(text=raw)


def _paths_from_report(payload: dict) -> tuple[str | None, str | None]:
    old_path = payload.get("oldPath")
    new_path = payload.get("newPath")
    shared = next((payload[name] for name in DRY_RUN_PATH_FIELDS if isinstance(payload.get(name), str)), None)
    old_path = old_path if isinstance(old_path, str) and old_path else shared
    new_path = new_path if isinstance(new_path, str) and new_path else shared
    return old_path, new_path


def clean_header_path(value: str) -> str | None:
    """Turn the path part of a ``---``/``+++`` header into a plain path.

    Strips a trailing tab-separated timestamp, surrounding quotes, and the
    conventional ``a/``/``b/`` prefixes. ``/dev/null`` yields None.

    """
    path = value.split("\t", 1)[0].strip()
    if len(path) >= 2 and path[0] == path[-1] == '"':
        path = path[1:-1]
    if not path or path in _NULL_PATHS:
        return None
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path or None


def extract_header_paths(text: str) -> tuple[str | None, str | None]:
    """Return the paths of the first ``---``/``+++`` header pair in the text."""
    old_path: str | None = None
    new_path: str | None = None
    seen_old = False
    for line in text.splitlines():
        if not seen_old and line.startswith("--- "):
            old_path = clean_header_path(line[4:])
            seen_old = True
        elif seen_old and line.startswith("+++ "):
            new_path = clean_header_path(line[4:])
            break
    return old_path, new_path


def _reprefix(line: str) -> str:
    if line.startswith("@@"):
        return line
    # A body line that looks like a header would create a second header pair
    if line.startswith(("---", "+++")):
        return f" {line}"
    if line.startswith(("+", "-", " ")):
        return line
    return f" {line}"


def normalize(raw: str, hint_old_path: str | None = None, hint_new_path: str | None = None) -> DiffDocument:
    """Normalize diff-like text into a :class:`DiffDocument`.

    Parameters
    ----------
    raw : str
        Unified diff, dry-run report, or bare changed lines
    hint_old_path : str, optional
        Original file path used when the text has no header
    hint_new_path : str, optional
        Modified file path used when the text has no header

    Returns
    -------
    DiffDocument
        Canonical document. Text that already carries ``---`` and ``+++``
        markers is passed through unchanged.

    Examples
    --------
        >>> doc = normalize("line1\\nline2", "a.txt", "b.txt")
        >>> doc.canonical_text.splitlines()
        ['--- a/a.txt', '+++ b/b.txt', ' line1', ' line2']

    """
    if not isinstance(raw, str):
        raw = "" if raw is None else str(raw)

    unwrapped = unwrap_dry_run(raw)
    text = unwrapped.text
    hint_old_path = hint_old_path or unwrapped.old_path
    hint_new_path = hint_new_path or unwrapped.new_path

    if is_unified(text):
        header_old, header_new = extract_header_paths(text)
        return DiffDocument(
            canonical_text=text,
            old_path=header_old or hint_old_path,
            new_path=header_new or hint_new_path,
        )

    old_path = hint_old_path or hint_new_path or DEFAULT_PLACEHOLDER_PATH
    new_path = hint_new_path or hint_old_path or DEFAULT_PLACEHOLDER_PATH

    body = text[:-1] if text.endswith("\n") else text
    lines = [f"--- a/{old_path}", f"+++ b/{new_path}"]
    if body:
        lines.extend(_reprefix(line) for line in body.split("\n"))
    else:
        logger.debug("Empty diff input, emitting header only")

    canonical = "\n".join(lines)
    if text.endswith("\n"):
        canonical += "\n"

    return DiffDocument(canonical_text=canonical, old_path=old_path, new_path=new_path)
