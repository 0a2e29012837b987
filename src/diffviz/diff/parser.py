#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/diff/parser.py
"""Parse canonical unified diff text into file, hunk, and line records.

The parser is lenient. It accepts ``git diff`` output with extended
headers, plain ``diff -u`` output, and the header-plus-body text produced
by :func:`diffviz.diff.normalizer.normalize` for inputs that never had a
hunk marker. A body without ``@@`` is read as a single hunk starting at
line 1 of both sides.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Literal

from diffviz.diff.normalizer import clean_header_path

LineKind = Literal["context", "insert", "delete"]

_HUNK_HEADER = re.compile(r"^@@+ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@+(.*)$")
_GIT_HEADER = re.compile(r"^diff --git (?:\"?a/)?(.+?)\"? (?:\"?b/)?(.+?)\"?$")


@dataclass
class DiffLine:
    """One body line of a hunk."""

    kind: LineKind
    content: str
    old_number: int | None = None
    new_number: int | None = None


@dataclass
class DiffHunk:
    """A contiguous block of changes introduced by an ``@@`` header."""

    header: str
    old_start: int
    new_start: int
    old_count: int | None = None
    new_count: int | None = None
    lines: List[DiffLine] = field(default_factory=list)


@dataclass
class DiffFile:
    """All hunks of one file, plus the header metadata."""

    old_path: str | None = None
    new_path: str | None = None
    hunks: List[DiffHunk] = field(default_factory=list)
    is_new: bool = False
    is_deleted: bool = False
    is_binary: bool = False
    has_old_header: bool = False

    @property
    def added_count(self) -> int:
        return sum(1 for hunk in self.hunks for line in hunk.lines if line.kind == "insert")

    @property
    def deleted_count(self) -> int:
        return sum(1 for hunk in self.hunks for line in hunk.lines if line.kind == "delete")

    @property
    def is_renamed(self) -> bool:
        return bool(self.old_path and self.new_path and self.old_path != self.new_path)

    @property
    def display_name(self) -> str:
        """Name shown in file headers; ``old → new`` for renames."""
        if self.is_renamed:
            return f"{self.old_path} → {self.new_path}"
        return self.new_path or self.old_path or "unknown"

    @property
    def highlight_name(self) -> str:
        """File name used to pick a syntax lexer."""
        return self.new_path or self.old_path or ""


class _HunkCursor:
    """Running line numbers and remaining counts for the hunk being read."""

    def __init__(self, hunk: DiffHunk):
        self.hunk = hunk
        self.old_line = hunk.old_start
        self.new_line = hunk.new_start
        self.old_left = hunk.old_count
        self.new_left = hunk.new_count

    @property
    def is_counted(self) -> bool:
        return self.old_left is not None and self.new_left is not None

    @property
    def expects_more(self) -> bool:
        if not self.is_counted:
            return False
        return self.old_left > 0 or self.new_left > 0

    def add(self, raw_line: str) -> None:
        prefix = raw_line[:1]
        content = raw_line[1:]
        if prefix == "+":
            self.hunk.lines.append(DiffLine("insert", content, None, self.new_line))
            self.new_line += 1
            if self.new_left is not None:
                self.new_left -= 1
        elif prefix == "-":
            self.hunk.lines.append(DiffLine("delete", content, self.old_line, None))
            self.old_line += 1
            if self.old_left is not None:
                self.old_left -= 1
        else:
            # Some tools strip the single space of empty context lines
            self.hunk.lines.append(DiffLine("context", content, self.old_line, self.new_line))
            self.old_line += 1
            self.new_line += 1
            if self.old_left is not None:
                self.old_left -= 1
            if self.new_left is not None:
                self.new_left -= 1


def _is_body_line(line: str) -> bool:
    return line == "" or line[0] in "+- "


def parse_unified_diff(text: str) -> List[DiffFile]:
    """Parse unified diff text into a list of :class:`DiffFile` records.

    Parameters
    ----------
    text : str
        Unified diff text, possibly covering several files

    Returns
    -------
    list of DiffFile
        One record per file header pair (or ``diff --git`` line) found.
        Text with no recognizable structure yields an empty list.

    """
    files: List[DiffFile] = []
    current: DiffFile | None = None
    cursor: _HunkCursor | None = None
    last_cursor: _HunkCursor | None = None
    last_old = 1
    last_new = 1

    lines = text.splitlines()
    index = 0
    while index < len(lines):
        line = lines[index]
        next_line = lines[index + 1] if index + 1 < len(lines) else None
        index += 1

        if line.startswith("\\"):
            # "\ No newline at end of file"
            continue

        if cursor is not None:
            if cursor.expects_more and _is_body_line(line):
                cursor.add(line)
                continue
            is_header_pair = line.startswith("--- ") and next_line is not None and next_line.startswith("+++ ")
            is_marker = is_header_pair or line.startswith(("@@", "diff --git "))
            # Hunks without counts read blank lines as empty context
            if not is_marker and _is_body_line(line) and (line or not cursor.is_counted):
                cursor.add(line)
                continue
            last_old, last_new = cursor.old_line, cursor.new_line
            last_cursor, cursor = cursor, None

        if line.startswith("diff --git "):
            current = DiffFile()
            files.append(current)
            match = _GIT_HEADER.match(line)
            if match:
                current.old_path, current.new_path = match.group(1), match.group(2)
            continue

        if line.startswith("--- ") and (next_line is None or next_line.startswith("+++ ")):
            if current is None or current.hunks or current.has_old_header:
                current = DiffFile()
                files.append(current)
            old_path = clean_header_path(line[4:])
            current.has_old_header = True
            if old_path is None:
                current.is_new = True
            else:
                current.old_path = old_path
            continue

        if line.startswith("+++ ") and current is not None and not current.hunks:
            new_path = clean_header_path(line[4:])
            if new_path is None:
                current.is_deleted = True
            else:
                current.new_path = new_path
            continue

        if line.startswith("@@"):
            if current is None:
                current = DiffFile()
                files.append(current)
            cursor = _HunkCursor(_new_hunk(line, current, last_old, last_new))
            current.hunks.append(cursor.hunk)
            continue

        if current is None:
            # Preamble such as "Index:" or "====" banners
            continue

        if line.startswith("new file mode"):
            current.is_new = True
        elif line.startswith("deleted file mode"):
            current.is_deleted = True
        elif line.startswith("rename from "):
            current.old_path = line[len("rename from ") :]
        elif line.startswith("rename to "):
            current.new_path = line[len("rename to ") :]
        elif line.startswith("Binary files ") or line.startswith("GIT binary patch"):
            current.is_binary = True
        elif line and _is_body_line(line) and not current.hunks and current.has_old_header:
            # Body without any hunk marker: read it as one hunk from line 1
            synthetic = DiffHunk(header="@@ -1 +1 @@", old_start=1, new_start=1)
            current.hunks.append(synthetic)
            cursor = _HunkCursor(synthetic)
            cursor.add(line)
        elif (
            line
            and _is_body_line(line)
            and current.hunks
            and last_cursor is not None
            and last_cursor.hunk is current.hunks[-1]
        ):
            # Body lines after a blank line or stray text stay with the hunk
            cursor = last_cursor
            cursor.add(line)

    return files


def _new_hunk(header: str, diff_file: DiffFile, last_old: int, last_new: int) -> DiffHunk:
    match = _HUNK_HEADER.match(header)
    if match is None:
        if not diff_file.hunks:
            last_old = last_new = 1
        return DiffHunk(header=header, old_start=last_old, new_start=last_new)

    old_start = int(match.group(1))
    old_count = int(match.group(2)) if match.group(2) is not None else 1
    new_start = int(match.group(3))
    new_count = int(match.group(4)) if match.group(4) is not None else 1
    return DiffHunk(
        header=header,
        # A zero count means the range is empty and the start names the line before it
        old_start=old_start if old_count else old_start + 1,
        new_start=new_start if new_count else new_start + 1,
        old_count=old_count,
        new_count=new_count,
    )
