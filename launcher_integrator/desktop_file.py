"""Launcher document (``.desktop`` file) model.

The model keeps every line of the source file: untouched entries, comments and
blank lines serialize exactly as they were read, so rewriting a document only
changes the keys that were set. A repeated group is merged into its first
occurrence, so such documents do not round-trip exactly. Values are stored
escaped, the way they appear in the file; ``get``/``set`` convert to and from
plain strings.

Saving goes through ``QSaveFile``: data is written to a temporary file next to
the target and renamed over it on commit, so readers never see a half-written
document.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QIODevice, QSaveFile

from .errors import FormatError
from .logger import get_logger

_logger = get_logger("desktop_file")

DESKTOP_ENTRY_GROUP = "Desktop Entry"
DESKTOP_FILE_SUFFIX = ".desktop"

_GROUP_RE = re.compile(r"^\[([^\[\]]+)\]\s*$")
_ENTRY_RE = re.compile(r"^([^=\[\]]+?)\s*(?:\[([^\[\]]+)\])?\s*=[ \t]*(.*)$")

_UNESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


def unescape_value(raw: str, list_separator: str | None = None) -> str:
    out: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "\\" and i + 1 < len(raw):
            nxt = raw[i + 1]
            if nxt in _UNESCAPES:
                out.append(_UNESCAPES[nxt])
            elif list_separator is not None and nxt == list_separator:
                out.append(nxt)
            else:
                # unknown escape, keep it verbatim
                out.append(ch + nxt)
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def escape_value(value: str, list_separator: str | None = None) -> str:
    out: list[str] = []
    for idx, ch in enumerate(value):
        if ch == "\\":
            out.append("\\\\")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\r":
            out.append("\\r")
        elif ch == " " and idx == 0:
            out.append("\\s")
        elif list_separator is not None and ch == list_separator:
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def _split_list(raw: str, separator: str = ";") -> list[str]:
    items: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch == "\\" and i + 1 < len(raw):
            current.append(raw[i : i + 2])
            i += 2
            continue
        if ch == separator:
            items.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    if current:
        items.append("".join(current))
    return [unescape_value(item, separator) for item in items]


@dataclass
class _Entry:
    key: str
    locale: str | None
    value: str
    raw: str | None = None  # source line; None once modified

    def render(self) -> str:
        if self.raw is not None:
            return self.raw
        name = f"{self.key}[{self.locale}]" if self.locale else self.key
        return f"{name}={self.value}"


@dataclass
class _Comment:
    raw: str

    def render(self) -> str:
        return self.raw

    @property
    def is_blank(self) -> bool:
        return not self.raw.strip()


class DesktopSection:
    """One ``[Group]`` of a launcher document."""

    def __init__(self, name: str, header: str | None = None):
        self.name = name
        self._header = header
        self._lines: list[_Entry | _Comment] = []

    def _entries(self) -> Iterator[_Entry]:
        return (line for line in self._lines if isinstance(line, _Entry))

    def _find(self, key: str, locale: str | None) -> _Entry | None:
        found = None
        for entry in self._entries():
            if entry.key == key and entry.locale == locale:
                # the last occurrence wins, like other desktop file readers
                found = entry
        return found

    def keys(self) -> list[str]:
        seen: list[str] = []
        for entry in self._entries():
            if entry.locale is None and entry.key not in seen:
                seen.append(entry.key)
        return seen

    def has_key(self, key: str, locale: str | None = None) -> bool:
        return self._find(key, locale) is not None

    def get_raw(self, key: str, locale: str | None = None) -> str | None:
        entry = self._find(key, locale)
        return entry.value if entry is not None else None

    def get(self, key: str, locale: str | None = None) -> str | None:
        raw = self.get_raw(key, locale)
        return unescape_value(raw) if raw is not None else None

    def get_list(self, key: str, separator: str = ";") -> list[str]:
        raw = self.get_raw(key)
        return _split_list(raw, separator) if raw else []

    def localized(self, key: str) -> dict[str, str]:
        """Locale -> value for every ``key[locale]`` override."""
        return {
            entry.locale: unescape_value(entry.value)
            for entry in self._entries()
            if entry.key == key and entry.locale is not None
        }

    def set_raw(self, key: str, value: str, locale: str | None = None) -> None:
        entry = self._find(key, locale)
        if entry is not None:
            if entry.value != value:
                entry.value = value
                entry.raw = None
            return

        new_entry = _Entry(key=key, locale=locale, value=value)
        last_entry_idx = -1
        for idx, line in enumerate(self._lines):
            if isinstance(line, _Entry):
                last_entry_idx = idx
        if last_entry_idx < 0:
            # keep leading comments of an empty group above the new key
            insert_at = len(self._lines)
            while insert_at > 0 and isinstance(self._lines[insert_at - 1], _Comment) and self._lines[insert_at - 1].is_blank:
                insert_at -= 1
            self._lines.insert(insert_at, new_entry)
        else:
            self._lines.insert(last_entry_idx + 1, new_entry)

    def set(self, key: str, value: str, locale: str | None = None) -> None:
        self.set_raw(key, escape_value(value), locale)

    def set_list(self, key: str, values: Iterable[str], separator: str = ";") -> None:
        raw = "".join(escape_value(v, separator) + separator for v in values)
        self.set_raw(key, raw)

    def remove(self, key: str, locale: str | None = None) -> bool:
        before = len(self._lines)
        self._lines = [
            line
            for line in self._lines
            if not (isinstance(line, _Entry) and line.key == key and line.locale == locale)
        ]
        return len(self._lines) != before

    def _append_line(self, line: _Entry | _Comment) -> None:
        self._lines.append(line)

    def _ends_with_blank(self) -> bool:
        return bool(self._lines) and isinstance(self._lines[-1], _Comment) and self._lines[-1].is_blank

    def render(self) -> list[str]:
        header = self._header if self._header is not None else f"[{self.name}]"
        return [header] + [line.render() for line in self._lines]


class DesktopFile:
    """Ordered sequence of sections plus any comments above the first one."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._preamble: list[_Comment] = []
        self._sections: list[DesktopSection] = []

    # --- parsing -----------------------------------------------------------

    @classmethod
    def parse(cls, text: str, path: str | Path | None = None) -> DesktopFile:
        doc = cls(path)
        where = str(path) if path is not None else None
        current: DesktopSection | None = None

        for lineno, line in enumerate(text.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                if current is None:
                    doc._preamble.append(_Comment(line))
                else:
                    current._append_line(_Comment(line))
                continue

            if stripped.startswith("["):
                m = _GROUP_RE.match(stripped)
                if m is None:
                    raise FormatError(f"invalid group header: {line!r}", where, lineno)
                name = m.group(1)
                existing = doc.section(name)
                if existing is not None:
                    # repeated groups are merged, later keys win on lookup
                    _logger.debug("%s:%d: merging repeated group %r", where, lineno, name)
                    current = existing
                    continue
                current = DesktopSection(name, header=line)
                doc._sections.append(current)
                continue

            if current is None:
                raise FormatError("key file does not start with a group", where, lineno)

            m = _ENTRY_RE.match(line.lstrip())
            if m is None or not m.group(1).strip():
                raise FormatError(f"invalid line: {line!r}", where, lineno)
            key, locale, value = m.group(1).strip(), m.group(2), m.group(3)
            current._append_line(_Entry(key=key, locale=locale, value=value, raw=line))

        return doc

    @classmethod
    def load(cls, path: str | Path) -> DesktopFile:
        """Read and parse ``path``.

        Raises:
            OSError: the file cannot be read
            FormatError: the content is not a valid launcher document
        """
        p = Path(path)
        data = p.read_bytes()
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"not valid UTF-8: {e}", str(p)) from e
        return cls.parse(text, p)

    # --- sections ----------------------------------------------------------

    def sections(self) -> list[str]:
        return [s.name for s in self._sections]

    def section(self, name: str) -> DesktopSection | None:
        for s in self._sections:
            if s.name == name:
                return s
        return None

    def has_section(self, name: str) -> bool:
        return self.section(name) is not None

    def ensure_section(self, name: str) -> DesktopSection:
        existing = self.section(name)
        if existing is not None:
            return existing
        if self._sections and not self._sections[-1]._ends_with_blank():
            self._sections[-1]._append_line(_Comment(""))
        new = DesktopSection(name)
        self._sections.append(new)
        return new

    def remove_section(self, name: str) -> bool:
        before = len(self._sections)
        self._sections = [s for s in self._sections if s.name != name]
        return len(self._sections) != before

    @property
    def main(self) -> DesktopSection | None:
        return self.section(DESKTOP_ENTRY_GROUP)

    def get(self, group: str, key: str, locale: str | None = None) -> str | None:
        s = self.section(group)
        return s.get(key, locale) if s is not None else None

    def set(self, group: str, key: str, value: str, locale: str | None = None) -> None:
        self.ensure_section(group).set(key, value, locale)

    # --- serialization -----------------------------------------------------

    def to_string(self) -> str:
        lines = [c.render() for c in self._preamble]
        for s in self._sections:
            lines.extend(s.render())
        return "\n".join(lines) + "\n" if lines else ""

    def save(self, path: str | Path | None = None) -> Path:
        """Atomically replace the document on disk.

        Raises:
            OSError: the temporary file cannot be written or committed
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("no path to save the launcher document to")

        data = self.to_string().encode("utf-8")
        f = QSaveFile(str(target))
        if not f.open(QIODevice.OpenModeFlag.WriteOnly):
            raise OSError(f"cannot open {target} for writing: {f.errorString()}")
        if f.write(data) != len(data):
            err = f.errorString()
            f.cancelWriting()
            f.commit()
            raise OSError(f"cannot write {target}: {err}")
        if not f.commit():
            raise OSError(f"cannot replace {target}: {f.errorString()}")

        self.path = target
        _logger.debug("launcher document saved: %s", target)
        return target
