"""
Formatters: validate + pretty-print node data for a given editor mode.

The registry is a plain Mode -> Formatter mapping. A mode with no entry
(e.g. Mode.TEXT) simply has no formatter; that's a normal, checkable state.

Every formatter is a canonical normalization: formatting already-formatted
text returns it unchanged.
"""

from __future__ import annotations

import json
from typing import Dict, Iterator, Mapping, Optional, Protocol
from xml.dom import minidom
from xml.parsers.expat import ExpatError

import yaml

from zedit.core.errors import FormatValidationError, UnsupportedFormatError
from zedit.core.mode import Mode


class Formatter(Protocol):
    """Validate and canonically re-render text for one mode."""

    def format(self, text: str) -> str:
        """Return the canonical rendering or raise FormatValidationError."""
        ...


class JsonFormatter:
    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def format(self, text: str) -> str:
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatValidationError(
                f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})"
            ) from e
        return json.dumps(value, indent=self.indent, ensure_ascii=False)


class YamlFormatter:
    def format(self, text: str) -> str:
        try:
            docs = list(yaml.safe_load_all(text))
        except yaml.YAMLError as e:
            raise FormatValidationError(f"Invalid YAML: {e}") from e
        if not docs:
            # Empty input is a valid (empty) stream.
            return ""
        return yaml.safe_dump_all(
            docs,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
            explicit_start=len(docs) > 1,
        )


def _normalize_whitespace(node: minidom.Node) -> None:
    """
    Drop indentation-only text nodes and trim text in mixed content.

    toprettyxml() re-indents everything, so without this a second pass would
    nest the first pass's indentation inside text nodes.
    """
    for child in list(node.childNodes):
        if child.nodeType == child.TEXT_NODE:
            if not child.data.strip():
                node.removeChild(child)
            elif len(node.childNodes) > 1:
                child.data = child.data.strip()
        elif child.hasChildNodes():
            _normalize_whitespace(child)


class XmlFormatter:
    def __init__(self, indent: str = "  ") -> None:
        self.indent = indent

    def format(self, text: str) -> str:
        try:
            doc = minidom.parseString(text.encode("utf-8"))
        except ExpatError as e:
            raise FormatValidationError(f"Invalid XML: {e}") from e

        _normalize_whitespace(doc)
        pretty = doc.toprettyxml(indent=self.indent)
        lines = [ln for ln in pretty.splitlines() if ln.strip()]
        # minidom always emits a declaration; keep it only if the input had one.
        if lines and lines[0].startswith("<?xml") and not text.lstrip().startswith("<?xml"):
            lines = lines[1:]
        return "\n".join(lines)


class FormatterRegistry(Mapping[Mode, Formatter]):
    """Closed, inspectable mapping of mode -> formatter."""

    def __init__(self, formatters: Optional[Mapping[Mode, Formatter]] = None) -> None:
        self._formatters: Dict[Mode, Formatter] = dict(formatters or {})

    def __getitem__(self, mode: Mode) -> Formatter:
        return self._formatters[mode]

    def __iter__(self) -> Iterator[Mode]:
        return iter(self._formatters)

    def __len__(self) -> int:
        return len(self._formatters)

    def get_formatter(self, mode: Mode) -> Optional[Formatter]:
        return self._formatters.get(mode)

    def modes(self) -> list[Mode]:
        return list(self._formatters)

    def format(self, mode: Mode, text: str) -> str:
        """Format `text` for `mode`; raises UnsupportedFormatError / FormatValidationError."""
        formatter = self.get_formatter(mode)
        if formatter is None:
            raise UnsupportedFormatError(mode)
        return formatter.format(text)


def default_registry() -> FormatterRegistry:
    return FormatterRegistry(
        {
            Mode.JSON: JsonFormatter(),
            Mode.YAML: YamlFormatter(),
            Mode.XML: XmlFormatter(),
        }
    )
