"""Turn a text selection into task line records.

Each non-empty line loses its markdown decoration (quote, heading, bullet,
checkbox, emphasis) and is classified as anchored or new:

    >>> LineExtractor().extract("- [ ] Buy milk\\n\\n> Call Bob ^a100001")
    [TaskLineRecord(raw_text='Buy milk', clean_title='Buy milk', anchor=None, ...),
     TaskLineRecord(raw_text='Call Bob ^a100001', clean_title='Call Bob', anchor='a100001', ...)]
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mstodo_sync.anchors import extract_anchor, strip_anchor
from mstodo_sync.logging import get_logger
from mstodo_sync.settings import SyncSettings

__all__ = ["LineExtractor", "TaskLineRecord", "strip_markdown", "timestamp_pattern"]

logger = get_logger("extractor")

_LEADING_SYNTAX = re.compile(
    r"""^\s*
    (?:>\s?)*                    # blockquote
    (?:\#+\s+)?                  # heading
    (?:(?:[-*+]|\d+[.)])\s+)?    # bullet or ordered item
    (?:\[[ xX]\](?:\s+|$))?      # checkbox
    \**                          # leading emphasis
    """,
    re.VERBOSE,
)
_TRAILING_EMPHASIS = re.compile(r"\*+$")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def strip_markdown(line: str) -> str:
    """Remove leading checklist/list/quote/heading syntax and emphasis, then trim."""
    return _LEADING_SYNTAX.sub("", line, count=1).strip()


_WORD = r"[^\W\d_]+"
_STRFTIME_FIELDS = {
    "Y": r"\d{4}",
    "y": r"\d{2}",
    "m": r"\d{1,2}",
    "d": r"\d{1,2}",
    "H": r"\d{1,2}",
    "I": r"\d{1,2}",
    "M": r"\d{2}",
    "S": r"\d{2}",
    "f": r"\d{1,6}",
    "j": r"\d{1,3}",
    "p": r"[AaPp][Mm]",
    "a": _WORD,
    "A": _WORD,
    "b": _WORD,
    "B": _WORD,
    "z": r"[+-]\d{4}",
    "%": "%",
}


def timestamp_pattern(time_format: str) -> str:
    """Regex source matching what ``datetime.strftime(time_format)`` produces.

    Directives without an entry above match a run of non-space characters.
    """
    parts = []
    for piece in re.split(r"(%.)", time_format):
        if len(piece) == 2 and piece[0] == "%":
            parts.append(_STRFTIME_FIELDS.get(piece[1], r"\S+"))
        elif piece:
            parts.append(re.escape(piece))
    return "".join(parts)


@dataclass
class TaskLineRecord:
    """One normalized line of a selection.

    Attributes:
        raw_text: Line content after markdown stripping, anchor still in place.
        clean_title: Title sent to the remote service.
        anchor: Anchor token, None for a line that has never been synced.
        created_at: An existing "created at" segment, kept verbatim on re-render.
        body: Body annotation for a create call.
        index: Position among the surviving lines of the selection.
    """

    raw_text: str
    clean_title: str
    anchor: str | None = None
    created_at: str | None = None
    body: str = ""
    index: int = 0

    @property
    def is_new(self) -> bool:
        return self.anchor is None


class LineExtractor:
    """Splits selections into :class:`TaskLineRecord` lists.

    Args:
        created_at_label: Label of the timestamp segment written by the
            renderer; on anchored lines a trailing ``label <timestamp>`` is
            cut from the title.
        failed_marker: Failure marker written by the renderer; removed
            from every title.
        time_format: ``strftime`` pattern of the timestamp after the label.
    """

    def __init__(
        self,
        created_at_label: str | None = None,
        failed_marker: str | None = None,
        time_format: str = "%Y-%m-%d %H:%M",
    ):
        self.failed_marker = failed_marker or None
        self._created_at = (
            re.compile(
                rf"(?:^|\s)({re.escape(created_at_label)}\s+{timestamp_pattern(time_format)})$"
            )
            if created_at_label
            else None
        )

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> LineExtractor:
        return cls(settings.created_at_label, settings.failed_marker, settings.time_format)

    def extract(self, selection: str, body: str = "") -> list[TaskLineRecord]:
        """Records for every non-empty line, in selection order."""
        records: list[TaskLineRecord] = []
        for line in _LINE_BREAK.split(selection):
            record = self.parse_line(line, index=len(records), body=body)
            if record is not None:
                records.append(record)
        logger.debug(
            "Extracted task lines",
            count=len(records),
            anchored=sum(1 for r in records if not r.is_new),
        )
        return records

    def parse_line(self, line: str, *, index: int = 0, body: str = "") -> TaskLineRecord | None:
        return self._record(strip_markdown(line), index=index, body=body)

    def parse_block(self, selection: str, *, body: str = "") -> TaskLineRecord | None:
        """The whole selection as one record: stripped lines joined by spaces."""
        text = " ".join(
            part for part in (strip_markdown(line) for line in _LINE_BREAK.split(selection)) if part
        )
        return self._record(text, index=0, body=body)

    def _record(self, text: str, *, index: int, body: str) -> TaskLineRecord | None:
        if not text:
            return None

        anchor = extract_anchor(text)
        title = text
        created_at = None
        if anchor is not None:
            title = strip_anchor(title, anchor)
        if self.failed_marker:
            title = title.replace(self.failed_marker, "")
        title = title.strip()
        if anchor is not None and self._created_at is not None:
            match = self._created_at.search(title)
            if match:
                created_at = match.group(1)
                title = title[: match.start(1)].strip()
        title = _TRAILING_EMPHASIS.sub("", title).strip()

        if not title and anchor is None:
            return None
        # An anchored line without a title is kept so it is reported, not dropped.
        return TaskLineRecord(
            raw_text=text,
            clean_title=title,
            anchor=anchor,
            created_at=created_at,
            body="" if anchor else body,
            index=index,
        )
