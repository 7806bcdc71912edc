"""Splits model output into html, css and the prose around them.

Fenced blocks are found by a single left-to-right pass over ``` delimiters:
an opening delimiter takes the label glued to it, and the block ends at the
very next delimiter. The first ``html`` and first ``css`` blocks are kept;
every complete block, whatever its label, is cut out of the prose.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from pagecraft.logger import get_logger

logger = get_logger(__name__)

FENCE = "```"
CODE_LABELS = ("html", "css")

_LABEL = re.compile(r"[A-Za-z0-9_+\-]*")
_MISSING_NEWLINE = re.compile(r"```(html|css)(?!\r?\n)")


@dataclass(frozen=True)
class ParseAnomaly:
    kind: str  # "unterminated_fence" or "duplicate_block"
    label: str
    offset: int


@dataclass(frozen=True)
class GeneratedArtifact:
    html: str
    css: str
    explanatory_text: str
    anomalies: Tuple[ParseAnomaly, ...] = field(default=(), compare=False)

    @property
    def has_code(self) -> bool:
        return bool(self.html or self.css)


def normalize_fences(text: str) -> str:
    """Make sure ```html and ```css openers are followed by a newline."""
    return _MISSING_NEWLINE.sub(lambda m: f"{FENCE}{m.group(1)}\n", text)


class ResponseParser:
    def parse(self, raw: str) -> GeneratedArtifact:
        """Never raises; malformed fences degrade to empty fields."""
        text = normalize_fences(raw or "")
        blocks: Dict[str, str] = {}
        anomalies: List[ParseAnomaly] = []
        prose: List[str] = []

        pos = 0
        while True:
            start = text.find(FENCE, pos)
            if start == -1:
                prose.append(text[pos:])
                break

            label_match = _LABEL.match(text, start + len(FENCE))
            label = label_match.group(0)
            body_start = label_match.end()
            end = text.find(FENCE, body_start)
            if end == -1:
                anomalies.append(ParseAnomaly("unterminated_fence", label, start))
                prose.append(text[pos:])
                break

            prose.append(text[pos:start])
            if label in CODE_LABELS:
                if label in blocks:
                    anomalies.append(ParseAnomaly("duplicate_block", label, start))
                else:
                    blocks[label] = text[body_start:end].strip()
            pos = end + len(FENCE)

        for anomaly in anomalies:
            logger.warning(
                f"Response parse anomaly: {anomaly.kind} "
                f"(label={anomaly.label or '<none>'}, offset={anomaly.offset})"
            )

        return GeneratedArtifact(
            html=blocks.get("html", ""),
            css=blocks.get("css", ""),
            explanatory_text="".join(prose).strip(),
            anomalies=tuple(anomalies),
        )


def parse_response(raw: str) -> GeneratedArtifact:
    return ResponseParser().parse(raw)
