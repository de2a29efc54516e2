"""
Safe HTML rendering of a composed segment plan
Positions are computed once against plain text; the output is built in a single
linear pass with every piece of text escaped. No substitution is ever run over
already-produced markup.
"""

import logging
import re
from typing import List, Sequence, Tuple

from markupsafe import Markup, escape

from .compositor import check_partition
from .models import RenderSegment, TextBuffer

logger = logging.getLogger(__name__)

# One or more blank lines separate paragraphs
_PARAGRAPH_BREAK = re.compile(r'\r?\n[ \t]*(?:\r?\n[ \t]*)+')

CSS_PREFIX = 'prov'


class SafeRenderer:

    def render(self, buffer: TextBuffer, segments: Sequence[RenderSegment]) -> str:
        text = buffer.text
        if not text:
            return ''

        problem = check_partition(segments, len(text))
        if problem:
            logger.warning(f"Invalid segment plan ({problem}); rendering plain text")
            segments = [RenderSegment(0, len(text))]

        breaks = [(m.start(), m.end()) for m in _PARAGRAPH_BREAK.finditer(text)]

        paragraphs: List[List[Markup]] = [[]]
        for start, end, segment in _split_on_breaks(segments, breaks):
            if segment is None:
                paragraphs.append([])
                continue
            paragraphs[-1].append(self._render_piece(text[start:end], segment))

        html = Markup('').join(
            Markup('<p>{}</p>').format(Markup('').join(parts))
            for parts in paragraphs if parts
        )
        return str(html)

    def _render_piece(self, piece: str, segment: RenderSegment) -> Markup:
        lines = piece.replace('\r\n', '\n').split('\n')
        body = Markup('<br>').join(escape(line) for line in lines)
        if segment.is_plain:
            return body

        kinds = sorted(segment.kinds, key=lambda kind: -kind.priority)
        classes = [f"{CSS_PREFIX}-span", f"{CSS_PREFIX}-style-{segment.style.value}"]
        classes.extend(f"{CSS_PREFIX}-{kind.value}" for kind in kinds)

        attributes: List[Tuple[str, str]] = [
            ('class', ' '.join(classes)),
            ('data-kinds', ' '.join(kind.value for kind in kinds)),
        ]
        if segment.source_ids:
            attributes.append(('data-sources', ' '.join(segment.source_ids)))
        if segment.confidence is not None:
            attributes.append(('data-confidence', f"{segment.confidence:.2f}"))
        if segment.labels:
            attributes.append(('title', ' | '.join(segment.labels)))

        attrs = Markup('').join(Markup(' {}="{}"').format(name, value) for name, value in attributes)
        return Markup('<span{}>{}</span>').format(attrs, body)


def _split_on_breaks(segments: Sequence[RenderSegment], breaks: Sequence[Tuple[int, int]]):
    """
    Yield (start, end, segment) text pieces in order, with (start, end, None) once per
    paragraph break, so no inline span ever straddles a paragraph boundary.
    """
    break_index = 0
    for segment in segments:
        position = segment.start
        while position < segment.end:
            while break_index < len(breaks) and breaks[break_index][1] <= position:
                break_index += 1

            if break_index < len(breaks) and breaks[break_index][0] <= position:
                break_start, break_end = breaks[break_index]
                if position == break_start:
                    yield break_start, break_end, None
                position = min(break_end, segment.end)
                continue

            next_break = breaks[break_index][0] if break_index < len(breaks) else segment.end
            piece_end = min(segment.end, next_break)
            yield position, piece_end, segment
            position = piece_end
