"""
Word wrapping of annotation text against a width limit.

Widths are measured with a font metrics callable ``(text, font_size) -> width``
so the same algorithm serves the on-screen preview and the PDF export.
"""
from typing import Callable, List

import fitz  # PyMuPDF

FontMetrics = Callable[[str, float], float]

# Built-in PDF font used for measuring and for writing annotations
EXPORT_FONT = "helv"


def helvetica_metrics(text: str, font_size: float) -> float:
    """Width of ``text`` in points when set in Helvetica at ``font_size``."""
    return fitz.get_text_length(text, fontname=EXPORT_FONT, fontsize=font_size)


def break_long_word(word: str, font_metrics: FontMetrics, font_size: float,
                    max_width: float) -> List[str]:
    """
    Split a word into pieces that each fit within ``max_width``.

    Characters are accumulated until the next one would overflow. A single
    character wider than the limit becomes a piece of its own.
    """
    pieces = []
    current = ""
    for char in word:
        candidate = current + char
        if current and font_metrics(candidate, font_size) > max_width:
            pieces.append(current)
            current = char
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def _wrap_logical_line(line: str, font_metrics: FontMetrics, font_size: float,
                       max_width: float) -> List[str]:
    tokens = []
    for word in line.split():
        if font_metrics(word, font_size) > max_width:
            tokens.extend(break_long_word(word, font_metrics, font_size, max_width))
        else:
            tokens.append(word)

    if not tokens:
        return [""]

    lines = []
    current = tokens[0]
    for token in tokens[1:]:
        candidate = current + " " + token
        if font_metrics(candidate, font_size) > max_width:
            lines.append(current)
            current = token
        else:
            current = candidate
    lines.append(current)
    return lines


def wrap(text: str, font_metrics: FontMetrics, font_size: float,
         max_width: float) -> List[str]:
    """
    Wrap text into physical lines no wider than ``max_width``.

    Explicit line breaks are kept, blank lines survive as empty strings and
    runs of whitespace collapse to a single space. Wrapping the joined output
    again with the same arguments returns the same lines.

    Args:
        text: Text to wrap, possibly with line breaks
        font_metrics: Callable measuring a string at a font size
        font_size: Font size passed to ``font_metrics``
        max_width: Maximum line width, same unit as ``font_metrics``

    Returns:
        List of physical lines
    """
    lines = []
    for logical_line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        lines.extend(_wrap_logical_line(logical_line, font_metrics, font_size, max_width))
    return lines


def widest_line(lines: List[str], font_metrics: FontMetrics, font_size: float) -> float:
    return max((font_metrics(line, font_size) for line in lines), default=0.0)
