from dataclasses import dataclass, replace
from typing import Optional, Tuple

RGB = Tuple[int, int, int]

# Highlight value meaning "draw no background"
NO_HIGHLIGHT: Optional[RGB] = None


def clamp_ratio(value: float) -> float:
    """Clamp a ratio coordinate to [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def parse_color(value) -> Optional[RGB]:
    """
    Normalize a color value to an RGB tuple.

    Accepts RGB sequences, ``#rrggbb``/``#rgb`` strings and ``rgb(r, g, b)``
    strings. Transparent values map to None.

    Raises:
        ValueError: If the value cannot be interpreted as a color
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if len(value) < 3:
            raise ValueError(f"Invalid color: {value!r}")
        return tuple(max(0, min(255, int(c))) for c in value[:3])

    text = str(value).strip().lower()
    if text in ("", "transparent", "none", "rgba(0, 0, 0, 0)"):
        return None
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        if len(digits) != 6:
            raise ValueError(f"Invalid color: {value!r}")
        return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))
    if text.startswith("rgb"):
        inner = text[text.index("(") + 1:text.rindex(")")]
        parts = [p.strip() for p in inner.split(",")]
        if len(parts) == 4 and float(parts[3]) == 0:
            return None
        return parse_color([float(p) for p in parts[:3]])
    raise ValueError(f"Invalid color: {value!r}")


def color_to_hex(color: Optional[RGB]) -> Optional[str]:
    if color is None:
        return None
    return "#{:02x}{:02x}{:02x}".format(*color)


@dataclass(frozen=True)
class AnnotationStyle:
    """Font size, text color and highlight applied to an annotation."""
    font_size: float = 14.0
    color: RGB = (0, 0, 0)
    highlight_color: Optional[RGB] = (255, 255, 0)

    @property
    def has_highlight(self) -> bool:
        return self.highlight_color is not NO_HIGHLIGHT


@dataclass
class Annotation:
    """
    A text annotation positioned relative to its page.

    Position and size are ratios of the page box (origin top-left, y down) so
    the annotation is independent of the zoom level. ``font_size`` is in PDF
    points; the on-screen pixel size is ``font_size * scale``.
    """
    id: int
    page_index: int  # 0-based page index
    x_ratio: float
    y_ratio: float
    text: str = ""
    font_size: float = 14.0
    color: RGB = (0, 0, 0)
    highlight_color: Optional[RGB] = (255, 255, 0)

    # Set once the box has been resized or dropped after a drag
    width_ratio: Optional[float] = None
    height_ratio: Optional[float] = None

    # True while the text is still the placement placeholder
    placeholder: bool = False

    @property
    def style(self) -> AnnotationStyle:
        return AnnotationStyle(self.font_size, self.color, self.highlight_color)

    def with_style(self, style: AnnotationStyle) -> "Annotation":
        return replace(self, font_size=style.font_size, color=style.color,
                       highlight_color=style.highlight_color)

    def to_dict(self):
        """Convert annotation to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'page_index': self.page_index,
            'x_ratio': self.x_ratio,
            'y_ratio': self.y_ratio,
            'text': self.text,
            'font_size': self.font_size,
            'color': list(self.color),
            'highlight_color': list(self.highlight_color) if self.highlight_color else None,
            'placeholder': self.placeholder,
        }

        if self.width_ratio is not None:
            data['width_ratio'] = self.width_ratio

        if self.height_ratio is not None:
            data['height_ratio'] = self.height_ratio

        return data

    @staticmethod
    def from_dict(data):
        """
        Create annotation from dictionary.

        Raises:
            KeyError, TypeError, ValueError: If the dictionary is malformed
        """
        width = data.get('width_ratio')
        height = data.get('height_ratio')

        return Annotation(
            id=int(data['id']),
            page_index=int(data['page_index']),
            x_ratio=clamp_ratio(data['x_ratio']),
            y_ratio=clamp_ratio(data['y_ratio']),
            text=str(data.get('text', '')),
            font_size=float(data.get('font_size', 14.0)),
            color=parse_color(data.get('color', (0, 0, 0))) or (0, 0, 0),
            highlight_color=parse_color(data.get('highlight_color')),
            width_ratio=clamp_ratio(width) if width is not None else None,
            height_ratio=clamp_ratio(height) if height is not None else None,
            placeholder=bool(data.get('placeholder', False)),
        )
