"""
Application settings.

Values can be overridden with ``TEXTMARK_*`` environment variables or a
``.env`` file in the working directory.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

RGB = Tuple[int, int, int]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='TEXTMARK_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'TextmarkPDF'
    data_dir: Optional[Path] = None
    log_level: str = 'INFO'

    # View
    default_scale: float = 1.5
    min_scale: float = 0.1
    page_spacing: int = 20
    toolbar_offset: int = 100
    wheel_zoom_step: float = 1.1
    zoom_throttle_ms: int = 80
    zoom_debounce_ms: int = 200

    # Export layout, all relative to the font size
    line_spacing: float = 1.2
    baseline_offset: float = 0.2
    highlight_padding: float = 0.1
    highlight_opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    default_wrap_fraction: float = Field(default=0.8, gt=0.0, le=1.0)

    # Default style for new annotations
    default_font_size: float = 14.0
    default_color: RGB = (0, 0, 0)
    default_highlight: Optional[RGB] = (255, 255, 0)
    placeholder_text: str = 'Edit me'

    # Overlay interaction, in screen pixels
    min_box_width: int = 30
    min_box_height: int = 20
    resize_handle_size: int = 10
    text_margin: int = 6


@lru_cache
def get_settings() -> Settings:
    return Settings()
