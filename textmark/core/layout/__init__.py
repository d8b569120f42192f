"""
Text layout for annotations.
"""
from .text_wrap import EXPORT_FONT, FontMetrics, break_long_word, helvetica_metrics, widest_line, wrap

__all__ = ['EXPORT_FONT', 'FontMetrics', 'break_long_word', 'helvetica_metrics', 'widest_line', 'wrap']
