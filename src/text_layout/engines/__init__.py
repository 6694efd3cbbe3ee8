from .base import PageCounter, TextLayoutEngine
from .pdftotext_cli import PdftotextCliEngine
from .pypdfium2_pages import Pypdfium2PageCounter

__all__ = ["PageCounter", "TextLayoutEngine", "PdftotextCliEngine", "Pypdfium2PageCounter"]
