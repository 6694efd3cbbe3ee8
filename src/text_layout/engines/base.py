from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..contracts import PageMarkup, TextLayoutConfig


class TextLayoutEngine(ABC):
    """
    Interface for positioned-markup backends.

    IMPORTANT:
    - Engines return the backend's markup as-is (bytes), one page per call.
    - Engines must NOT reconstruct, reorder or clean up lines; that is done downstream.
    """

    @abstractmethod
    def render_page_markup(self, *, config: TextLayoutConfig, pdf_file: Path, page_num: int) -> PageMarkup:
        raise NotImplementedError


class PageCounter(ABC):
    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def get_page_count(self, *, pdf_file: Path) -> int:
        raise NotImplementedError
