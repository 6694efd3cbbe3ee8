from .base import TableEngine
from .tabula_cli import TabulaCliEngine

__all__ = ["TableEngine", "TabulaCliEngine"]
