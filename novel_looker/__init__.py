"""Reading core for web novels: chapter data types, a three-chapter buffer and fuzzy TOC filtering."""

__version__ = "0.1.0"
__all__ = ["__version__"]