"""MongoDB constraint compilers, one module per operator family."""

from __future__ import annotations

from .comparison import coerce_date, compile_comparison
from .set import compile_set
from .string import compile_string

__all__ = [
    "coerce_date",
    "compile_comparison",
    "compile_set",
    "compile_string",
]
