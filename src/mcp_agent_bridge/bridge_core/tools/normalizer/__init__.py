"""Tool input normalization."""

from .rules import Normalization, Normalizer, single_field, no_argument, pass_through
from .registry import NormalizerEntry, NormalizerRegistry, default_registry

__all__ = [
    "Normalization",
    "Normalizer",
    "single_field",
    "no_argument",
    "pass_through",
    "NormalizerEntry",
    "NormalizerRegistry",
    "default_registry",
]
