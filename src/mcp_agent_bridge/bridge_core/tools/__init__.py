from .models import ToolDescriptor, NormalizedCall, ToolEvent, StreamRecord
from .schema import SchemaValidator
from .normalizer import (
    Normalization,
    NormalizerRegistry,
    default_registry,
    single_field,
    no_argument,
    pass_through,
)
from .execution import ToolInvoker, ToolDispatcher

__all__ = [
    "ToolDescriptor",
    "NormalizedCall",
    "ToolEvent",
    "StreamRecord",
    "SchemaValidator",
    "Normalization",
    "NormalizerRegistry",
    "default_registry",
    "single_field",
    "no_argument",
    "pass_through",
    "ToolInvoker",
    "ToolDispatcher",
]
