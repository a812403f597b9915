"""Search query analysis.

Turns a free-text query into typed entities and compiles those into a
store-independent filter plan.
"""

from .compiler import compile_filter_plan
from .extractor import extract_entities

__all__ = ["compile_filter_plan", "extract_entities"]
