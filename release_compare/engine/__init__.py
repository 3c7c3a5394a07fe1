"""Comparison engine: aggregation, ordering, persistence, and fetch orchestration."""

from .orchestrator import ComparisonEngine, EngineState, SupplementalCache
from .view import ViewModel, derive_view_model

__all__ = ["ComparisonEngine", "EngineState", "SupplementalCache", "ViewModel", "derive_view_model"]
