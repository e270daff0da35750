"""
Error kinds raised by the graph analytics engine.
"""


class GraphAnalysisError(Exception):
    """Base exception for graph analysis."""


class AlgorithmNotImplementedError(GraphAnalysisError, ValueError):
    """Raised when an algorithm name is not one the engine supports."""


class InvalidGraphError(GraphAnalysisError, ValueError):
    """Raised when vertices/edges cannot form a valid snapshot."""
