"""forcediagram - force-directed node-link diagrams with labelled links."""

__version__ = "0.1.0"

from .diagram import Diagram, DiagramState
from .errors import ConstructionError, DiagramError, LoadError

__all__ = [
    "__version__",
    "Diagram",
    "DiagramState",
    "DiagramError",
    "LoadError",
    "ConstructionError",
]
