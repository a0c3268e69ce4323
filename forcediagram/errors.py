"""Error types raised while loading and building a diagram."""


class DiagramError(Exception):
    """Base class for diagram load failures."""


class LoadError(DiagramError):
    """The JSON description could not be fetched or parsed."""


class ConstructionError(DiagramError):
    """Nodes, links or groups could not be built from the loaded data."""
