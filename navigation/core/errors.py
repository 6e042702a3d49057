"""Navigation error taxonomy"""


class NavigationError(Exception):
    """Base class for navigation core errors"""
    pass


class UncalibratedError(NavigationError):
    """Raised when a position is requested before an anchor has been set"""
    pass


class GraphInvariantError(NavigationError, ValueError):
    """Raised when a graph violates a construction invariant (e.g. negative edge cost)"""
    pass
