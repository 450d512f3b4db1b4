"""Screen routing. The graph lives in ``navigation.graph``."""

from .controller import NavigationController, Route, Screen

__all__ = ["NavigationController", "Route", "Screen"]
