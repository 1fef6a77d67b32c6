"""Meta Controller."""

from cogscore.meta.controller import RECOMMENDATIONS, ExpressionState, MetaController

__all__ = ["RECOMMENDATIONS", "ExpressionState", "MetaController"]
