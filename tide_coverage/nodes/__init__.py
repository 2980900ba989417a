from .coverage_planner_node import CoveragePlannerNode

__all__ = ["CoveragePlannerNode"]
