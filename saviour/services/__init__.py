"""Service modules"""
from .bootstrap import build_engine
from .rescue_engine import RescueEngine, compute_required_collateral
from .scenario import run_scenario

__all__ = ["RescueEngine", "build_engine", "compute_required_collateral", "run_scenario"]
