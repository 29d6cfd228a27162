"""Service modules"""
from .reporter import SettlementReporter
from .simulation import Simulation

__all__ = ["SettlementReporter", "Simulation"]
