"""
fintrack - Source Package

The aggregation and currency conversion core of a personal-finance tracker.

DESIGN PRINCIPLES:
1. Connectivity never blocks a dashboard refresh
2. Degraded accuracy is visible, never hidden
3. Aggregation is a pure function of the ledger and the rate cache
4. Every rate decision is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "fintrack Team"
