"""Jira health scoring and confidence-aggregation engine.

Turns per-indicator Jira measurements into maturity levels, composite health
scores (CSS + TRS + PGS), outcome confidence and executive summaries.
"""

__version__ = "0.1.0"
