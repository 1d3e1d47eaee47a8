"""Business metrics, KPI and dashboard tracker."""

__version__ = "0.1.0"
