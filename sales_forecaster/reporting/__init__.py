"""
sales_forecaster.reporting — terminal formatting for CLI commands.

Modules:
  formatters — ASCII tables for RMSE summaries, coefficients and projections.
"""
