"""
Site Sales Forecaster — annual sales estimates for newly opened retail sites.

A first-order vector autoregression (VAR(1)) is fitted on a pool of
training sites, then walked forward from a short window of a new site's
early daily observations to reconstruct its full first year.

Packages
--------
var         Linear state-transition model, recursive forecaster, fitting.
backtest    Splicing, per-site evaluation, RMSE aggregation, reporting.
data        Site record loading (CSV / Parquet).
pipeline    Audited pipeline stages driven by the CLI.
"""

__version__ = "0.1.0"
