"""
Walk-forward backtesting of the VAR(1) annual-sales forecaster.

Modules
-------
partition   Seeded train/test split of sites.
splice      Known-prefix + forecast-suffix reconstruction of a site's year.
metrics     Annual sums, SiteResult, RMSE / MAE / MAPE per (series, window).
evaluator   Map sites → SiteResult (optionally in parallel), reduce to RMSE.
reporter    Write CSV summaries and a JSON manifest.
"""
