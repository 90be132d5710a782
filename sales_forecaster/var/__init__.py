"""
First-order vector autoregression as an explicit state-transition system.

Modules
-------
model       LinearTransitionModel — immutable (A, b) pair with apply().
forecaster  forecast() — recursive multi-step propagation from a seed.
fitting     Least-squares / statsmodels VAR(1) fitting on training sites.
"""
