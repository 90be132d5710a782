"""Audited pipeline stages (fit, backtest) driven by the CLI."""
