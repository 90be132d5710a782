"""Site record loading from long-format CSV or Parquet tables."""
