"""Domain records: site series and pipeline run metadata."""
