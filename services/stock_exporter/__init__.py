"""Stock exporter service package."""
