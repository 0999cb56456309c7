"""Financial report generation: period resolution, aggregation, and export."""

__version__ = "0.1.0"
