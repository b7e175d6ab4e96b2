"""blackline — permanent, rasterizing PDF redaction."""

__version__ = "0.1.0"
