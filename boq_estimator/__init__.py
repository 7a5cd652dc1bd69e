"""BOQ Estimator - prices Bills of Quantities against a rate catalog with AI fallback."""

__version__ = "1.0.0"
