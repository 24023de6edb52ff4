"""Document similarity, scaling and clustering walkthrough."""

__version__ = "0.1.0"
