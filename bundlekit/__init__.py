"""Layered configuration, build staging and hook running for web application bundles."""

__version__ = "0.1.0"