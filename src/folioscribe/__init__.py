"""Folioscribe: provenance-tracked portfolio composition with live template preview."""

__version__ = "0.1.0"
