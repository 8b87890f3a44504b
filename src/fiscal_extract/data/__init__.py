"""Synthetic data utilities for fiscal extraction."""

from .synthetic import SyntheticInvoice, SyntheticInvoiceGenerator, SyntheticLineItem

__all__ = [
    "SyntheticInvoiceGenerator",
    "SyntheticInvoice",
    "SyntheticLineItem",
]
