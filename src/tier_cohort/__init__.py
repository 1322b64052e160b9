"""
Source code for expression-tier cohort construction and analysis.

This package contains modules for loading clinical, subtype and RNA
expression tables, classifying samples into expression tiers, joining
them into an analysis cohort, and reporting group statistics on it.
"""

__version__ = "1.0.0"
