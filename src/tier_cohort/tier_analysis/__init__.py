"""
Tier Analysis module for reporting on a built expression-tier cohort.

This package provides:
- t-tests and correlations of auxiliary scores across expression tiers
- The High vs Low membership list for an offline differential-expression run
- Read-back and thresholding of differential-expression results
- Cohort overview figures
"""

from .statistics import compare_groups, compare_tiers, correlation_table, correlation_matrix
from .differential import differential_expression_design, load_de_results, significant_genes
from .tier_analysis import TierAnalysis, merge_score_tables
