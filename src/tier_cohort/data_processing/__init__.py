"""
Data Processing module for clinical, subtype and expression data integration.

This package provides utilities for:
- Loading clinical receptor status and deriving triple-negative status
- Loading tumor subtype labels
- Classifying samples into expression tiers for a gene of interest
- Joining the three into the analysis cohort
"""

from .clinical import load_clinical_table, load_sample_records, derive_tnbc
from .subtype import load_subtype_table, load_subtype_records
from .expression import (
    load_expression_matrix,
    melt_expression,
    expression_observations,
    assign_quartiles,
    classify_gene,
    classify_expression_file,
    quartile_cuts,
)
from .cohort import Cohort, build_cohort, build_cohort_from_files
from .exceptions import CohortPipelineError, MalformedInputError, DegenerateQuantileError
from .records import ReceptorStatus, ExpressionTier, SampleRecord, SubtypeRecord, ExpressionObservation, CohortEntry
