"""
Hand-off to the offline differential-expression run: export the High vs
Low membership list and read the flat result file back.
"""

import logging
import numpy as np
import pandas as pd

from ..data_processing.exceptions import MalformedInputError
from ..data_processing.utils import (
    CONFIG, SAMPLE_ID, TIER, ER_STATUS, PR_STATUS, HER2_STATUS, TNBC, SUBTYPE, load_tsv,
)
from ..utils.shared_functions import save_results

logger = logging.getLogger(__name__)

MEMBERSHIP_COLUMNS = [SAMPLE_ID, TIER, ER_STATUS, PR_STATUS, HER2_STATUS, TNBC, SUBTYPE]


def differential_expression_design(cohort, receptor=ER_STATUS, exclude_subtypes=('Basal',), tiers=('High', 'Low')):
    """
    Membership table for the High vs Low contrast, restricted to
    receptor-positive samples outside the excluded subtypes.
    """
    design = cohort.subset(tiers=tiers, exclude_subtypes=exclude_subtypes, positive_for=receptor)
    membership = design.frame[MEMBERSHIP_COLUMNS]
    logger.info(
        f"Differential expression design ({receptor} positive, excluding {list(exclude_subtypes)}): "
        f"{membership[TIER].value_counts().to_dict()}"
    )
    return membership


def write_cohort_membership(membership, output_dir, filename='de_membership.tsv'):
    return save_results(membership, output_dir, filename)


def load_de_results(path, gene_column=None, effect_column=None, padj_column=None):
    """
    Read a DESeq2-style result table as gene, effect_size, padj (plus pvalue
    when present), sorted by adjusted p-value. When `gene_column` is not
    given the first column is used, which covers R row names written
    without a header.
    """
    cfg = CONFIG['de_results']
    effect_column = effect_column or cfg['effect_column']
    padj_column = padj_column or cfg['padj_column']

    de = load_tsv(path, required_columns=[effect_column, padj_column])
    gene_column = gene_column or de.columns[0]
    if gene_column not in de.columns:
        raise MalformedInputError(f"{path} has no gene column {gene_column!r}")

    result = pd.DataFrame({
        'gene': de[gene_column],
        'effect_size': pd.to_numeric(de[effect_column], errors='coerce'),
        'padj': pd.to_numeric(de[padj_column], errors='coerce'),
    })
    if 'pvalue' in de.columns:
        result['pvalue'] = pd.to_numeric(de['pvalue'], errors='coerce')
    result = result.dropna(subset=['gene'])
    logger.info(f"Loaded differential expression results for {len(result)} genes from {path}")
    return result.sort_values('padj', na_position='last').reset_index(drop=True)


def significant_genes(de, padj_threshold=0.05, min_abs_effect=1.0):
    """Genes passing both thresholds, labelled Up or Down by effect sign."""
    mask = (de['padj'] < padj_threshold) & (de['effect_size'].abs() >= min_abs_effect)
    significant = de.loc[mask].copy()
    significant['direction'] = np.where(significant['effect_size'] > 0, 'Up', 'Down')
    return significant.reset_index(drop=True)
