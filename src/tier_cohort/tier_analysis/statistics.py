"""
Group statistics on the cohort: two-sample t-tests between tiers (or any
grouping column) and pairwise Pearson correlations, with Benjamini-Hochberg
FDR across the tests of one call.
"""

import itertools
import logging
import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.multitest import multipletests

from ..data_processing.utils import TIER

logger = logging.getLogger(__name__)

TIER_PAIRS = [('High', 'Low'), ('High', 'Mid'), ('Mid', 'Low')]
COMPARISON_COLUMNS = [
    'value', 'group_a', 'group_b', 'n_a', 'n_b',
    'mean_a', 'mean_b', 'diff', 't_statistic', 'p_value',
]


def add_fdr(results, p_column='p_value', fdr_column='fdr'):
    """Benjamini-Hochberg adjust the non-missing p-values of a results table in place."""
    results[fdr_column] = np.nan
    valid = results[p_column].notna()
    if valid.any():
        results.loc[valid, fdr_column] = multipletests(results.loc[valid, p_column], method='fdr_bh')[1]
    return results


def compare_groups(frame, value_col, group_col=TIER, pairs=None, min_samples=2):
    """
    Two-sample t-test of `value_col` for each pair of groups in `group_col`.

    Pairs with fewer than `min_samples` values on either side are reported
    with NaN statistics.
    """
    groups = {name: grp[value_col].dropna() for name, grp in frame.groupby(group_col)}
    if pairs is None:
        pairs = list(itertools.combinations(sorted(groups), 2))

    rows = []
    empty = pd.Series(dtype=float)
    for group_a, group_b in pairs:
        a = groups.get(group_a, empty)
        b = groups.get(group_b, empty)
        if len(a) < min_samples or len(b) < min_samples:
            logger.warning(f"Too few samples to compare {value_col} between {group_a} (n={len(a)}) and {group_b} (n={len(b)})")
            t_stat, p_val = np.nan, np.nan
        else:
            t_stat, p_val = stats.ttest_ind(a, b)
        rows.append({
            'value': value_col,
            'group_a': group_a,
            'group_b': group_b,
            'n_a': len(a),
            'n_b': len(b),
            'mean_a': a.mean() if len(a) else np.nan,
            'mean_b': b.mean() if len(b) else np.nan,
            'diff': (a.mean() - b.mean()) if len(a) and len(b) else np.nan,
            't_statistic': t_stat,
            'p_value': p_val,
        })

    return add_fdr(pd.DataFrame(rows, columns=COMPARISON_COLUMNS))


def compare_tiers(frame, value_cols, pairs=None):
    """Compare every value column between High/Low, High/Mid and Mid/Low tiers."""
    pairs = pairs or TIER_PAIRS
    if not value_cols:
        return pd.DataFrame(columns=COMPARISON_COLUMNS + ['fdr'])
    results = pd.concat(
        [compare_groups(frame, col, group_col=TIER, pairs=pairs) for col in value_cols],
        ignore_index=True
    )
    return add_fdr(results)


def correlation_matrix(frame, columns, method='pearson'):
    """Pairwise correlation matrix of `columns`."""
    return frame[list(columns)].corr(method=method)


def correlation_table(frame, columns, min_samples=3):
    """Pearson r and p-value for every pair of `columns`, using pairwise complete rows."""
    rows = []
    for col_a, col_b in itertools.combinations(columns, 2):
        pair = frame[[col_a, col_b]].dropna()
        if len(pair) < min_samples:
            r, p_val = np.nan, np.nan
        else:
            r, p_val = stats.pearsonr(pair[col_a], pair[col_b])
        rows.append({'var_a': col_a, 'var_b': col_b, 'n': len(pair), 'r': r, 'p_value': p_val})
    return add_fdr(pd.DataFrame(rows, columns=['var_a', 'var_b', 'n', 'r', 'p_value']))
