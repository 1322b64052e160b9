"""
Figures for the tier cohort: score boxplots by tier, subtype x tier
counts, correlation heatmaps, expression by subtype with quartile cuts,
and a volcano plot of differential-expression results.
"""

import logging
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from ..data_processing.cohort import TIER_ORDER
from ..data_processing.utils import TIER, SUBTYPE, EXPRESSION, QUARTILE
from ..utils.shared_functions import save_plot
from .statistics import compare_groups

logger = logging.getLogger(__name__)

TIER_PALETTE = {'Low': '#4575b4', 'Mid': '#bdbdbd', 'High': '#d73027'}


def plot_tier_boxplot(frame, value_col, output_dir, title=None):
    """Boxplot of `value_col` per tier, annotated with the High vs Low t-test."""
    order = [t for t in TIER_ORDER if t in set(frame[TIER])]
    fig, ax = plt.subplots(figsize=(6, 5))
    sns.boxplot(data=frame, x=TIER, y=value_col, order=order, hue=TIER,
                palette=TIER_PALETTE, showfliers=False, legend=False, ax=ax)
    sns.stripplot(data=frame, x=TIER, y=value_col, order=order,
                  color='black', size=2, alpha=0.5, ax=ax)

    test = compare_groups(frame, value_col, pairs=[('High', 'Low')]).iloc[0]
    if not np.isnan(test['p_value']):
        ax.text(0.05, 0.95, f"High vs Low p={test['p_value']:.3g}", transform=ax.transAxes,
                verticalalignment='top', bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

    ax.set_title(title or f'{value_col} by expression tier')
    ax.set_xlabel('Expression tier')
    ax.set_ylabel(value_col)
    return save_plot(fig, f'{value_col}_by_tier', output_dir)


def plot_subtype_tier_heatmap(table, output_dir, filename='subtype_tier_counts'):
    """Heatmap of sample counts per subtype and tier."""
    fig, ax = plt.subplots(figsize=(6, max(3, 0.6 * len(table))))
    sns.heatmap(table, annot=True, fmt='d', cmap='Blues', cbar=False, ax=ax)
    ax.set_xlabel('Expression tier')
    ax.set_ylabel('Subtype')
    ax.set_title('Samples per subtype and tier')
    return save_plot(fig, filename, output_dir)


def plot_correlation_heatmap(corr, output_dir, filename='correlation_heatmap'):
    """Annotated heatmap of a correlation matrix."""
    size = max(4, 0.8 * len(corr))
    fig, ax = plt.subplots(figsize=(size + 1, size))
    sns.heatmap(corr, annot=True, fmt='.2f', cmap='RdBu_r', vmin=-1, vmax=1, square=True, ax=ax)
    ax.set_title('Pearson correlation')
    return save_plot(fig, filename, output_dir)


def plot_expression_by_subtype(frame, cuts, gene, output_dir):
    """Expression of the tier gene per subtype with the quartile cut points drawn as lines."""
    fig, ax = plt.subplots(figsize=(8, 5))
    order = sorted(frame[SUBTYPE].unique())
    sns.boxplot(data=frame, x=SUBTYPE, y=EXPRESSION, order=order, color='white', showfliers=False, ax=ax)
    sns.stripplot(data=frame, x=SUBTYPE, y=EXPRESSION, order=order, hue=TIER,
                  hue_order=TIER_ORDER, palette=TIER_PALETTE, size=3, alpha=0.7, ax=ax)
    if cuts is not None:
        # the top quartile's max is the overall max, not a boundary
        for _, row in cuts.loc[cuts[QUARTILE] < cuts[QUARTILE].max()].iterrows():
            ax.axhline(row['cut'], color='grey', linestyle='--', linewidth=1)
    ax.set_title(f'{gene} expression by subtype')
    ax.set_ylabel(f'{gene} expression (z-score)')
    ax.set_xlabel('Subtype')
    return save_plot(fig, f'{gene}_expression_by_subtype', output_dir)


def plot_volcano(de, output_dir, padj_threshold=0.05, min_abs_effect=1.0, filename='de_volcano'):
    """Volcano plot of differential-expression results."""
    data = de.dropna(subset=['effect_size', 'padj']).copy()
    if data.empty:
        logger.warning('No differential expression results with effect size and adjusted p-value to plot')
        return None
    data['neg_log10_padj'] = -np.log10(data['padj'].clip(lower=np.finfo(float).tiny))
    significant = (data['padj'] < padj_threshold) & (data['effect_size'].abs() >= min_abs_effect)
    data['status'] = np.where(significant, np.where(data['effect_size'] > 0, 'Up', 'Down'), 'NS')

    fig, ax = plt.subplots(figsize=(7, 6))
    sns.scatterplot(data=data, x='effect_size', y='neg_log10_padj', hue='status',
                    palette={'Up': '#d73027', 'Down': '#4575b4', 'NS': '#bdbdbd'},
                    s=10, linewidth=0, ax=ax)
    ax.axhline(-np.log10(padj_threshold), color='grey', linestyle='--', linewidth=1)
    for x in (-min_abs_effect, min_abs_effect):
        ax.axvline(x, color='grey', linestyle='--', linewidth=1)
    ax.set_xlabel('log2 fold change (High vs Low)')
    ax.set_ylabel('-log10 adjusted p-value')
    ax.set_title('Differential expression')
    return save_plot(fig, filename, output_dir)
