"""
Tier Analysis
Compares auxiliary scores and clinical groups across expression tiers of one cohort
"""

import os
import logging
from functools import reduce

from ..data_processing.cohort import score_column_names
from ..data_processing.utils import SAMPLE_ID, EXPRESSION, ER_STATUS, numeric_columns
from ..utils.shared_functions import save_results
from .differential import (
    differential_expression_design,
    write_cohort_membership,
    load_de_results,
    significant_genes,
)
from .plots import (
    plot_tier_boxplot,
    plot_subtype_tier_heatmap,
    plot_correlation_heatmap,
    plot_expression_by_subtype,
    plot_volcano,
)
from .statistics import compare_tiers, correlation_matrix, correlation_table

logger = logging.getLogger(__name__)


def merge_score_tables(score_tables):
    """Outer-join several per-sample score tables on sample_id."""
    if not score_tables:
        return None
    return reduce(lambda left, right: left.merge(right, on=SAMPLE_ID, how='outer'), score_tables)


class TierAnalysis:
    """Runs tier comparisons and figures for one cohort"""

    def __init__(self, cohort, output_dir):
        """Initialize the analysis with a built cohort and an output directory"""
        self.cohort = cohort
        self.output_dir = output_dir
        self.plots_dir = os.path.join(output_dir, 'plots')
        self.results_dir = os.path.join(output_dir, 'results')

        for directory in [self.output_dir, self.plots_dir, self.results_dir]:
            os.makedirs(directory, exist_ok=True)

    def _merge_scores(self, scores, score_columns=None):
        """Join scores onto the cohort and return the merged frame with the score column names it carries"""
        score_columns = numeric_columns(scores, score_columns, table_name='score')
        renames = score_column_names(score_columns)
        merged = self.cohort.with_scores(scores)
        return merged, [renames.get(c, c) for c in score_columns]

    def save_cohort(self):
        """Write the cohort table, quartile cuts and subtype x tier counts"""
        paths = {'cohort': save_results(self.cohort.frame, self.output_dir, 'cohort.tsv')}
        cuts = self.cohort.quartile_cuts
        if cuts is not None:
            paths['quartile_cuts'] = save_results(cuts, self.output_dir, 'quartile_cuts.tsv')
        paths['subtype_tier_counts'] = save_results(
            self.cohort.subtype_tier_table(), self.results_dir, 'subtype_tier_counts.tsv', index=True
        )
        return paths

    def plot_cohort_overview(self):
        """Subtype x tier heatmap and tier-gene expression by subtype"""
        if len(self.cohort) == 0:
            logger.warning("Cohort is empty, skipping overview plots")
            return []
        return [
            plot_subtype_tier_heatmap(self.cohort.subtype_tier_table(), self.plots_dir),
            plot_expression_by_subtype(self.cohort.frame, self.cohort.quartile_cuts, self.cohort.gene, self.plots_dir),
        ]

    def compare_scores(self, scores, score_columns=None, plot=True):
        """
        t-test every score column between tiers and save the table.

        Parameters:
        -----------
        scores : pd.DataFrame
            Per-sample scores keyed by sample_id
        score_columns : list, optional
            Numeric columns to compare (default: every numeric non-id column)
        plot : bool
            Also draw a tier boxplot per score

        Returns:
        --------
        pd.DataFrame
            One row per score and tier pair with t statistic, p-value and FDR
        """
        merged, score_columns = self._merge_scores(scores, score_columns)
        logger.info(f"Comparing {len(score_columns)} scores across tiers for {len(merged)} samples")

        results = compare_tiers(merged, score_columns)
        save_results(results, self.results_dir, 'tier_comparisons.tsv')
        if plot:
            for col in score_columns:
                if merged[col].notna().any():
                    plot_tier_boxplot(merged, col, self.plots_dir)
        return results

    def correlate_scores(self, scores, score_columns=None, plot=True):
        """Pearson correlations between the tier gene expression and score columns"""
        merged, score_columns = self._merge_scores(scores, score_columns)
        columns = [EXPRESSION] + list(score_columns)

        table = correlation_table(merged, columns)
        save_results(table, self.results_dir, 'score_correlations.tsv')
        if plot and len(merged) > 1:
            corr = correlation_matrix(merged, columns).rename(
                index={EXPRESSION: self.cohort.gene}, columns={EXPRESSION: self.cohort.gene}
            )
            plot_correlation_heatmap(corr, self.plots_dir)
        return table

    def export_de_design(self, receptor=ER_STATUS, exclude_subtypes=('Basal',)):
        """Write the High vs Low membership list for the differential-expression run"""
        membership = differential_expression_design(self.cohort, receptor=receptor, exclude_subtypes=exclude_subtypes)
        return write_cohort_membership(membership, self.output_dir)

    def summarize_de_results(self, path, padj_threshold=0.05, min_abs_effect=1.0, plot=True):
        """Read differential-expression results back and save the significant genes"""
        de = load_de_results(path)
        significant = significant_genes(de, padj_threshold=padj_threshold, min_abs_effect=min_abs_effect)
        logger.info(
            f"{len(significant)} of {len(de)} genes pass padj < {padj_threshold} and |effect| >= {min_abs_effect}"
        )
        save_results(significant, self.results_dir, 'de_significant_genes.tsv')
        if plot:
            plot_volcano(de, self.plots_dir, padj_threshold=padj_threshold, min_abs_effect=min_abs_effect)
        return significant
