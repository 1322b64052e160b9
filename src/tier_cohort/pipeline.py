"""
Tier Cohort Pipeline
Builds the expression-tier cohort from the input tables and runs the reporting steps
"""

import sys
import argparse
import logging
import traceback

from .data_processing import build_cohort_from_files, CohortPipelineError
from .tier_analysis import TierAnalysis, merge_score_tables
from .utils import configure_logging, load_score_table

logger = logging.getLogger(__name__)


def parse_score_arg(value):
    """Parse a PATH:ID_COLUMN[:SUFFIX] score table argument."""
    parts = value.split(':')
    if len(parts) not in (2, 3) or not all(parts[:2]):
        raise argparse.ArgumentTypeError(f"Expected PATH:ID_COLUMN[:SUFFIX], got {value!r}")
    path, id_column = parts[0], parts[1]
    suffix = parts[2] if len(parts) == 3 else ''
    return path, id_column, suffix


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Build an expression-tier cohort and compare tiers')

    # Inputs
    parser.add_argument('--clinical', required=True,
                        help='Clinical table with ER/PR/HER2 status (TSV)')
    parser.add_argument('--subtype', required=True,
                        help='Subtype table with a leading header block (TSV)')
    parser.add_argument('--expression', required=True,
                        help='Gene x sample expression matrix (TSV)')
    parser.add_argument('--gene', required=True,
                        help='Gene symbol used to assign expression tiers')
    parser.add_argument('--output-dir', default='output/tier_cohort',
                        help='Directory for tables, plots and logs')

    # Reporting options
    parser.add_argument('--scores', action='append', type=parse_score_arg, default=[],
                        metavar='PATH:ID_COLUMN[:SUFFIX]',
                        help='Auxiliary score table to compare across tiers (repeatable)')
    parser.add_argument('--de-results', default=None,
                        help='Differential-expression result table to read back')
    parser.add_argument('--de-receptor', default='er_status',
                        choices=['er_status', 'pr_status', 'her2_status'],
                        help='Receptor that must be Positive in the differential-expression design')
    parser.add_argument('--no-plots', action='store_true',
                        help='Skip figure generation')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')

    return parser.parse_args(argv)


def run(args):
    """Run the pipeline end to end and return the built cohort."""
    cohort = build_cohort_from_files(args.clinical, args.subtype, args.expression, args.gene)

    analysis = TierAnalysis(cohort, args.output_dir)
    analysis.save_cohort()
    analysis.export_de_design(receptor=args.de_receptor)
    if not args.no_plots:
        analysis.plot_cohort_overview()

    score_tables = [
        load_score_table(path, id_column, sample_suffix=suffix)
        for path, id_column, suffix in args.scores
    ]
    scores = merge_score_tables(score_tables)
    if scores is not None:
        analysis.compare_scores(scores, plot=not args.no_plots)
        analysis.correlate_scores(scores, plot=not args.no_plots)

    if args.de_results:
        analysis.summarize_de_results(args.de_results, plot=not args.no_plots)

    return cohort


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.output_dir, log_level=getattr(logging, args.log_level))
    logger.info(f"Building {args.gene} tier cohort")

    try:
        cohort = run(args)
    except CohortPipelineError as e:
        logger.error(f"Pipeline failed: {e}")
        logger.debug(traceback.format_exc())
        return 1

    logger.info(f"Tier cohort analysis complete: {len(cohort)} samples written to {args.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
