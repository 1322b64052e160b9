"""
Shared Functions Module
Common utility functions used across multiple modules
"""

import os
import logging
from datetime import datetime

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from ..data_processing.utils import SAMPLE_ID, load_tsv, append_suffix, drop_missing_ids, numeric_columns

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(output_dir, log_level=logging.INFO):
    """
    Configure logging for a pipeline run.

    Args:
        output_dir (str): Directory to save the log file under (in logs/)
        log_level (int): Logging level (default: INFO)

    Returns:
        str: Path of the log file
    """
    log_dir = os.path.join(output_dir, 'logs')
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f'tier_cohort_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()  # Also output to console
        ],
        force=True
    )

    logger.info(f"Logging configured. Log file: {log_file}")
    return log_file


def save_results(df, output_dir, filename, index=False):
    """Save a DataFrame as a tab-separated file and return its path"""
    os.makedirs(output_dir, exist_ok=True)
    output_file = os.path.join(output_dir, filename)
    df.to_csv(output_file, sep='\t', index=index)
    logger.info(f"Saved results to {output_file}")
    return output_file


def save_plot(fig, filename, output_dir):
    """
    Save a matplotlib figure to the specified output directory

    Parameters:
    -----------
    fig : matplotlib.figure.Figure
        Figure to save
    filename : str
        Name of the file (without extension)
    output_dir : str
        Directory to save the plot

    Returns:
    --------
    str
        Path of the saved PNG
    """
    os.makedirs(output_dir, exist_ok=True)
    plot_path = os.path.join(output_dir, f"{filename}.png")
    try:
        fig.savefig(plot_path, dpi=300, bbox_inches='tight')
    finally:
        plt.close(fig)
    logger.info(f"Saved plot: {plot_path}")
    return plot_path


def load_score_table(path, id_column, score_columns=None, sample_suffix=''):
    """
    Load an auxiliary per-sample score table (proliferation, risk of
    recurrence, ...) keyed by sample_id.

    Parameters:
    -----------
    path : str
        Tab-separated score file
    id_column : str
        Column holding the sample or patient id
    score_columns : list, optional
        Score columns to keep (default: every numeric column)
    sample_suffix : str
        Appended to the id to match cohort sample ids

    Returns:
    --------
    pd.DataFrame
        sample_id plus the score columns
    """
    required = [id_column] + list(score_columns or [])
    scores = load_tsv(path, required_columns=required).rename(columns={id_column: SAMPLE_ID})
    score_columns = numeric_columns(scores, score_columns, table_name=os.path.basename(str(path)))
    scores = scores[[SAMPLE_ID] + score_columns].copy()
    scores[SAMPLE_ID] = append_suffix(scores[SAMPLE_ID], sample_suffix)
    scores = drop_missing_ids(scores, os.path.basename(str(path)))
    logger.info(f"Loaded {len(score_columns)} score columns for {len(scores)} samples from {path}")
    return scores
