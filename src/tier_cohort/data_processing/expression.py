"""
Expression Loading and Tier Classification
==========================================
Loads a gene x sample expression matrix (values already z-scored upstream),
reshapes it to long form and assigns each sample a quartile rank and
expression tier for one gene of interest.

Quartile rule: non-missing values are stable-sorted ascending, so tied
values keep their input (matrix column) order, and the sorted run is cut
into four consecutive groups whose sizes differ by at most one, the extra
samples going to the lowest quartiles first. A tie that straddles a group
boundary is therefore split, and the later tied samples land in the higher
quartile.
"""

import logging
import numpy as np
import pandas as pd

from .exceptions import DegenerateQuantileError, MalformedInputError
from .records import ExpressionObservation, ExpressionTier
from .utils import CONFIG, SAMPLE_ID, GENE, EXPRESSION, QUARTILE, TIER, load_tsv, append_suffix, blank_to_missing

logger = logging.getLogger(__name__)

N_QUARTILES = 4


def load_expression_matrix(path: str, gene_column: str = None, annotation_columns: list = None) -> pd.DataFrame:
    """
    Load the expression matrix as a DataFrame indexed by gene symbol with
    one column per sample. Rows without a gene symbol are dropped.

    Raises:
        MalformedInputError: If the gene column is missing or a sample column is not numeric.
    """
    cfg = CONFIG['expression']
    gene_column = gene_column or cfg['gene_column']
    annotation_columns = cfg['annotation_columns'] if annotation_columns is None else annotation_columns

    df = load_tsv(path, required_columns=[gene_column])
    df = df.drop(columns=[c for c in annotation_columns if c in df.columns])
    df[gene_column] = blank_to_missing(df[gene_column])

    n_missing = df[gene_column].isna().sum()
    if n_missing:
        logger.info(f"Dropping {n_missing} expression rows without a gene symbol")
    df = df.dropna(subset=[gene_column]).set_index(gene_column)
    df.index.name = GENE

    non_numeric = [col for col in df.columns if not pd.api.types.is_numeric_dtype(df[col])]
    if non_numeric:
        logger.error(f"Non-numeric sample columns in {path}: {non_numeric[:5]}")
        raise MalformedInputError(f"{path} has non-numeric expression columns: {non_numeric}")

    logger.info(f"Loaded expression matrix with {df.shape[0]} genes and {df.shape[1]} samples")
    return df


def melt_expression(matrix: pd.DataFrame, sample_suffix: str = None) -> pd.DataFrame:
    """Reshape a gene x sample matrix into (sample_id, gene, expression) rows."""
    sample_suffix = CONFIG['expression']['sample_suffix'] if sample_suffix is None else sample_suffix
    long_expr = (
        matrix
        .rename_axis(GENE)
        .reset_index()
        .melt(id_vars=GENE, var_name=SAMPLE_ID, value_name=EXPRESSION)
    )
    long_expr[SAMPLE_ID] = append_suffix(long_expr[SAMPLE_ID], sample_suffix)
    return long_expr[[SAMPLE_ID, GENE, EXPRESSION]]


def expression_observations(long_expr: pd.DataFrame, gene: str = None) -> list:
    """Row-level view of long-form expression, optionally for one gene."""
    if gene is not None:
        long_expr = long_expr.loc[long_expr[GENE] == gene]
    return [
        ExpressionObservation(sample_id=row[SAMPLE_ID], gene=row[GENE], value=float(row[EXPRESSION]))
        for _, row in long_expr.dropna(subset=[EXPRESSION]).iterrows()
    ]


def assign_quartiles(values: pd.Series) -> pd.Series:
    """
    Rank non-missing values into quartiles 1 (lowest) to 4.

    Returns a Series of ints indexed like the non-missing entries of `values`.

    Raises:
        DegenerateQuantileError: If fewer than four non-missing values are given.
    """
    present = values.dropna()
    n = len(present)
    if n < N_QUARTILES:
        raise DegenerateQuantileError(
            f"Need at least {N_QUARTILES} non-missing expression values for quartile binning, got {n}"
        )

    order = np.argsort(present.to_numpy(dtype=float), kind='stable')
    base, remainder = divmod(n, N_QUARTILES)
    sizes = [base + (1 if q < remainder else 0) for q in range(N_QUARTILES)]

    ranks = np.empty(n, dtype=int)
    ranks[order] = np.repeat(np.arange(1, N_QUARTILES + 1), sizes)
    return pd.Series(ranks, index=present.index, name=QUARTILE)


def tier_for_quartile(quartile: int) -> ExpressionTier:
    return ExpressionTier.from_quartile(int(quartile))


def classify_gene(long_expr: pd.DataFrame, gene: str) -> pd.DataFrame:
    """
    Assign every sample holding a value for `gene` a quartile and tier.

    Returns:
        pd.DataFrame: sample_id, gene, expression, quartile, tier
    """
    rows = long_expr.loc[long_expr[GENE] == gene]
    if rows.empty:
        raise MalformedInputError(f"Gene {gene!r} not found in expression data")

    rows = rows.dropna(subset=[SAMPLE_ID, EXPRESSION])
    duplicated = rows[SAMPLE_ID].duplicated(keep='first')
    if duplicated.any():
        logger.warning(f"Gene {gene} has {duplicated.sum()} duplicate values per sample, keeping the first row")
        rows = rows.loc[~duplicated]
    rows = rows.reset_index(drop=True)

    classified = rows[[SAMPLE_ID, GENE, EXPRESSION]].copy()
    classified[QUARTILE] = assign_quartiles(classified[EXPRESSION])
    classified[TIER] = classified[QUARTILE].map(lambda q: tier_for_quartile(q).value)

    logger.info(f"Classified {len(classified)} samples by {gene}: {classified[TIER].value_counts().to_dict()}")
    return classified


def quartile_cuts(classified: pd.DataFrame) -> pd.DataFrame:
    """
    Highest expression value within each quartile rank, used as tier
    boundaries when drawing figures.

    Returns:
        pd.DataFrame: quartile, tier, n_samples, cut
    """
    grouped = classified.groupby(QUARTILE)[EXPRESSION]
    cuts = pd.DataFrame({
        'n_samples': grouped.size(),
        'cut': grouped.max(),
    }).reset_index()
    cuts.insert(1, TIER, cuts[QUARTILE].map(lambda q: tier_for_quartile(q).value))
    return cuts


def classify_expression_file(path: str, gene: str, sample_suffix: str = None, **load_kwargs) -> pd.DataFrame:
    """Load an expression matrix and classify `gene` in one step."""
    matrix = load_expression_matrix(path, **load_kwargs)
    if gene not in matrix.index:
        raise MalformedInputError(f"Gene {gene!r} not found in {path}")
    return classify_gene(melt_expression(matrix.loc[[gene]], sample_suffix=sample_suffix), gene)
