import logging
import numpy as np
import pandas as pd

from .exceptions import MalformedInputError

logger = logging.getLogger(__name__)

# Canonical column names shared by every table in the pipeline
SAMPLE_ID = 'sample_id'
ER_STATUS = 'er_status'
PR_STATUS = 'pr_status'
HER2_STATUS = 'her2_status'
TNBC = 'tnbc'
SUBTYPE = 'subtype'
GENE = 'gene'
EXPRESSION = 'expression'
QUARTILE = 'quartile'
TIER = 'tier'

RECEPTOR_COLUMNS = [ER_STATUS, PR_STATUS, HER2_STATUS]

# TCGA placeholders that mean "no value recorded"
MISSING_MARKERS = ['[Not Available]', '[Not Applicable]', '[Not Evaluated]', '[Unknown]']

# Configuration dictionary for source column names and sample id alignment
CONFIG = {
    'clinical': {
        'columns': {
            'bcr_patient_barcode': SAMPLE_ID,
            'er_status_by_ihc': ER_STATUS,
            'pr_status_by_ihc': PR_STATUS,
            'her2_status_by_ihc': HER2_STATUS,
        },
        'sample_suffix': '-01A',
    },
    'subtype': {
        'columns': {'PATIENT_ID': SAMPLE_ID, 'SUBTYPE': SUBTYPE},
        'skiprows': 4,
        'sample_suffix': '-01A',
    },
    'expression': {
        'gene_column': 'Hugo_Symbol',
        'annotation_columns': ['Entrez_Gene_Id'],
        'sample_suffix': 'A',
    },
    'de_results': {
        'effect_column': 'log2FoldChange',
        'padj_column': 'padj',
    },
}

SUBTYPE_ALIASES = {
    'luma': 'LuminalA',
    'luminala': 'LuminalA',
    'lumb': 'LuminalB',
    'luminalb': 'LuminalB',
    'basal': 'Basal',
    'basallike': 'Basal',
    'her2': 'Her2',
    'her2enriched': 'Her2',
    'normal': 'Normal',
    'normallike': 'Normal',
}


def load_tsv(path, required_columns=None, skiprows=0, **read_kwargs) -> pd.DataFrame:
    """
    Load a tab-separated file and log the process. Optionally check for required columns.

    Args:
        path (str): Path to the TSV file.
        required_columns (list, optional): Column names that must be present.
        skiprows (int): Number of leading non-data lines to skip.

    Returns:
        pd.DataFrame: Loaded DataFrame.

    Raises:
        MalformedInputError: If the file cannot be parsed or required columns are missing.
    """
    try:
        df = pd.read_csv(
            path,
            sep='\t',
            encoding='utf-8-sig',
            skiprows=skiprows,
            na_values=MISSING_MARKERS,
            **read_kwargs
        )
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Error loading {path}: {e}")
        raise MalformedInputError(f"Could not read {path}: {e}") from e

    logger.info(f"Loaded {path} with shape {df.shape}")
    if required_columns:
        missing_cols = [col for col in required_columns if col not in df.columns]
        if missing_cols:
            logger.error(f"{path} is missing required columns {missing_cols}; found {df.columns.tolist()}")
            raise MalformedInputError(f"{path} is missing required columns: {missing_cols}")
    return df


def blank_to_missing(values: pd.Series) -> pd.Series:
    """Strip string values and turn empty strings into NaN."""
    def _clean(value):
        if pd.isna(value):
            return np.nan
        value = str(value).strip()
        return value if value else np.nan
    return values.map(_clean)


def append_suffix(ids: pd.Series, suffix: str) -> pd.Series:
    """Append `suffix` to every present id, e.g. 'TCGA-A1-A0SB' -> 'TCGA-A1-A0SB-01A'."""
    return blank_to_missing(ids).map(lambda x: x if pd.isna(x) else f"{x}{suffix}")


def normalize_subtype(label):
    """Map source subtype labels ('BRCA_LumA', 'LumA', 'Basal-like') onto canonical names."""
    if pd.isna(label):
        return np.nan
    key = str(label).strip()
    if key.upper().startswith('BRCA_'):
        key = key[len('BRCA_'):]
    key = key.replace('-', '').replace('_', '').replace(' ', '').lower()
    return SUBTYPE_ALIASES.get(key, str(label).strip())


def drop_missing_ids(df: pd.DataFrame, table_name: str) -> pd.DataFrame:
    """Drop rows without a sample id and keep the first row of duplicated ids."""
    missing = df[SAMPLE_ID].isna()
    if missing.any():
        logger.warning(f"Dropping {missing.sum()} {table_name} rows without a sample id")
    df = df.loc[~missing]
    duplicated = df[SAMPLE_ID].duplicated(keep='first')
    if duplicated.any():
        logger.warning(
            f"Found {duplicated.sum()} duplicated sample ids in {table_name} table, keeping first: "
            f"{df.loc[duplicated, SAMPLE_ID].tolist()[:5]}"
        )
    return df.loc[~duplicated].reset_index(drop=True)


def numeric_columns(df: pd.DataFrame, columns=None, table_name: str = 'input') -> list:
    """
    Columns of `df` usable as numeric scores.

    Named columns must all be numeric; without names every numeric column
    other than sample_id is returned and text columns are skipped.
    """
    if columns is None:
        candidates = [c for c in df.columns if c != SAMPLE_ID]
        numeric = [c for c in candidates if pd.api.types.is_numeric_dtype(df[c])]
        skipped = [c for c in candidates if c not in numeric]
        if skipped:
            logger.info(f"Skipping non-numeric {table_name} columns: {skipped}")
        return numeric

    columns = list(columns)
    non_numeric = [c for c in columns if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        logger.error(f"Non-numeric score columns in {table_name}: {non_numeric}")
        raise MalformedInputError(f"{table_name} has non-numeric score columns: {non_numeric}")
    return columns
