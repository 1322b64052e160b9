import logging
import numpy as np
import pandas as pd

from .records import ReceptorStatus, SampleRecord
from .utils import (
    CONFIG, SAMPLE_ID, RECEPTOR_COLUMNS, ER_STATUS, PR_STATUS, HER2_STATUS, TNBC,
    load_tsv, append_suffix, drop_missing_ids,
)

logger = logging.getLogger(__name__)


def normalize_receptor_status(values: pd.Series) -> pd.Series:
    """Keep exact Positive/Negative, leave missing as NaN, everything else is Indeterminate."""
    return values.map(lambda x: np.nan if pd.isna(x) else ReceptorStatus.parse(x).value)


def derive_tnbc(df: pd.DataFrame) -> pd.Series:
    """
    Triple-negative status: ER, PR and HER2 all exactly 'Negative'.
    A missing or indeterminate value in any of the three gives False.
    """
    negative = ReceptorStatus.NEGATIVE.value
    return (
        (df[ER_STATUS] == negative)
        & (df[PR_STATUS] == negative)
        & (df[HER2_STATUS] == negative)
    )


def load_clinical_table(path: str, columns: dict = None, sample_suffix: str = None) -> pd.DataFrame:
    """
    Load the clinical annotation table and return one row per sample with
    columns sample_id, er_status, pr_status, her2_status and tnbc.

    `columns` maps source column names onto the canonical names; the sample
    id gets `sample_suffix` appended so it lines up with expression sample ids.
    """
    columns = columns or CONFIG['clinical']['columns']
    sample_suffix = CONFIG['clinical']['sample_suffix'] if sample_suffix is None else sample_suffix

    df = load_tsv(path, required_columns=list(columns))
    df = df.rename(columns=columns)[[SAMPLE_ID] + RECEPTOR_COLUMNS].copy()
    df[SAMPLE_ID] = append_suffix(df[SAMPLE_ID], sample_suffix)
    for col in RECEPTOR_COLUMNS:
        df[col] = normalize_receptor_status(df[col])
    df = drop_missing_ids(df, 'clinical')
    df[TNBC] = derive_tnbc(df)

    logger.info(f"Loaded clinical data for {len(df)} samples ({int(df[TNBC].sum())} TNBC)")
    return df


def load_sample_records(path: str, **kwargs) -> dict:
    """Load the clinical table as a mapping of sample id to SampleRecord."""
    df = load_clinical_table(path, **kwargs)
    return {row[SAMPLE_ID]: SampleRecord.from_row(row) for _, row in df.iterrows()}
