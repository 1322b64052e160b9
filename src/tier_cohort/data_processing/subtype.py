import logging
import pandas as pd

from .records import SubtypeRecord
from .utils import CONFIG, SAMPLE_ID, SUBTYPE, load_tsv, append_suffix, blank_to_missing, normalize_subtype, drop_missing_ids

logger = logging.getLogger(__name__)


def load_subtype_table(path: str, columns: dict = None, skiprows: int = None, sample_suffix: str = None) -> pd.DataFrame:
    """
    Load the subtype table, skipping its leading header block, and return
    (sample_id, subtype) rows. Blank subtypes are kept as NaN here; the
    cohort builder drops them.
    """
    cfg = CONFIG['subtype']
    columns = columns or cfg['columns']
    skiprows = cfg['skiprows'] if skiprows is None else skiprows
    sample_suffix = cfg['sample_suffix'] if sample_suffix is None else sample_suffix

    df = load_tsv(path, required_columns=list(columns), skiprows=skiprows)
    df = df.rename(columns=columns)[[SAMPLE_ID, SUBTYPE]].copy()
    df[SAMPLE_ID] = append_suffix(df[SAMPLE_ID], sample_suffix)
    df[SUBTYPE] = blank_to_missing(df[SUBTYPE]).map(normalize_subtype)
    df = drop_missing_ids(df, 'subtype')

    logger.info(f"Loaded subtypes for {len(df)} samples: {df[SUBTYPE].value_counts(dropna=False).to_dict()}")
    return df


def load_subtype_records(path: str, **kwargs) -> dict:
    """Load the subtype table as a mapping of sample id to SubtypeRecord."""
    df = load_subtype_table(path, **kwargs)
    return {row[SAMPLE_ID]: SubtypeRecord.from_row(row) for _, row in df.iterrows()}
