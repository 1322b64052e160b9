"""
Cohort Builder
==============
Joins clinical receptor status, tumor subtype and the gene-of-interest
expression tier on sample id. The resulting Cohort is the single table
every downstream comparison and figure is drawn from.
"""

import logging
import pandas as pd

from .clinical import load_clinical_table
from .expression import classify_expression_file, quartile_cuts
from .records import CohortEntry, ExpressionTier, ReceptorStatus
from .subtype import load_subtype_table
from .utils import (
    SAMPLE_ID, ER_STATUS, PR_STATUS, HER2_STATUS, TNBC, SUBTYPE,
    GENE, EXPRESSION, QUARTILE, TIER, RECEPTOR_COLUMNS, blank_to_missing,
)

logger = logging.getLogger(__name__)

COHORT_COLUMNS = [
    SAMPLE_ID, ER_STATUS, PR_STATUS, HER2_STATUS, TNBC,
    SUBTYPE, GENE, EXPRESSION, QUARTILE, TIER,
]
TIER_ORDER = [tier.value for tier in ExpressionTier]
SCORE_SUFFIX = '_score'


def score_column_names(columns) -> dict:
    """Renames for score columns that clash with a cohort column, e.g. expression -> expression_score."""
    return {c: f"{c}{SCORE_SUFFIX}" for c in columns if c in COHORT_COLUMNS and c != SAMPLE_ID}


class Cohort:
    """
    Read-only joined cohort table.

    Every accessor hands out a fresh copy; filtering produces a new Cohort.
    """

    def __init__(self, frame: pd.DataFrame, gene: str, cuts: pd.DataFrame = None):
        self._frame = frame[COHORT_COLUMNS].reset_index(drop=True).copy()
        self._cuts = None if cuts is None else cuts.copy()
        self.gene = gene

    def __len__(self):
        return len(self._frame)

    def __iter__(self):
        return iter(self.entries())

    def __repr__(self):
        return f"Cohort(gene={self.gene!r}, n_samples={len(self)})"

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def quartile_cuts(self):
        return None if self._cuts is None else self._cuts.copy()

    @property
    def sample_ids(self) -> list:
        return self._frame[SAMPLE_ID].tolist()

    def entries(self) -> list:
        return [CohortEntry.from_row(row) for _, row in self._frame.iterrows()]

    def subset(self, tiers=None, subtypes=None, exclude_subtypes=None, tnbc=None, positive_for=None) -> 'Cohort':
        """
        Filtered copy of the cohort.

        Args:
            tiers: Keep only these tiers ('Low', 'Mid', 'High' or ExpressionTier).
            subtypes: Keep only these subtypes.
            exclude_subtypes: Drop these subtypes.
            tnbc: Keep only TNBC (True) or non-TNBC (False) samples.
            positive_for: Receptor column(s) that must be 'Positive', e.g. 'er_status'.
        """
        mask = pd.Series(True, index=self._frame.index)
        if tiers is not None:
            mask &= self._frame[TIER].isin([ExpressionTier(t).value for t in tiers])
        if subtypes is not None:
            mask &= self._frame[SUBTYPE].isin(list(subtypes))
        if exclude_subtypes is not None:
            mask &= ~self._frame[SUBTYPE].isin(list(exclude_subtypes))
        if tnbc is not None:
            mask &= self._frame[TNBC] == bool(tnbc)
        if positive_for is not None:
            receptors = [positive_for] if isinstance(positive_for, str) else list(positive_for)
            unknown = [r for r in receptors if r not in RECEPTOR_COLUMNS]
            if unknown:
                raise ValueError(f"Unknown receptor columns {unknown}; expected {RECEPTOR_COLUMNS}")
            for receptor in receptors:
                mask &= self._frame[receptor] == ReceptorStatus.POSITIVE.value
        return Cohort(self._frame.loc[mask], self.gene, self._cuts)

    def tier_counts(self) -> pd.Series:
        return self._frame[TIER].value_counts().reindex(TIER_ORDER, fill_value=0)

    def subtype_tier_table(self) -> pd.DataFrame:
        """Sample counts per subtype (rows) and tier (columns)."""
        table = pd.crosstab(self._frame[SUBTYPE], self._frame[TIER])
        return table.reindex(columns=TIER_ORDER, fill_value=0)

    def with_scores(self, scores: pd.DataFrame, how: str = 'inner') -> pd.DataFrame:
        """
        Join an auxiliary per-sample table (keyed by sample_id) onto a copy of the cohort.

        Score columns named like a cohort column get a `_score` suffix.
        """
        if SAMPLE_ID not in scores.columns:
            raise ValueError(f"Score table has no {SAMPLE_ID} column: {scores.columns.tolist()}")
        renames = score_column_names(scores.columns)
        if renames:
            logger.warning(f"Score columns clash with cohort columns, renaming: {renames}")
        return self._frame.merge(scores.rename(columns=renames), on=SAMPLE_ID, how=how)


def build_cohort(clinical: pd.DataFrame, subtypes: pd.DataFrame, classified: pd.DataFrame,
                 cuts: pd.DataFrame = None) -> Cohort:
    """
    Inner-join clinical, subtype and classified expression tables on sample id
    and drop samples without a subtype.
    """
    tables = {
        'clinical': clinical.dropna(subset=[SAMPLE_ID]),
        'subtype': subtypes.dropna(subset=[SAMPLE_ID]),
        'expression': classified.dropna(subset=[SAMPLE_ID]),
    }
    ids = {name: set(df[SAMPLE_ID]) for name, df in tables.items()}
    shared = set.intersection(*ids.values())
    for name, id_set in ids.items():
        excluded = len(id_set - shared)
        if excluded:
            logger.info(f"{excluded} of {len(id_set)} {name} samples have no match in the other tables")

    merged = (
        tables['clinical']
        .merge(tables['subtype'], on=SAMPLE_ID, how='inner')
        .merge(tables['expression'], on=SAMPLE_ID, how='inner')
    )
    merged[SUBTYPE] = blank_to_missing(merged[SUBTYPE])
    missing_subtype = merged[SUBTYPE].isna()
    if missing_subtype.any():
        logger.info(f"Dropping {missing_subtype.sum()} joined samples without a subtype")
    merged = merged.loc[~missing_subtype]

    gene = classified[GENE].iloc[0] if len(classified) else None
    cohort = Cohort(merged, gene, cuts)
    logger.info(f"Built cohort of {len(cohort)} samples: {cohort.tier_counts().to_dict()}")
    return cohort


def build_cohort_from_files(clinical_path: str, subtype_path: str, expression_path: str, gene: str,
                            clinical_kwargs: dict = None, subtype_kwargs: dict = None,
                            expression_kwargs: dict = None) -> Cohort:
    """Run the load, classify and join stages from the three input files."""
    expression_kwargs = dict(expression_kwargs or {})
    sample_suffix = expression_kwargs.pop('sample_suffix', None)

    clinical = load_clinical_table(clinical_path, **(clinical_kwargs or {}))
    subtypes = load_subtype_table(subtype_path, **(subtype_kwargs or {}))
    classified = classify_expression_file(expression_path, gene, sample_suffix=sample_suffix, **expression_kwargs)

    return build_cohort(clinical, subtypes, classified, cuts=quartile_cuts(classified))
