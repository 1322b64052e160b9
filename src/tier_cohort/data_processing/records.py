"""
Record types for the cohort tables.

The loaders work on pandas DataFrames; these immutable records are the
row-level view of the same tables, handed out by the Cohort accessors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pandas as pd

from .utils import (
    SAMPLE_ID, ER_STATUS, PR_STATUS, HER2_STATUS, TNBC,
    SUBTYPE, GENE, EXPRESSION, QUARTILE, TIER,
)


class ReceptorStatus(str, Enum):
    POSITIVE = 'Positive'
    NEGATIVE = 'Negative'
    INDETERMINATE = 'Indeterminate'

    @classmethod
    def parse(cls, value) -> Optional['ReceptorStatus']:
        """Exact 'Positive'/'Negative' are kept, anything else present is Indeterminate."""
        if pd.isna(value):
            return None
        try:
            return cls(value)
        except ValueError:
            return cls.INDETERMINATE


class ExpressionTier(str, Enum):
    LOW = 'Low'
    MID = 'Mid'
    HIGH = 'High'

    @classmethod
    def from_quartile(cls, quartile: int) -> 'ExpressionTier':
        if quartile == 1:
            return cls.LOW
        if quartile == 4:
            return cls.HIGH
        if quartile in (2, 3):
            return cls.MID
        raise ValueError(f"Quartile rank must be between 1 and 4, got {quartile!r}")


def _optional(value):
    return None if pd.isna(value) else value


@dataclass(frozen=True)
class SampleRecord:
    sample_id: str
    er_status: Optional[ReceptorStatus]
    pr_status: Optional[ReceptorStatus]
    her2_status: Optional[ReceptorStatus]
    tnbc: bool

    @classmethod
    def from_row(cls, row) -> 'SampleRecord':
        return cls(
            sample_id=row[SAMPLE_ID],
            er_status=ReceptorStatus.parse(row[ER_STATUS]),
            pr_status=ReceptorStatus.parse(row[PR_STATUS]),
            her2_status=ReceptorStatus.parse(row[HER2_STATUS]),
            tnbc=bool(row[TNBC]),
        )


@dataclass(frozen=True)
class SubtypeRecord:
    sample_id: str
    subtype: Optional[str]

    @classmethod
    def from_row(cls, row) -> 'SubtypeRecord':
        return cls(sample_id=row[SAMPLE_ID], subtype=_optional(row[SUBTYPE]))


@dataclass(frozen=True)
class ExpressionObservation:
    sample_id: str
    gene: str
    value: float


@dataclass(frozen=True)
class CohortEntry:
    sample_id: str
    er_status: Optional[ReceptorStatus]
    pr_status: Optional[ReceptorStatus]
    her2_status: Optional[ReceptorStatus]
    tnbc: bool
    subtype: str
    gene: str
    expression: float
    quartile: int
    tier: ExpressionTier

    @classmethod
    def from_row(cls, row) -> 'CohortEntry':
        return cls(
            sample_id=row[SAMPLE_ID],
            er_status=ReceptorStatus.parse(row[ER_STATUS]),
            pr_status=ReceptorStatus.parse(row[PR_STATUS]),
            her2_status=ReceptorStatus.parse(row[HER2_STATUS]),
            tnbc=bool(row[TNBC]),
            subtype=row[SUBTYPE],
            gene=row[GENE],
            expression=float(row[EXPRESSION]),
            quartile=int(row[QUARTILE]),
            tier=ExpressionTier(row[TIER]),
        )
