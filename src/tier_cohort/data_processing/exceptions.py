"""Errors raised while loading and classifying cohort inputs."""


class CohortPipelineError(Exception):
    """Base class for failures of the cohort pipeline."""


class MalformedInputError(CohortPipelineError, ValueError):
    """An input table is unreadable or lacks a required column or gene."""


class DegenerateQuantileError(CohortPipelineError, ValueError):
    """Too few expression values to split the designated gene into quartiles."""
