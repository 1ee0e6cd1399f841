#!/usr/bin/env python3
"""
Submission Schema Definition

Defines the canonical schema for the scored submission table using Pandera.
Scores are computed once when a submission is created; this check guards
the stored table against out-of-range scores and unknown labels.
"""

import logging
from typing import Optional

import pandas as pd
import pandera as pa
from pandera.typing import DataFrame, Series

from src.analytics.models import RATINGS, SUBMISSION_STATUSES

logger = logging.getLogger(__name__)


class SubmissionSchema(pa.DataFrameModel):
    """
    Pandera schema for scored challenge submissions.

    Fields:
    - id: Submission id
    - player_id / challenge_id: Owning player and challenge
    - total_score: Weighted average score (0-100)
    - overall_rating: One of the five rating labels
    - status: Review status
    - admin_score: Reviewer score (nullable)
    """

    id: Series[str] = pa.Field(
        description="Submission id",
        unique=True
    )

    player_id: Series[str] = pa.Field(
        description="Submitting player id"
    )

    challenge_id: Series[str] = pa.Field(
        description="Challenge attempted"
    )

    total_score: Series[float] = pa.Field(
        description="Weighted average score",
        ge=0,
        le=100
    )

    overall_rating: Series[str] = pa.Field(
        description="Overall rating label",
        isin=list(RATINGS)
    )

    status: Series[str] = pa.Field(
        description="Review status",
        isin=list(SUBMISSION_STATUSES)
    )

    admin_score: Optional[Series[float]] = pa.Field(
        description="Reviewer score",
        nullable=True,
        ge=0
    )

    class Config:
        """Pandera configuration."""
        coerce = True  # Automatically coerce types when possible
        strict = False  # Allow extra columns not in schema

    @pa.dataframe_check
    def submitted_at_is_timestamp(cls, df: DataFrame) -> bool:
        """submitted_at, when present, holds parsed timestamps."""
        if "submitted_at" not in df.columns:
            return True
        return bool(pd.api.types.is_datetime64_any_dtype(df["submitted_at"]))


def validate_submissions(df: pd.DataFrame, schema=SubmissionSchema) -> pd.DataFrame:
    """
    Validate a submission DataFrame.

    Args:
        df: Submission DataFrame to validate
        schema: Pandera schema class (default: SubmissionSchema)

    Returns:
        Validated DataFrame

    Raises:
        pa.errors.SchemaErrors: If validation fails
    """
    try:
        return schema.validate(df, lazy=True)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        logger.error(f"Submission schema validation failed: {e}")
        logger.error(f"DataFrame shape: {df.shape}, columns: {list(df.columns)}")
        if hasattr(e, 'failure_cases') and e.failure_cases is not None:
            logger.error(f"Failure cases:\n{e.failure_cases}")
        raise
