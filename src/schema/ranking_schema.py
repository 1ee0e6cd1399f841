#!/usr/bin/env python3
"""
Rankings Schema Definition

Defines the canonical schema for a generated leaderboard using Pandera.
The batch job validates its output against it before writing.
"""

import logging

import pandas as pd
import pandera as pa
from pandera.typing import DataFrame, Series

from src.analytics.config import resolve_config

logger = logging.getLogger(__name__)


class RankingSchema(pa.DataFrameModel):
    """
    Pandera schema for the rankings table.

    This schema enforces:
    - Dense 1-based ranks in row order
    - Rows ordered by total points (descending)
    - Bounded consistency and improvement scores
    - Level labels from the default tiers (see ranking_schema_for)
    """

    rank: Series[int] = pa.Field(
        description="Dense 1-based leaderboard position",
        ge=1,
        unique=True
    )

    player_id: Series[str] = pa.Field(
        description="Player account id",
        unique=True
    )

    player_name: Series[str] = pa.Field(
        description="Display name",
        nullable=True
    )

    total_points: Series[int] = pa.Field(
        description="Composite points after the level multiplier",
        ge=0
    )

    level: Series[str] = pa.Field(
        description="Level label from completed content",
        isin=["beginner", "intermediate", "advanced"]
    )

    age: Series[int] = pa.Field(
        description="Player age (0 when unknown)",
        ge=0
    )

    completed_videos: Series[int] = pa.Field(ge=0)

    completed_series: Series[int] = pa.Field(ge=0)

    average_score: Series[float] = pa.Field(
        description="Mean admin score over all submissions"
    )

    achievements: Series[int] = pa.Field(ge=0)

    consistency: Series[int] = pa.Field(
        description="Approval rate and recency blend",
        ge=0,
        le=100
    )

    improvement: Series[float] = pa.Field(
        description="Recent vs historical admin score, 50 neutral",
        ge=0,
        le=100
    )

    class Config:
        """Pandera configuration."""
        coerce = True  # Automatically coerce types when possible
        strict = False  # Allow extra columns not in schema

    @pa.dataframe_check
    def ranks_are_dense(cls, df: DataFrame) -> bool:
        """Ranks run 1..n in row order."""
        return list(df["rank"]) == list(range(1, len(df) + 1))

    @pa.dataframe_check
    def sorted_by_points(cls, df: DataFrame) -> bool:
        """Points never increase down the table."""
        return bool(df["total_points"].is_monotonic_decreasing)


def level_names(config=None) -> list:
    """Level labels a ranking run can emit: the base level plus every tier name."""
    cfg = resolve_config(config)
    return [cfg['BASE_LEVEL']] + [tier['name'] for tier in cfg['LEVEL_TIERS']]


def ranking_schema_for(config=None) -> pa.DataFrameSchema:
    """RankingSchema with the level check rebuilt from the configured tiers."""
    return RankingSchema.to_schema().update_column(
        "level", checks=[pa.Check.isin(level_names(config))]
    )


def validate_rankings(df: pd.DataFrame, schema=RankingSchema, config=None) -> pd.DataFrame:
    """
    Validate a rankings DataFrame.

    Args:
        df: Rankings DataFrame to validate
        schema: Pandera schema class (default: RankingSchema)
        config: Scoring configuration; when given, level labels are checked
            against its tiers instead of the default ones

    Returns:
        Validated DataFrame

    Raises:
        pa.errors.SchemaErrors: If validation fails
    """
    if config is not None:
        schema = ranking_schema_for(config)
    try:
        return schema.validate(df, lazy=True)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        logger.error(f"Rankings schema validation failed: {e}")
        logger.error(f"DataFrame shape: {df.shape}, columns: {list(df.columns)}")
        if hasattr(e, 'failure_cases') and e.failure_cases is not None:
            logger.error(f"Failure cases:\n{e.failure_cases}")
        raise
