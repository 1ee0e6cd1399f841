#!/usr/bin/env python3
"""
Advisory pre-flight checks on submitted metric values.

Validation never gates scoring: the scorer still grades invalid or missing
data. Callers decide whether to reject a submission based on the result.
"""

from typing import Any, Dict, Optional, Union

import pandas as pd

from src.analytics.models import Challenge, ValidationResult, is_missing
from src.analytics.submission_scorer import as_challenge


def validate_metrics(challenge: Union[Challenge, Dict[str, Any]],
                     metric_values: Dict[str, Optional[float]]) -> ValidationResult:
    """
    Check metric values against the challenge's metric definitions.

    Rules:
    - every required metric has a value
    - only 'numeric' metrics may be negative
    - 'percentage' metrics may not exceed 100

    Args:
        challenge: Challenge definition
        metric_values: Raw values keyed by metric id

    Returns:
        ValidationResult listing every problem found
    """
    challenge = as_challenge(challenge)
    errors = []

    missing = [m for m in challenge.metrics
               if m.required and is_missing(metric_values.get(m.id))]
    if missing:
        names = ', '.join(m.name or m.id for m in missing)
        errors.append(f"Missing required metrics: {names}")

    for metric in challenge.metrics:
        value = metric_values.get(metric.id)
        if is_missing(value):
            continue
        label = metric.name or metric.id

        if metric.value_type != 'numeric' and value < 0:
            errors.append(f"{label} cannot be negative")

        if metric.value_type == 'percentage' and value > 100:
            errors.append(f"{label} cannot exceed 100%")

    return ValidationResult(is_valid=len(errors) == 0, errors=errors)
