"""Serialization module: proposal, recommendation and pattern payloads."""

from training_engine.serialization.payloads import (
    outcome_from_dict,
    outcome_to_dict,
    pattern_from_dict,
    pattern_to_dict,
    plan_to_dict,
    projection_to_dict,
    proposal_to_payload,
    recommendation_to_payload,
    template_to_dict,
    to_json_string,
)

__all__ = [
    "outcome_from_dict",
    "outcome_to_dict",
    "pattern_from_dict",
    "pattern_to_dict",
    "plan_to_dict",
    "projection_to_dict",
    "proposal_to_payload",
    "recommendation_to_payload",
    "template_to_dict",
    "to_json_string",
]
