"""Example scoring client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseScoringClient and register the provider in ScorerFactory.
"""

import json
from typing import ClassVar

from petition_scoring.scoring.client_base import BaseScoringClient


class ExampleClientAdapter(BaseScoringClient):
    """Example adapter that returns a fixed valid scoring JSON.

    No network calls. Useful for local development, tests, and as a template
    for building real provider adapters.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "overall_score": 62,
        "overall_rating": "RFE Likely",
        "approval_probability": 45,
        "rfe_probability": 60,
        "denial_risk": 15,
        "criteria_scores": [
            {
                "criterion_number": 1,
                "name": "Awards",
                "rating": "Adequate",
                "score": 60,
                "officer_concerns": ["Prestige of the award is not documented"],
            },
        ],
        "evidence_quality": {
            "tier1_count": 0,
            "tier2_count": 1,
            "tier3_count": 2,
            "tier4_count": 0,
            "assessment": "Mostly secondary evidence",
        },
        "rfe_predictions": [
            {
                "topic": "Sustained acclaim",
                "probability": 55,
                "officer_perspective": "Recent evidence is thin",
            },
        ],
        "strengths": ["Consistent career record"],
        "weaknesses": ["Limited independent media coverage"],
        "recommendations": {
            "critical": ["Document the selection criteria of each award"],
            "high": [],
            "recommended": [],
        },
        "full_report": None,
    }

    def __init__(self) -> None:
        pass

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema
        return json.dumps(self.DEFAULT_RESPONSE)
