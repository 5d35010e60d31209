# Teammate recommendation returned by the AI service

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Recommendation(BaseModel):
    """
    One suggested teammate. Every field is optional: the AI service may omit
    any of them and the page falls back to placeholders.
    complementary_skills is a comma-delimited string ("React, SQL, Figma").
    """

    model_config = ConfigDict(extra="ignore")

    full_name: Optional[str] = None
    distance_km: Optional[float] = None
    score: Optional[float] = None
    reasoning: Optional[str] = None
    complementary_skills: Optional[str] = None
