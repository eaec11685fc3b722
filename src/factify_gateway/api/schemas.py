"""Request models for the analysis API."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class TextAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field("", description="Text to analyze, forwarded verbatim")
    enable_options: Dict[str, bool] = Field(
        default_factory=dict,
        alias="enableOptions",
        description="Analysis toggles requested by the extension; must be non-empty, otherwise unused",
    )
    api_key: str = Field("", alias="apikey", description="Caller's inference API key")
    model: str = Field("", description="Inference model id, e.g. distilbert-base-uncased")
