"""Article scoring through an OpenAI-compatible chat model."""

import json
import logging
import re
from datetime import datetime
from typing import Any, Optional

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pymongo.errors import PyMongoError

from miranda.config import settings
from miranda.entities.api_usage import ApiUsage
from miranda.entities.article import ArticleScore
from miranda.entities.enums import Recommendation
from miranda.repositories.api_usage import ApiUsageRepository
from miranda.services.pipeline_exceptions import AnalysisError, PipelineConfigurationError
from miranda.services.prompts import VIDEO_ANALYZER_INSTRUCTIONS, video_analyzer_prompt

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_RECOMMENDATIONS = {r.value for r in Recommendation}


class ArticleAnalysis(BaseModel):
    """Structured model output. Field aliases follow the prompt's JSON keys."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    relevance: int
    relevance_summary: str = Field("", alias="relevanceSummary")
    uniqueness: int
    uniqueness_summary: str = Field("", alias="uniquenessSummary")
    engagement: int
    engagement_summary: str = Field("", alias="engagementSummary")
    credibility: int
    credibility_summary: str = Field("", alias="credibilitySummary")
    recommendation: str = Recommendation.MAYBE.value
    video_angle: str = Field("", alias="videoAngle")

    @field_validator("relevance", "uniqueness", "engagement", "credibility", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        return max(1, min(10, int(round(value))))

    @field_validator("recommendation", mode="before")
    @classmethod
    def _known_recommendation(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip().lower() in _RECOMMENDATIONS:
            return value.strip().lower()
        return Recommendation.MAYBE.value

    @field_validator("relevance_summary", "uniqueness_summary", "engagement_summary",
                     "credibility_summary", "video_angle", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @property
    def score(self) -> ArticleScore:
        return ArticleScore(
            relevance=self.relevance,
            relevance_summary=self.relevance_summary,
            uniqueness=self.uniqueness,
            uniqueness_summary=self.uniqueness_summary,
            engagement=self.engagement,
            engagement_summary=self.engagement_summary,
            credibility=self.credibility,
            credibility_summary=self.credibility_summary,
        )

    @property
    def average_score(self) -> float:
        return self.score.average


def parse_analysis(text: Optional[str]) -> Optional[ArticleAnalysis]:
    """Pull the first {...} block out of model output. None when unusable."""
    if not text:
        return None
    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return ArticleAnalysis.model_validate(payload)
    except ValidationError as e:
        logger.debug(f"Analysis payload rejected: {e.error_count()} errors")
        return None


class ArticleAnalyzer:
    """Scores articles for video potential and records token usage."""

    provider = "openai"

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        usage_repo: Optional[ApiUsageRepository] = None,
        model: Optional[str] = None,
    ):
        self._client = client
        self.usage_repo = usage_repo
        self.model = model or settings.OPENAI_MODEL

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise PipelineConfigurationError("OPENAI_API_KEY is not set")
            self._client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
            )
        return self._client

    def analyze(
        self,
        title: str,
        url: str,
        published_at: datetime | str,
        content: str,
        scan_id: Optional[str] = None,
        article_id: Optional[str] = None,
    ) -> Optional[ArticleAnalysis]:
        """
        Score one article.

        Returns None when the model answered but not with usable JSON.
        Raises AnalysisError when the call itself fails.
        """
        if isinstance(published_at, datetime):
            published_at = published_at.isoformat()

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": VIDEO_ANALYZER_INSTRUCTIONS},
                    {
                        "role": "user",
                        "content": video_analyzer_prompt(title, url, published_at, content),
                    },
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except OpenAIError as e:
            raise AnalysisError(f"Scoring call failed: {e}") from e

        self._record_usage(response, scan_id, article_id)

        if not response.choices:
            return None
        return parse_analysis(response.choices[0].message.content)

    def _record_usage(self, response: Any, scan_id: Optional[str], article_id: Optional[str]) -> None:
        usage = getattr(response, "usage", None)
        if usage is None or self.usage_repo is None:
            return
        try:
            self.usage_repo.record(
                ApiUsage(
                    provider=self.provider,
                    model=getattr(response, "model", None) or self.model,
                    prompt_tokens=usage.prompt_tokens or 0,
                    completion_tokens=usage.completion_tokens or 0,
                    total_tokens=usage.total_tokens or 0,
                    scan_id=scan_id,
                    article_id=article_id,
                )
            )
        except (ValidationError, PyMongoError) as e:
            logger.warning(f"Failed to record usage for article {article_id}: {e}")
