import unittest
from datetime import datetime
from unittest.mock import MagicMock

from bson import ObjectId
from openai import OpenAIError
from pymongo.errors import PyMongoError

from miranda.repositories.api_usage import ApiUsageRepository
from miranda.services.article_analyzer import ArticleAnalyzer, parse_analysis
from miranda.services.pipeline_exceptions import AnalysisError
from tests.support import make_db


def completion(content, prompt_tokens=120, completion_tokens=80):
    response = MagicMock()
    response.model = "gpt-4o-mini"
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
    )
    return response


class TestParseAnalysis(unittest.TestCase):
    def test_parses_json_wrapped_in_prose(self):
        text = (
            "Here you go:\n```json\n"
            '{"summary": "s", "relevance": 8, "relevanceSummary": "on topic", "uniqueness": 6, '
            '"engagement": 7, "credibility": 9, "recommendation": "recommended", "videoAngle": "v"}'
            "\n```"
        )
        analysis = parse_analysis(text)

        self.assertEqual(analysis.summary, "s")
        self.assertEqual(analysis.relevance_summary, "on topic")
        self.assertEqual(analysis.recommendation, "recommended")
        self.assertEqual(analysis.video_angle, "v")
        self.assertEqual(analysis.average_score, 7.5)

    def test_unknown_or_missing_recommendation_defaults_to_maybe(self):
        base = '"summary": "s", "relevance": 5, "uniqueness": 5, "engagement": 5, "credibility": 5'
        self.assertEqual(parse_analysis("{" + base + "}").recommendation, "maybe")
        self.assertEqual(parse_analysis("{" + base + ', "recommendation": "must_watch"}').recommendation, "maybe")

    def test_scores_are_clamped_to_range(self):
        analysis = parse_analysis(
            '{"summary": "s", "relevance": 14, "uniqueness": 0, "engagement": 6.6, "credibility": 10}'
        )
        self.assertEqual((analysis.relevance, analysis.uniqueness, analysis.engagement), (10, 1, 7))

    def test_unusable_output_returns_none(self):
        self.assertIsNone(parse_analysis(None))
        self.assertIsNone(parse_analysis("no json here"))
        self.assertIsNone(parse_analysis("{not valid json}"))
        self.assertIsNone(parse_analysis('{"summary": "s", "relevance": "high"}'))
        self.assertIsNone(parse_analysis('{"relevance": 5, "uniqueness": 5, "engagement": 5, "credibility": 5}'))


class TestArticleAnalyzer(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        self.usage_repo = ApiUsageRepository(self.db)
        self.client = MagicMock()
        self.analyzer = ArticleAnalyzer(client=self.client, usage_repo=self.usage_repo, model="gpt-4o-mini")

    def test_analyze_returns_parsed_result_and_records_usage(self):
        scan_id, article_id = str(ObjectId()), str(ObjectId())
        self.client.chat.completions.create.return_value = completion(
            '{"summary": "s", "relevance": 8, "uniqueness": 8, "engagement": 8, "credibility": 8}'
        )

        analysis = self.analyzer.analyze(
            title="T",
            url="https://x/1",
            published_at=datetime(2025, 6, 1),
            content="",
            scan_id=scan_id,
            article_id=article_id,
        )

        self.assertEqual(analysis.relevance, 8)
        prompt = self.client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        self.assertIn("Title: T", prompt)
        self.assertIn("Published: 2025-06-01T00:00:00", prompt)
        self.assertIn("analyze based on title only", prompt)

        usage = self.usage_repo.recent(10)
        self.assertEqual(len(usage), 1)
        self.assertEqual(usage[0].total_tokens, 200)
        self.assertEqual(usage[0].model, "gpt-4o-mini")
        self.assertEqual(str(usage[0].scan_id), scan_id)
        self.assertEqual(str(usage[0].article_id), article_id)

    def test_unparsable_response_returns_none(self):
        self.client.chat.completions.create.return_value = completion("I cannot score this.")
        self.assertIsNone(self.analyzer.analyze("T", "https://x/1", "2025-06-01", "body"))
        self.assertEqual(len(self.usage_repo.recent(10)), 1)

    def test_usage_recording_failure_keeps_analysis(self):
        self.client.chat.completions.create.return_value = completion(
            '{"summary": "s", "relevance": 6, "uniqueness": 6, "engagement": 6, "credibility": 6}'
        )

        analysis = self.analyzer.analyze("T", "https://x/1", "2025-06-01", "body", scan_id="not-an-object-id")

        self.assertEqual(analysis.relevance, 6)
        self.assertEqual(self.usage_repo.recent(10), [])

        self.usage_repo.record = MagicMock(side_effect=PyMongoError("write failed"))
        self.assertIsNotNone(self.analyzer.analyze("T", "https://x/1", "2025-06-01", "body"))

    def test_client_error_raises_analysis_error(self):
        self.client.chat.completions.create.side_effect = OpenAIError("rate limited")

        with self.assertRaises(AnalysisError):
            self.analyzer.analyze("T", "https://x/1", "2025-06-01", "body")
        self.assertEqual(self.usage_repo.recent(10), [])


if __name__ == "__main__":
    unittest.main()
