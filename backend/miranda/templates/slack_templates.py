"""
Slack Block Kit Templates for notifications.

This module provides functions that generate Slack Block Kit message structures.
Each function returns a dict with 'blocks' and 'text' keys ready for sending.

Docs: https://api.slack.com/block-kit
"""

from typing import Any, Dict, List

from miranda.entities.article import Article
from miranda.entities.enums import Recommendation


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _article_block(article: Article, summary_limit: int, with_angle: bool) -> Dict[str, Any]:
    score = f"{article.average_score:.1f}" if article.average_score is not None else "N/A"
    published = f"{article.published_at:%b} {article.published_at.day}" if article.published_at else "N/A"
    text = f"*<{article.url}|{article.title}>*\nScore: {score}/10 | Published: {published}"
    if article.summary:
        text += f"\n>{_truncate(article.summary, summary_limit)}"
    if with_angle and article.video_angle:
        text += f"\n_Video Angle: {article.video_angle}_"
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def recommended_articles_digest(articles: List[Article]) -> Dict[str, Any]:
    """Slack template for the periodic top-articles digest."""
    highly = [a for a in articles if a.recommendation == Recommendation.HIGHLY_RECOMMENDED.value]
    recommended = [a for a in articles if a.recommendation == Recommendation.RECOMMENDED.value]

    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": "Top Recommended Articles",
                "emoji": True,
            },
        },
        {"type": "divider"},
    ]

    if highly:
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "*Highly Recommended*"}})
        blocks.extend(_article_block(a, 200, with_angle=True) for a in highly)

    if recommended:
        if highly:
            blocks.append({"type": "divider"})
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "*Recommended*"}})
        blocks.extend(_article_block(a, 150, with_angle=False) for a in recommended)

    return {
        "blocks": blocks,
        "text": f"{len(articles)} recommended articles for video content",
    }


def connection_test_message() -> Dict[str, Any]:
    """Slack template used to verify the webhook configuration."""
    return {
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": "*Test Message*\n\nSlack integration is working correctly!",
                },
            }
        ],
        "text": "Test message from Miranda",
    }
