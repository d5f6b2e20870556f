"""Heuristic stand-in for an AI assistant.

Every method returns the shape a model-backed implementation would; the
content is keyword scoring or a random pick from canned answers.
"""
import random
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

from tracker.core.config import settings
from tracker.models import DONE_STATUS, Comment, Issue

POSITIVE_WORDS = ("good", "great", "excellent", "perfect", "love", "awesome", "fantastic", "solved", "fixed", "works")
NEGATIVE_WORDS = ("bad", "terrible", "awful", "hate", "broken", "bug", "issue", "problem", "error", "fail")
URGENT_WORDS = ("urgent", "critical", "asap", "immediately", "emergency", "blocker")

ACTION_PATTERNS = (
    re.compile(r"(?:need to|should|must|todo|action|task):?\s*(.+)", re.IGNORECASE),
    re.compile(r"(?:^|\s)(?:✓|□|☐|-|\*)\s*(.+)", re.MULTILINE),
    re.compile(r"(?:assign|delegate|give to|hand over to)\s+(\w+)", re.IGNORECASE),
)

ISSUE_INSIGHTS = (
    "This issue seems to be a high-priority bug that affects user experience.",
    "Based on the description, this might be related to authentication or permissions.",
    "Consider breaking this down into smaller, more manageable subtasks.",
    "This issue appears to be frontend-related and may require UI/UX expertise.",
    "The scope seems large - consider creating an epic with multiple stories.",
)
ISSUE_SUGGESTIONS = (
    "Add more specific acceptance criteria",
    "Include steps to reproduce the issue",
    "Consider security implications",
    "Add relevant labels for better categorization",
    "Assign to a team member with relevant expertise",
)
SUGGESTED_LABELS = ("bug", "frontend", "backend", "urgent", "enhancement")
COMMENT_REPLIES = (
    "Thanks for the update! Could you provide more details about the error?",
    "I'll take a look at this and get back to you shortly.",
    "This might be related to the recent changes. Let me investigate.",
    "Great progress! When do you think this will be ready for testing?",
    "I've seen this before. Try clearing the cache and restarting the service.",
    "Could you share a screenshot or error logs to help debug this?",
    "This looks good to me. Ready to move to the next phase.",
    "I agree with the proposed solution. Let's proceed with implementation.",
)

ACTION_ITEM_LIMIT = 5
SIMILAR_LIMIT = 3
RECENT_WINDOW = timedelta(days=7)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AIAssistant:
    """Mock assistant. `enabled` is reported at startup; answers are the same either way."""

    def __init__(self, enabled: bool = True, rng: random.Random | None = None):
        self.enabled = enabled
        self.rng = rng or random.Random()

    def _confidence(self) -> float:
        return self.rng.random() * 30 + 70

    def analyze_sentiment(self, text: str) -> dict[str, Any]:
        lowered = (text or "").lower()
        score = sum(word in lowered for word in POSITIVE_WORDS)
        score -= sum(word in lowered for word in NEGATIVE_WORDS)
        if score > 0:
            sentiment = "positive"
        elif score < 0:
            sentiment = "negative"
        else:
            sentiment = "neutral"
        return {
            "score": int(_clamp(score, -5, 5)),
            "sentiment": sentiment,
            "is_urgent": any(word in lowered for word in URGENT_WORDS),
            "confidence": self._confidence(),
        }

    def analyze_issue(self, issue: Issue) -> dict[str, Any]:
        low = self.rng.randint(1, 8)
        high = self.rng.randint(8, 15)
        return {
            "summary": self.rng.choice(ISSUE_INSIGHTS),
            "suggested_priority": self.rng.choice(("High", "Medium", "Low")),
            "suggested_labels": self.rng.sample(SUGGESTED_LABELS, 2),
            "suggestions": self.rng.sample(ISSUE_SUGGESTIONS, 3),
            "confidence": self._confidence(),
            "time_estimate": f"{low}-{high} hours",
        }

    def find_similar_issues(self, issue: Issue, candidates: list[Issue]) -> list[dict[str, Any]]:
        pool = [c for c in candidates if c.id != issue.id and c.project_id == issue.project_id]
        title = issue.title.lower()
        first_word = title.split()[0] if title.split() else title
        pool = [
            c
            for c in pool
            if first_word in c.title.lower()
            or title in c.description.lower()
            or c.priority == issue.priority
        ]
        return [
            {
                "id": c.id,
                "title": c.title,
                "status": c.status,
                "similarity": self.rng.random() * 40 + 60,
            }
            for c in pool[:SIMILAR_LIMIT]
        ]

    def extract_action_items(self, comments: list[Comment]) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        for comment in comments:
            for pattern in ACTION_PATTERNS:
                for match in pattern.finditer(comment.content):
                    items.append(
                        {
                            "text": match.group(1).strip(),
                            "comment_id": comment.id,
                            "confidence": self._confidence(),
                        }
                    )
        return items[:ACTION_ITEM_LIMIT]

    def suggest_comment_response(
        self, issue: Issue, comments: list[Comment], current_comment: str | None = None
    ) -> dict[str, Any]:
        return {
            "suggestions": self.rng.sample(COMMENT_REPLIES, 3),
            "context_aware": True,
            "confidence": self._confidence(),
        }

    def project_insights(
        self,
        issues: list[Issue],
        comments: list[Comment],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        today: date = now.date()
        total = len(issues)
        open_count = sum(1 for i in issues if i.status != DONE_STATUS)
        high = sum(1 for i in issues if i.priority == "High")
        overdue = sum(1 for i in issues if i.due_date is not None and i.due_date < today)

        recent = [
            self.analyze_sentiment(c.content)
            for c in comments
            if c.created_at > now - RECENT_WINDOW
        ]
        avg_sentiment = sum(s["score"] for s in recent) / len(recent) if recent else 0.0
        open_ratio = open_count / total if total else 0.0

        if open_ratio < 0.3:
            health_status = "healthy"
        elif open_ratio < 0.7:
            health_status = "warning"
        else:
            health_status = "critical"
        if avg_sentiment > 0.5:
            morale = "positive"
        elif avg_sentiment < -0.5:
            morale = "negative"
        else:
            morale = "neutral"

        recommendations = []
        if high > 3:
            recommendations.append("Consider addressing high-priority issues first")
        if overdue > 0:
            recommendations.append(f"{overdue} issues are overdue - review deadlines")
        if avg_sentiment < -1:
            recommendations.append("Team sentiment seems low - consider team meeting")
        if open_ratio > 0.8:
            recommendations.append("High number of open issues - focus on closing tasks")

        return {
            "project_health": {
                "score": _clamp(100 - open_ratio * 50 - high * 10 - overdue * 15, 0, 100),
                "status": health_status,
            },
            "team_morale": {
                "score": _clamp(50 + avg_sentiment * 10, 0, 100),
                "sentiment": morale,
            },
            "recommendations": recommendations,
            "stats": {
                "total_issues": total,
                "open_issues": open_count,
                "closed_issues": total - open_count,
                "high_priority_issues": high,
                "overdue_issues": overdue,
                "recent_activity": len(recent),
            },
        }


assistant = AIAssistant(enabled=settings.ai_enabled)
