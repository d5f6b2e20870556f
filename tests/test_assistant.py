import random
from datetime import date, datetime, timedelta, timezone

from tracker.models import Comment, Issue
from tracker.services.assistant import AIAssistant


def _issue(title, **extra):
    return Issue(project_id=extra.pop("project_id", "p"), title=title, status=extra.pop("status", "To Do"), creator_id="u", **extra)


def test_sentiment_scoring():
    assistant = AIAssistant(rng=random.Random(1))
    positive = assistant.analyze_sentiment("Great work, it works now")
    assert positive["sentiment"] == "positive"
    assert positive["score"] == 2
    assert 70 <= positive["confidence"] <= 100

    negative = assistant.analyze_sentiment("URGENT: broken build, error on deploy")
    assert negative["sentiment"] == "negative"
    assert negative["is_urgent"] is True
    assert assistant.analyze_sentiment("")["sentiment"] == "neutral"


def test_sentiment_score_is_clamped():
    text = "bad terrible awful hate broken bug problem error fail"
    assert AIAssistant().analyze_sentiment(text)["score"] == -5


def test_analyze_issue_shape():
    analysis = AIAssistant(rng=random.Random(3)).analyze_issue(_issue("Bug"))
    assert set(analysis) == {
        "summary",
        "suggested_priority",
        "suggested_labels",
        "suggestions",
        "confidence",
        "time_estimate",
    }
    assert len(analysis["suggested_labels"]) == 2
    assert len(analysis["suggestions"]) == 3
    assert analysis["time_estimate"].endswith(" hours")


def test_find_similar_issues_same_project_top_three():
    target = _issue("Login fails", priority="High")
    candidates = [target] + [_issue(f"Login issue {n}") for n in range(5)] + [
        _issue("Login elsewhere", project_id="other")
    ]
    similar = AIAssistant(rng=random.Random(5)).find_similar_issues(target, candidates)
    assert len(similar) == 3
    assert all(60 <= s["similarity"] <= 100 for s in similar)
    assert target.id not in {s["id"] for s in similar}


def test_extract_action_items_caps_at_five():
    comments = [
        Comment(issue_id="i", author_id="u", content="We need to fix the cache\n- update docs\n- add tests"),
        Comment(issue_id="i", author_id="u", content="todo: ship it. assign alice. must: retest"),
    ]
    items = AIAssistant().extract_action_items(comments)
    assert len(items) == 5
    assert items[0]["text"] == "fix the cache"
    assert items[0]["comment_id"] == comments[0].id


def test_suggest_comment_response_shape():
    result = AIAssistant(rng=random.Random(2)).suggest_comment_response(_issue("Bug"), [])
    assert len(result["suggestions"]) == 3
    assert result["context_aware"] is True


def test_project_insights():
    now = datetime(2026, 6, 1, tzinfo=timezone.utc)
    issues = [
        _issue("A", priority="High", due_date=date(2026, 5, 1)),
        _issue("B", status="Done"),
        _issue("C"),
        _issue("D", status="Done"),
    ]
    comments = [
        Comment(issue_id=issues[0].id, author_id="u", content="great, fixed", created_at=now - timedelta(days=1)),
        Comment(issue_id=issues[0].id, author_id="u", content="bug bug", created_at=now - timedelta(days=30)),
    ]
    insights = AIAssistant().project_insights(issues, comments, now=now)

    assert insights["stats"] == {
        "total_issues": 4,
        "open_issues": 2,
        "closed_issues": 2,
        "high_priority_issues": 1,
        "overdue_issues": 1,
        "recent_activity": 1,
    }
    assert insights["project_health"] == {"score": 50.0, "status": "warning"}
    assert insights["team_morale"] == {"score": 70.0, "sentiment": "positive"}
    assert insights["recommendations"] == ["1 issues are overdue - review deadlines"]


def test_project_insights_empty_project():
    insights = AIAssistant().project_insights([], [])
    assert insights["project_health"]["status"] == "healthy"
    assert insights["stats"]["total_issues"] == 0


def test_disabled_assistant_serves_same_answers():
    target = _issue("Login fails", priority="High")
    candidates = [target, _issue("Login slow"), _issue("Export broken", priority="Low")]
    enabled = AIAssistant(enabled=True, rng=random.Random(9))
    disabled = AIAssistant(enabled=False, rng=random.Random(9))

    assert enabled.find_similar_issues(target, candidates) == disabled.find_similar_issues(target, candidates)
    assert enabled.analyze_issue(target) == disabled.analyze_issue(target)
    assert {s["id"] for s in disabled.find_similar_issues(target, candidates)} <= {candidates[1].id}
