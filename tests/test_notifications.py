from datetime import datetime, timedelta, timezone

import pytest

from tracker.core.errors import NotFoundError
from tracker.models import Notification
from tracker.services import notifications


def test_send_deduplicates_and_skips_empty(repo):
    created = notifications.send(repo, ["u1", "u1", None, "", "u2"], "hello")
    assert [n.user_id for n in created] == ["u1", "u2"]
    assert len(repo.load(Notification)) == 2
    assert all(not n.read for n in repo.load(Notification))


def test_send_with_no_recipients_is_noop(repo):
    assert notifications.send(repo, [], "hello") == []
    assert notifications.send(repo, ["actor"], "hello", exclude="actor") == []
    assert repo.store.read(Notification.collection) is None


def test_list_for_user_newest_first_and_capped(repo):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    records = [
        Notification(user_id="u1", message=f"m{n}", created_at=base + timedelta(minutes=n))
        for n in range(60)
    ]
    records.append(Notification(user_id="u2", message="other"))
    repo.save(Notification, records)

    listed = notifications.list_for_user(repo, "u1")
    assert len(listed) == 50
    assert listed[0].message == "m59"
    assert all(n.user_id == "u1" for n in listed)


def test_mark_read_only_own(repo):
    [mine] = notifications.send(repo, ["u1"], "mine")
    with pytest.raises(NotFoundError):
        notifications.mark_read(repo, "u2", mine.id)
    assert notifications.mark_read(repo, "u1", mine.id).read is True


def test_mark_all_read(repo):
    notifications.send(repo, ["u1", "u2"], "first")
    notifications.send(repo, ["u1"], "second")
    assert notifications.mark_all_read(repo, "u1") == 2
    assert notifications.mark_all_read(repo, "u1") == 0
    unread = [n for n in repo.load(Notification) if not n.read]
    assert [n.user_id for n in unread] == ["u2"]


def test_prune_related_matches_ids_not_text(repo):
    notifications.send(repo, ["u1"], 'Issue "Bug" changed', related_entity_id="issue-1")
    notifications.send(repo, ["u1"], 'Mentions "Bug" too', related_entity_id="issue-2")
    assert notifications.prune_related(repo, {"issue-1"}) == 1
    assert [n.related_entity_id for n in repo.load(Notification)] == ["issue-2"]
    assert notifications.prune_related(repo, set()) == 0
