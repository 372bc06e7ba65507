# File: tests/test_reconcile.py
import pytest

from a11y_scout.collector.models import Impact
from a11y_scout.errors import ReconciliationError, TrackerError
from a11y_scout.signature.grouper import group_violations
from a11y_scout.tracker import render
from a11y_scout.tracker.marker import render_marker
from a11y_scout.tracker.models import Action, TrackedIssue
from a11y_scout.tracker.reconcile import Reconciler, audit_open_issues, find_matching_issue

from conftest import FakeTracker, make_instance

LABEL = ["accessibility"]


def _groups(*rules):
    instances = [make_instance(rule_id=rule, html=f'<div role="{rule}">', selector=f"main > div.{rule}") for rule in rules]
    return group_violations({"http://site.test/": instances})


# --------------------------------------------------------------------------- #
#                               Rendering                                     #
# --------------------------------------------------------------------------- #


def test_issue_title_and_labels():
    group = _groups("image-alt")[0]
    group.description = "x" * 120
    assert render.issue_title(group) == "[A11y] image-alt: " + "x" * 80
    assert render.issue_labels(group, "a11y") == ["a11y", "a11y:image-alt", "impact:critical", "wcag2a", "wcag111"]


def test_issue_body_embeds_marker():
    group = _groups("image-alt")[0]
    body = render.issue_body(group)
    assert body.rstrip().endswith(render_marker(group.signature))
    assert "**Total Occurrences**: 1" in body
    assert "http://site.test/" in body


def test_comments_carry_timestamp():
    group = _groups("image-alt")[0]
    assert "2024-01-01T00:00:00+00:00" in render.update_comment(group, "2024-01-01T00:00:00+00:00")
    assert "reopen" in render.resolved_comment("2024-01-01T00:00:00+00:00")


# --------------------------------------------------------------------------- #
#                               Matching                                      #
# --------------------------------------------------------------------------- #


def test_find_matching_issue_rules():
    group = _groups("image-alt")[0]
    by_marker = TrackedIssue(1, "anything", render_marker(group.signature), labels=LABEL)
    by_title = TrackedIssue(2, "[A11y] image-alt: old", "no marker", labels=LABEL)
    malformed = TrackedIssue(3, "[A11y] image-alt: broken", "<!-- a11y-scout:signature v9 zz -->", labels=LABEL)
    other_sig = TrackedIssue(4, "[A11y] image-alt: other", render_marker("cd" * 32), labels=LABEL)

    assert find_matching_issue(group, [other_sig, by_title, by_marker]) is by_title
    assert find_matching_issue(group, [by_marker, by_title]) is by_marker
    assert find_matching_issue(group, [malformed, other_sig]) is None
    assert find_matching_issue(group, [by_marker, by_title], claimed={1}) is by_title


# --------------------------------------------------------------------------- #
#                               Reconciliation                                #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_first_run_creates_then_second_run_updates():
    tracker = FakeTracker()
    groups = _groups("image-alt", "label")

    first = await Reconciler(tracker).reconcile(groups)
    assert [r.action for r in first] == [Action.CREATED, Action.CREATED]
    assert len(tracker.open_issues()) == 2

    second = await Reconciler(tracker).reconcile(groups)
    assert [r.action for r in second] == [Action.UPDATED, Action.UPDATED]
    assert [r.issue_id for r in second] == [r.issue_id for r in first]
    assert len(tracker.open_issues()) == 2
    assert all(len(tracker.comments[r.issue_id]) == 1 for r in second)


@pytest.mark.asyncio()
async def test_resolved_signature_is_closed():
    tracker = FakeTracker()
    await Reconciler(tracker).reconcile(_groups("image-alt", "label"))

    reconciler = Reconciler(tracker)
    results = await reconciler.reconcile(_groups("label"))
    assert [r.action for r in results] == [Action.UPDATED]
    assert [r.action for r in reconciler.last_closed] == [Action.CLOSED]
    closed_id = reconciler.last_closed[0].issue_id
    assert tracker.issues[closed_id].state == "closed"
    assert "reopen" in tracker.comments[closed_id][-1]


@pytest.mark.asyncio()
async def test_close_resolved_disabled():
    tracker = FakeTracker()
    await Reconciler(tracker).reconcile(_groups("image-alt"))
    reconciler = Reconciler(tracker, close_resolved=False)
    assert await reconciler.reconcile([]) == []
    assert reconciler.last_closed == []
    assert len(tracker.open_issues()) == 1


@pytest.mark.asyncio()
async def test_title_fallback_adopts_unmarked_issue():
    legacy = TrackedIssue(7, "[A11y] image-alt: Images need alt", "written by hand", labels=LABEL)
    unrelated = TrackedIssue(8, "Dark mode request", "", labels=LABEL)
    tracker = FakeTracker([legacy, unrelated])
    groups = _groups("image-alt")

    results = await Reconciler(tracker).reconcile(groups)
    assert results[0].action is Action.UPDATED
    assert results[0].issue_id == 7
    assert tracker.issues[7].embedded_signature == groups[0].signature
    # issues without a signature block are never auto-closed
    assert tracker.issues[8].state == "open"


@pytest.mark.asyncio()
async def test_claimed_issue_not_reused():
    legacy = TrackedIssue(7, "[A11y] image-alt: Images need alt", "", labels=LABEL)
    tracker = FakeTracker([legacy])
    groups = group_violations({
        "http://site.test/": [
            make_instance(html="<img>", selector="main > img"),
            make_instance(html="<img>", selector="footer > img"),
        ]
    })
    results = await Reconciler(tracker).reconcile(groups)
    assert sorted(r.action.value for r in results) == ["created", "updated"]
    assert len({r.issue_id for r in results}) == 2


@pytest.mark.asyncio()
async def test_malformed_marker_left_alone():
    broken = TrackedIssue(5, "[A11y] image-alt: x", "<!-- a11y-scout:signature v1 ZZZ -->", labels=LABEL)
    tracker = FakeTracker([broken])
    reconciler = Reconciler(tracker)
    results = await reconciler.reconcile(_groups("image-alt"))
    assert results[0].action is Action.CREATED
    assert reconciler.anomalies == [broken]
    assert tracker.issues[5].state == "open"
    assert tracker.issues[5].body == broken.body


@pytest.mark.asyncio()
async def test_only_labelled_issues_considered():
    groups = _groups("image-alt")
    foreign = TrackedIssue(3, "other", render_marker(groups[0].signature), labels=["bug"])
    tracker = FakeTracker([foreign])
    results = await Reconciler(tracker).reconcile(groups)
    assert results[0].action is Action.CREATED


@pytest.mark.asyncio()
async def test_partial_failure_reports_progress():
    tracker = FakeTracker(fail_on="create_issue", fail_after=1)
    with pytest.raises(ReconciliationError) as excinfo:
        await Reconciler(tracker).reconcile(_groups("image-alt", "label", "region"))
    err = excinfo.value
    assert isinstance(err, TrackerError)
    assert err.operation == "create_issue"
    assert err.status == 502
    assert [r.action for r in err.partial] == [Action.CREATED]
    assert len(tracker.open_issues()) == 1


@pytest.mark.asyncio()
async def test_listing_failure_changes_nothing():
    tracker = FakeTracker(fail_on="list_open_issues")
    with pytest.raises(ReconciliationError) as excinfo:
        await Reconciler(tracker).reconcile(_groups("image-alt"))
    assert excinfo.value.partial == []
    assert tracker.calls == []


# --------------------------------------------------------------------------- #
#                               Audit                                         #
# --------------------------------------------------------------------------- #


def test_audit_open_issues():
    sig = "ab" * 32
    issues = [
        TrackedIssue(1, "a", render_marker(sig)),
        TrackedIssue(2, "b", f"Signature: `{sig}`"),
        TrackedIssue(3, "c", render_marker("cd" * 32)),
        TrackedIssue(4, "d", "<!-- a11y-scout:signature v1 nope -->"),
        TrackedIssue(5, "e", "manual"),
    ]
    report = audit_open_issues(issues)
    assert report.duplicates == {sig: [1, 2]}
    assert report.malformed == [4]
    assert report.untracked == [5]
    assert not report.clean
    assert audit_open_issues(issues[2:3]).clean


@pytest.mark.asyncio()
async def test_post_summary_lists_created_updated_and_closed():
    tracker = FakeTracker()
    await Reconciler(tracker).reconcile(_groups("image-alt", "label"))

    reconciler = Reconciler(tracker)
    results = await reconciler.reconcile(_groups("label", "region"))
    await reconciler.post_summary(500, results, pages_scanned=4)

    [summary] = tracker.comments[500]
    updated = next(r for r in results if r.action is Action.UPDATED)
    created = next(r for r in results if r.action is Action.CREATED)
    closed = reconciler.last_closed[0]
    assert "**Pages Scanned**: 4" in summary
    assert "**Unique Violations**: 2" in summary
    assert "**Closed Issues**: 1" in summary
    assert f"Updated: #{updated.issue_id}" in summary
    assert f"New: #{created.issue_id}" in summary
    assert f"- #{closed.issue_id}" in summary


def test_summary_comment_without_results():
    body = render.summary_comment([], pages_scanned=2)
    assert "No accessibility issues found!" in body
    assert "Closed Issues" not in body
