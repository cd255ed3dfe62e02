"""Tests for dtq.workflow.engine (submit, claim, approve, reject, status)."""

import pytest

from dtq.lib.errors import NoWorkAvailable, NotFoundError, StateError, ValidationError
from dtq.store import QueueStore
from dtq.workflow.engine import QueueEngine, open_queue
from dtq.workflow.results import ItemStatus, QueueStatus


class StepClock:
    """Deterministic clock: each call is one second later than the last."""

    def __init__(self):
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return f"2026-01-01T00:00:{self.calls:02d}.000000Z"


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / ".dtq" / "queue.json"


@pytest.fixture
def engine(store_path):
    return QueueEngine(QueueStore(store_path), clock=StepClock())


def get_item(engine, task_id):
    return engine.status(task_id).item


class TestSubmit:
    """submit creates new items and resubmits from coding."""

    def test_new_item_enters_review(self, engine):
        result = engine.submit("t1", "br1", "agentA")

        assert result.to_dict() == {"taskId": "t1", "stage": "review", "message": "submitted for review"}
        item = get_item(engine, "t1")
        assert item.cycles == 0
        assert item.claimed_by == ""
        assert item.submitted_at == item.updated_at
        assert [h.action for h in item.history] == ["submit"]
        assert item.history[0].agent == "agentA"

    def test_submit_from_review_fails_and_leaves_store_unchanged(self, engine, store_path):
        engine.submit("t1", "br1", "agentA")
        before = store_path.read_bytes()

        with pytest.raises(StateError) as exc_info:
            engine.submit("t1", "br2", "agentA")

        assert exc_info.value.task_id == "t1"
        assert exc_info.value.stage == "review"
        assert store_path.read_bytes() == before

    def test_resubmit_after_reject(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.claim("review", "agentB")
        engine.reject("t1", "agentB", "typo")
        first = get_item(engine, "t1")

        engine.submit("t1", "br1-v2", "agentA")

        item = get_item(engine, "t1")
        assert item.stage == "review"
        assert item.branch == "br1-v2"
        assert item.claimed_by == ""
        assert item.cycles == 1
        assert item.submitted_at == first.submitted_at
        assert item.updated_at > first.updated_at

    def test_task_ids_stay_unique(self, engine, store_path):
        import json
        engine.submit("t1", "br1", "agentA")
        with pytest.raises(StateError):
            engine.submit("t1", "br1", "agentA")

        data = json.loads(store_path.read_text())
        assert list(data["items"]) == ["t1"]

    def test_invalid_input_rejected_before_transaction(self, engine, store_path):
        with pytest.raises(ValidationError):
            engine.submit("", "br1", "agentA")
        with pytest.raises(ValidationError):
            engine.submit("has space", "br1", "agentA")
        with pytest.raises(ValidationError, match="--branch is required"):
            engine.submit("t1", "", "agentA")

        assert not store_path.exists()


class TestClaim:
    """claim assigns the best unclaimed item."""

    def test_claim_sets_claimed_by_and_keeps_stage(self, engine):
        engine.submit("t1", "br1", "agentA")

        result = engine.claim("review", "agentB")

        assert result.to_dict() == {
            "taskId": "t1",
            "stage": "review",
            "branch": "br1",
            "claimedBy": "agentB",
            "cycles": 0,
        }
        item = get_item(engine, "t1")
        assert item.claimed_by == "agentB"
        assert item.stage == "review"
        assert item.history[-1].action == "claim"

    def test_never_claims_claimed_item(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.submit("t2", "br2", "agentA")

        first = engine.claim("review", "agentB")
        second = engine.claim("review", "agentC")

        assert {first.task_id, second.task_id} == {"t1", "t2"}
        with pytest.raises(NoWorkAvailable):
            engine.claim("review", "agentD")

    def test_fifo_order(self, engine):
        engine.submit("first", "br", "agentA")
        engine.submit("second", "br", "agentA")

        assert engine.claim("review", "agentB").task_id == "first"

    def test_revision_preempts_fresh_work(self, engine):
        engine.submit("B", "brB", "agentA")     # B is fresh and older
        engine.submit("A", "brA", "agentA")
        engine.reject("A", "agentB", "fix it")
        engine.submit("A", "brA", "agentA")     # A resubmitted, cycles=1

        result = engine.claim("review", "agentC")

        assert result.task_id == "A"
        assert result.cycles == 1

    def test_invalid_stage(self, engine):
        for stage in ("coding", "merge-ready", "bogus"):
            with pytest.raises(ValidationError, match="can only claim from"):
                engine.claim(stage, "agentB")

    def test_no_work_leaves_store_unchanged(self, engine, store_path):
        engine.submit("t1", "br1", "agentA")
        before = store_path.read_bytes()

        with pytest.raises(NoWorkAvailable):
            engine.claim("qa", "agentB")

        assert store_path.read_bytes() == before


class TestApprove:
    """approve advances a claimed item one stage."""

    def test_review_to_qa_to_merge_ready(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.claim("review", "agentB")

        result = engine.approve("t1", "agentB")
        assert result.to_dict() == {"taskId": "t1", "stage": "qa", "message": "advanced to qa"}
        assert get_item(engine, "t1").claimed_by == ""

        engine.claim("qa", "agentC")
        assert engine.approve("t1", "agentC").stage == "merge-ready"

    def test_requires_claim(self, engine, store_path):
        engine.submit("t1", "br1", "agentA")
        before = store_path.read_bytes()

        with pytest.raises(StateError, match="not claimed"):
            engine.approve("t1", "agentB")

        assert store_path.read_bytes() == before

    def test_merge_ready_always_fails(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.claim("review", "agentB")
        engine.approve("t1", "agentB")
        engine.claim("qa", "agentC")
        engine.approve("t1", "agentC")

        with pytest.raises(StateError) as exc_info:
            engine.approve("t1", "agentC")
        assert exc_info.value.stage == "merge-ready"

    def test_coding_fails(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.claim("review", "agentB")
        engine.reject("t1", "agentB", "nope")

        with pytest.raises(StateError, match="cannot approve task t1 in stage 'coding'"):
            engine.approve("t1", "agentB")

    def test_unknown_task(self, engine):
        with pytest.raises(NotFoundError, match="task ghost not found in queue"):
            engine.approve("ghost", "agentB")


class TestReject:
    """reject sends work back to coding and counts cycles."""

    def test_reject_from_qa(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.claim("review", "agentB")
        engine.approve("t1", "agentB")
        engine.claim("qa", "agentC")

        result = engine.reject("t1", "agentC", "needs tests")

        assert result.to_dict() == {
            "taskId": "t1",
            "stage": "coding",
            "cycles": 1,
            "message": "sent back for revision",
        }
        item = get_item(engine, "t1")
        assert item.claimed_by == ""
        assert item.history[-1].action == "reject"
        assert item.history[-1].note == "needs tests"
        assert item.history[-1].agent == "agentC"

    def test_reject_without_claim_allowed(self, engine):
        engine.submit("t1", "br1", "agentA")
        assert engine.reject("t1", "agentB", "drive-by").cycles == 1

    def test_reject_from_coding_fails(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.reject("t1", "agentB", "first")

        with pytest.raises(StateError):
            engine.reject("t1", "agentB", "second")
        assert get_item(engine, "t1").cycles == 1

    def test_unknown_task(self, engine):
        with pytest.raises(NotFoundError):
            engine.reject("ghost", "agentB", "why")

    def test_reason_required(self, engine):
        engine.submit("t1", "br1", "agentA")
        with pytest.raises(ValidationError, match="--reason is required"):
            engine.reject("t1", "agentB", "   ")

    def test_custom_escalation_threshold(self, store_path):
        engine = QueueEngine(QueueStore(store_path), clock=StepClock(), escalation_cycles=1)
        engine.submit("t1", "br1", "agentA")

        result = engine.reject("t1", "agentB", "again")

        assert result.escalated
        assert result.warning == "escalation recommended - 1 review cycles"


class TestTimestamps:
    """One timestamp per transaction."""

    def test_updated_at_matches_history_entry(self, engine):
        engine.submit("t1", "br1", "agentA")
        engine.claim("review", "agentB")
        engine.reject("t1", "agentB", "x")

        item = get_item(engine, "t1")
        assert item.updated_at == item.history[-1].at
        ats = [h.at for h in item.history]
        assert ats == sorted(ats)


class TestStatus:
    """status queries never write."""

    def test_single_item(self, engine):
        engine.submit("t1", "br1", "agentA")

        result = engine.status("t1")

        assert isinstance(result, ItemStatus)
        data = result.to_dict()
        assert data["taskId"] == "t1"
        assert data["history"][0]["action"] == "submit"
        assert "claimedBy" not in data

    def test_single_item_not_found(self, engine):
        with pytest.raises(NotFoundError):
            engine.status("ghost")

    def test_whole_queue_counts_and_order(self, engine):
        engine.submit("t2", "br", "agentA")
        engine.submit("t1", "br", "agentA")
        engine.submit("t3", "br", "agentA")
        engine.claim("review", "agentB")
        engine.approve("t2", "agentB")
        engine.reject("t3", "agentB", "no")

        result = engine.status()

        assert isinstance(result, QueueStatus)
        assert [i.task_id for i in result.items] == ["t2", "t1", "t3"]
        assert result.counts == {"coding": 1, "review": 1, "qa": 1, "merge-ready": 0}
        assert sum(result.counts.values()) == result.total

    def test_empty_queue(self, engine, store_path):
        result = engine.status()

        assert result.to_dict() == {
            "items": [],
            "counts": {"coding": 0, "review": 0, "qa": 0, "merge-ready": 0},
        }
        assert not store_path.exists()


class TestEndToEnd:
    """Full revision loop up to escalation."""

    def test_three_rejections_escalate(self, engine):
        assert engine.submit("t1", "br1", "agentA").stage == "review"
        assert engine.claim("review", "agentB").claimed_by == "agentB"

        approved = engine.approve("t1", "agentB")
        assert approved.stage == "qa"
        assert get_item(engine, "t1").claimed_by == ""

        engine.claim("qa", "agentC")
        rejected = engine.reject("t1", "agentC", "needs tests")
        assert (rejected.stage, rejected.cycles, rejected.warning) == ("coding", 1, None)

        for expected_cycles in (2, 3):
            engine.submit("t1", "br1", "agentA")
            engine.claim("review", "agentB")
            rejected = engine.reject("t1", "agentB", "still failing")
            assert rejected.cycles == expected_cycles

        assert rejected.warning == "escalation recommended - 3 review cycles"
        assert rejected.to_dict()["warning"] == rejected.warning

        item = get_item(engine, "t1")
        assert len(item.history) == 5 + 2 * 3
        assert [h.action for h in item.history[:5]] == ["submit", "claim", "approve", "claim", "reject"]


class TestOpenQueue:
    """Building an engine from config."""

    def test_uses_config_paths(self, tmp_path):
        from dtq.lib.config import QueueConfig

        config = QueueConfig(root=tmp_path, agent="agentA", escalation_cycles=5)
        engine = open_queue(config)

        assert engine.store.path == tmp_path / ".dtq" / "queue.json"
        assert engine.escalation_cycles == 5
