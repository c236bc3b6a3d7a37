from proctored_cbt.services.answer_store import UNANSWERED, AnswerStore


def test_get_unanswered_sentinel():
    store = AnswerStore()
    assert store.get_answer("q1") is UNANSWERED
    assert not store.get_answer("q1")


def test_answered_count_counts_distinct_non_empty():
    store = AnswerStore()
    store.set_answer("q1", "opt_1")
    store.set_answer("q2", "opt_2")
    store.set_answer("q1", "opt_3")  # overwrite
    store.set_answer("q3", "")
    store.set_answer("q4", "   ")
    assert store.answered_count() == 2
    assert store.get_answer("q1") == "opt_3"


def test_overwrite_with_empty_drops_from_count():
    store = AnswerStore()
    store.set_answer("q1", "B")
    store.set_answer("q1", "")
    assert store.answered_count() == 0
    assert "q1" in store


def test_option_index_zero_counts_as_answered():
    store = AnswerStore()
    store.set_answer("q1", 0)
    assert store.is_answered("q1")
    assert store.answered_count() == 1


def test_locked_store_ignores_writes():
    store = AnswerStore()
    store.set_answer("q1", "B")
    store.lock()
    assert store.set_answer("q1", "C") is False
    assert store.set_answer("q2", "A") is False
    assert store.snapshot() == {"q1": "B"}


def test_snapshot_is_a_copy():
    store = AnswerStore()
    store.set_answer("q1", "B")
    snap = store.snapshot()
    snap["q2"] = "X"
    assert store.snapshot() == {"q1": "B"}


def test_answered_count_limited_to_ids():
    store = AnswerStore()
    store.set_answer("q1", "B")
    store.set_answer("zz", "B")
    assert store.answered_count(["q1", "q2"]) == 1


def test_reset_clears_and_unlocks():
    store = AnswerStore()
    store.set_answer("q1", "B")
    store.lock()
    store.reset()
    assert len(store) == 0
    assert store.set_answer("q1", "A") is True
