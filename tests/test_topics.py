from __future__ import annotations

from importlib import import_module

import pytest

topics = import_module("nm_toolkit.topics")
forms = import_module("nm_toolkit.forms")


def test_four_exam_groups() -> None:
    assert [group.id for group in topics.EXAM_TOPICS] == [1, 2, 3, 4]
    assert topics.exam(3).title == "Third Exam Topics"
    with pytest.raises(KeyError):
        topics.exam(5)


def test_every_leaf_topic_resolves_to_a_form_runner() -> None:
    for group in topics.EXAM_TOPICS:
        for topic in group.walk():
            if topic.subtopics:
                assert topic.runner is None
                continue
            runner = topic.resolve()
            assert callable(runner)
            assert runner is getattr(forms, topic.runner)


def test_walk_is_depth_first() -> None:
    titles = [t.title for t in topics.exam(1).walk()]
    assert titles[:5] == [
        "Algebra of Matrices",
        "Direct Methods for Solving Linear Systems",
        "Gauss Elimination Method",
        "Gauss Elimination with Maximum Pivot Strategy",
        "Gauss-Jordan Method",
    ]


def test_find_topic_carries_the_method_tag() -> None:
    jacobi = topics.find_topic("Jacobi Method")
    assert (jacobi.runner, jacobi.method) == ("run_linear_system", "jacobi")
    outcome = jacobi.resolve()([["4", "1", "1"], ["1", "3", "2"]], jacobi.method, "0.0001")
    assert outcome.ok

    with pytest.raises(KeyError):
        topics.find_topic("Fourier Series")
