"""Catalogue of exam topics and the toolkit entry point behind each one.

A front end can build its menus from :data:`EXAM_TOPICS` instead of
hard-coding them; ``runner`` names a function in :mod:`nm_toolkit.forms` and
``method`` the tag to pass to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from . import forms

__all__ = ["Topic", "ExamTopics", "EXAM_TOPICS", "exam", "find_topic"]


@dataclass(frozen=True)
class Topic:
    title: str
    runner: Optional[str] = None
    method: Optional[str] = None
    subtopics: tuple["Topic", ...] = ()

    def resolve(self):
        """Return the :mod:`nm_toolkit.forms` runner for this topic, if any."""
        return getattr(forms, self.runner) if self.runner else None


@dataclass(frozen=True)
class ExamTopics:
    id: int
    title: str
    topics: tuple[Topic, ...] = field(default_factory=tuple)

    def walk(self):
        """Yield every topic depth first."""
        stack = list(reversed(self.topics))
        while stack:
            topic = stack.pop()
            yield topic
            stack.extend(reversed(topic.subtopics))


def _leaf(title: str, runner: str, method: Optional[str] = None) -> Topic:
    return Topic(title=title, runner=runner, method=method)


EXAM_TOPICS: tuple[ExamTopics, ...] = (
    ExamTopics(
        1,
        "First Exam Topics",
        (
            _leaf("Algebra of Matrices", "run_matrix_operation"),
            Topic(
                "Direct Methods for Solving Linear Systems",
                subtopics=(
                    _leaf("Gauss Elimination Method", "run_linear_system", "gauss"),
                    _leaf("Gauss Elimination with Maximum Pivot Strategy", "run_linear_system", "gauss-pivot"),
                    _leaf("Gauss-Jordan Method", "run_linear_system", "gauss-jordan"),
                ),
            ),
            Topic(
                "Iterative Methods for Solving Linear Systems",
                subtopics=(
                    _leaf("Gauss-Seidel Method", "run_linear_system", "gauss-seidel"),
                    _leaf("Jacobi Method", "run_linear_system", "jacobi"),
                ),
            ),
        ),
    ),
    ExamTopics(
        2,
        "Second Exam Topics",
        (
            Topic(
                "Approximation Methods (Roots of Single Equation)",
                subtopics=(
                    _leaf("Bisection Method", "run_root_finding", "bisection"),
                    _leaf("Secant Method", "run_root_finding", "secant"),
                    _leaf("Newton-Raphson Method", "run_root_finding", "newton"),
                ),
            ),
            Topic(
                "Curve Fitting (Least Squares)",
                subtopics=(
                    _leaf("Linear (y = C1 + C2x)", "run_curve_fit", "linear"),
                    _leaf("Quadratic", "run_curve_fit", "quadratic"),
                    _leaf("Exponential", "run_curve_fit", "exponential"),
                    _leaf("Custom Basis Functions", "run_curve_fit", "custom"),
                ),
            ),
            Topic(
                "Interpolation",
                subtopics=(
                    _leaf("Newton's Divided Difference Polynomial", "run_interpolation", "newton"),
                    _leaf("Lagrange Interpolating Polynomial", "run_interpolation", "lagrange"),
                ),
            ),
        ),
    ),
    ExamTopics(
        3,
        "Third Exam Topics",
        (
            Topic(
                "Numerical Differentiation",
                subtopics=(_leaf("Finite Divided Difference", "run_differentiation"),),
            ),
            Topic(
                "Numerical Integration",
                subtopics=(
                    _leaf("Trapezoidal Rule", "run_integration", "trapezoidal"),
                    _leaf("Simpson's 1/3 Rule", "run_integration", "simpson13"),
                    _leaf("Simpson's 3/8 Rule", "run_integration", "simpson38"),
                    _leaf("Romberg Integration", "run_integration", "romberg"),
                ),
            ),
        ),
    ),
    ExamTopics(
        4,
        "Fourth Exam Topics",
        (
            _leaf("4th Order Runge-Kutta (Classical RK Method)", "run_rk4"),
            _leaf("Higher Order ODEs", "run_rk4_second_order"),
        ),
    ),
)


def exam(exam_id: int) -> ExamTopics:
    for group in EXAM_TOPICS:
        if group.id == exam_id:
            return group
    raise KeyError(f"No exam with id {exam_id!r}")


def find_topic(title: str) -> Topic:
    """Look up a topic by its exact title across all exams."""
    for group in EXAM_TOPICS:
        for topic in group.walk():
            if topic.title == title:
                return topic
    raise KeyError(f"No topic titled {title!r}")
