"""Opaque identifier types shared across the engine."""

from __future__ import annotations

from typing import NewType

ApplicantId = NewType("ApplicantId", str)
GraderId = NewType("GraderId", str)
GradeId = NewType("GradeId", str)
AssignmentId = NewType("AssignmentId", str)

__all__ = ["ApplicantId", "GraderId", "GradeId", "AssignmentId"]
