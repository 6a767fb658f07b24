"""Read models used while administrators deliberate."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from ..core.scoring import mean_or_none
from ..errors import NotFoundError
from ..schemas import Applicant, ApplicantId, GraderId
from ..store import RecordStore


@dataclass(slots=True)
class DeliberationEntry:
    applicant_id: ApplicantId
    anonymous_id: str
    first_name: str
    last_name: str
    status: str
    total_score: float | None
    has_decision: bool


@dataclass(slots=True)
class GraderScore:
    grader_id: GraderId
    score: int


@dataclass(slots=True)
class WrittenQuestionDetail:
    question_number: int
    question_text: str
    avg_score: float | None
    grader_scores: list[GraderScore] = field(default_factory=list)


@dataclass(slots=True)
class InterviewNoteDetail:
    question_number: int
    question_text: str
    notes: str


@dataclass(slots=True)
class InterviewGraderDetail:
    grader_id: GraderId
    sub_scores: dict[int, int]
    notes: list[InterviewNoteDetail] = field(default_factory=list)


@dataclass(slots=True)
class InterviewRoundDetail:
    round: int
    avg_score: float | None
    graders: list[InterviewGraderDetail] = field(default_factory=list)


@dataclass(slots=True)
class DeliberationDetail:
    applicant: Applicant
    written_avg: float | None
    interview_avg: float | None
    written_questions: list[WrittenQuestionDetail]
    interview_rounds: list[InterviewRoundDetail]


class DeliberationBoard:
    """Applicant list and per-applicant evidence for deliberation."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def list_applicants(self, cycle: str) -> list[DeliberationEntry]:
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            return []
        decided = {
            d.applicant_id
            for d in self._store.list_decisions([a.applicant_id for a in applicants])
        }
        return [
            DeliberationEntry(
                applicant_id=a.applicant_id,
                anonymous_id=a.anonymous_id,
                first_name=a.first_name,
                last_name=a.last_name,
                status=a.status,
                total_score=a.total_score,
                has_decision=a.applicant_id in decided,
            )
            for a in applicants
        ]

    def detail(self, applicant_id: ApplicantId) -> DeliberationDetail:
        applicant = self._store.get_applicant(applicant_id)
        if applicant is None:
            raise NotFoundError("Application not found.")

        written_text = {
            r.question_number: r.text for r in self._store.list_rubrics("written")
        }
        interview_text = {
            (r.round, r.question_number): r.text for r in self._store.list_rubrics("interview")
        }

        by_question: dict[int, list[GraderScore]] = defaultdict(list)
        questions = set(written_text)
        for grade in self._store.list_written_grades([applicant_id]):
            questions.add(grade.question_number)
            if grade.score is not None:
                by_question[grade.question_number].append(GraderScore(grade.grader_id, grade.score))
        written_questions = [
            WrittenQuestionDetail(
                question_number=q,
                question_text=written_text.get(q, f"Question {q}"),
                avg_score=mean_or_none(gs.score for gs in by_question[q]),
                grader_scores=by_question[q],
            )
            for q in sorted(questions)
        ]
        written_all = [gs.score for scores in by_question.values() for gs in scores]

        assignments = sorted(
            self._store.list_interview_assignments([applicant_id]), key=lambda a: a.round
        )
        assignment_ids = [a.assignment_id for a in assignments]
        scores: dict[str, dict[int, int]] = defaultdict(dict)
        notes: dict[str, list[tuple[int, str]]] = defaultdict(list)
        if assignment_ids:
            for row in self._store.list_interview_scores(assignment_ids):
                if row.score is not None:
                    scores[row.assignment_id][row.sub_section] = row.score
            for row in sorted(
                self._store.list_interview_notes(assignment_ids), key=lambda n: n.question_number
            ):
                notes[row.assignment_id].append((row.question_number, row.notes or ""))

        rounds: dict[int, InterviewRoundDetail] = {}
        interview_all: list[int] = []
        for assignment in assignments:
            detail = rounds.setdefault(
                assignment.round, InterviewRoundDetail(round=assignment.round, avg_score=None)
            )
            sub_scores = dict(sorted(scores[assignment.assignment_id].items()))
            detail.graders.append(
                InterviewGraderDetail(
                    grader_id=assignment.grader_id,
                    sub_scores=sub_scores,
                    notes=[
                        InterviewNoteDetail(
                            question_number=q,
                            question_text=interview_text.get(
                                (assignment.round, q), f"Question {q}"
                            ),
                            notes=text,
                        )
                        for q, text in notes[assignment.assignment_id]
                    ],
                )
            )
            interview_all.extend(sub_scores.values())
        for detail in rounds.values():
            detail.avg_score = mean_or_none(
                s for grader in detail.graders for s in grader.sub_scores.values()
            )

        return DeliberationDetail(
            applicant=applicant,
            written_avg=mean_or_none(written_all),
            interview_avg=mean_or_none(interview_all),
            written_questions=written_questions,
            interview_rounds=list(rounds.values()),
        )
