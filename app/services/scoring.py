from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Sequence

from app.core.constants import QuestionTypeEnum
from app.schemas.exam import QuestionDefinition
from app.schemas.exam_attempt import Answer, BooleanAnswer, GradeResult, OptionAnswer, QuestionResult


def selected_index(question: QuestionDefinition, answer: Optional[Answer]) -> Optional[int]:
    """Map a submitted answer onto an option index of ``question``.

    Returns None for a missing answer or one that does not fit the question.
    """
    if answer is None:
        return None
    if isinstance(answer, BooleanAnswer):
        if question.question_type != QuestionTypeEnum.TRUE_FALSE:
            return None
        wanted = "true" if answer.value else "false"
        labels = [o.strip().lower() for o in question.options]
        return labels.index(wanted) if wanted in labels else None
    if isinstance(answer, OptionAnswer) and 0 <= answer.selected_option < len(question.options):
        return answer.selected_option
    return None


def percentage(earned: int, total: int) -> int:
    if total <= 0:
        return 0
    ratio = Decimal(earned * 100) / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ScoringService:
    """Grades answer sets. Pure: no I/O and no clock."""

    def grade(
        self,
        questions: Sequence[QuestionDefinition],
        answers: Mapping[str, Answer],
        passing_score: int,
    ) -> GradeResult:
        results = []
        earned = 0
        total = 0
        correct_count = 0

        for question in questions:
            total += question.points
            answer = answers.get(question.key)
            selected = selected_index(question, answer)
            correct = selected is not None and selected == question.correct_answer
            if correct:
                earned += question.points
                correct_count += 1

            results.append(QuestionResult(
                question_key=question.key,
                answered=answer is not None,
                correct=correct,
                points_awarded=question.points if correct else 0,
                points_possible=question.points,
                selected_option=selected,
                correct_answer=question.correct_answer,
                explanation=question.explanation,
            ))

        score = percentage(earned, total)
        return GradeResult(
            score=score,
            passed=score >= passing_score,
            correct_count=correct_count,
            earned_points=earned,
            total_points=total,
            results=results,
        )


scoring_service = ScoringService()
