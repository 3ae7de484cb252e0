import logging
import math
import uuid
from dataclasses import dataclass
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.exceptions import NotFoundError
from app.models import Answer, Project, Question

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    score: int
    explanation: str


@dataclass
class ProjectEvaluation:
    count: int
    average_score: float


def _tokens(text: str) -> set[str]:
    return {w for w in text.lower().split() if len(w) > 3}


def evaluate_answer(ai_text: str, human_text: str) -> EvaluationResult:
    """Score an AI answer against a human override, 0-100.

    70% weight on how many of the human answer's words the AI answer contains,
    30% on how close the two are in length.
    """
    if not ai_text or not human_text:
        return EvaluationResult(0, "Missing AI or human text for comparison.")

    ai_words = _tokens(ai_text)
    human_words = _tokens(human_text)

    if not human_words:
        return EvaluationResult(50, "Human override too short for meaningful comparison.")

    matches = len(human_words & ai_words)
    overlap_score = matches / len(human_words) * 100

    length_ratio = min(len(ai_text), len(human_text)) / max(len(ai_text), len(human_text))
    length_score = length_ratio * 100

    # Half-up rounding
    final_score = math.floor(overlap_score * 0.7 + length_score * 0.3 + 0.5)

    if final_score > 80:
        explanation = "High alignment. The AI correctly identified key information consistent with the human override."
    elif final_score > 50:
        explanation = "Partial alignment. The AI captured some relevant keywords but differed in detail or framing."
    else:
        explanation = "Low alignment. Significant differences between the AI-generated answer and the human override."

    if len(ai_words) > len(human_words) * 2:
        explanation += " AI result was notably wordier than ground truth."

    return EvaluationResult(final_score, explanation)


async def run_project_evaluation(db: AsyncSession, project_id: uuid.UUID) -> ProjectEvaluation:
    """Score every answer in the project that has a manual override and store the result."""
    project = await db.get(Project, project_id)
    if not project:
        raise NotFoundError("Project not found")

    result = await db.execute(
        select(Answer)
        .join(Question, Question.id == Answer.question_id)
        .where(Question.project_id == project_id, Answer.manual_text.is_not(None))
    )
    answers = result.scalars().all()

    total_score = 0
    count = 0
    for answer in answers:
        evaluation = evaluate_answer(answer.text, answer.manual_text)
        answer.eval_score = evaluation.score
        answer.eval_explanation = evaluation.explanation
        total_score += evaluation.score
        count += 1

    await db.commit()

    average_score = total_score / count if count > 0 else 0
    logger.info("Evaluated project %s: count=%d average=%.1f", project_id, count, average_score)
    return ProjectEvaluation(count=count, average_score=average_score)
