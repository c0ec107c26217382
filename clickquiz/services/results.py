"""
Result summaries computed from a session's attempt log.
"""

from clickquiz.errors import ResultNotFoundError
from clickquiz.models.schemas import StepHistory, TestAttempt, TestResult, TestResultCreate, TestSession
from clickquiz.storage import RecordStore
from clickquiz.utils.helpers import calculate_accuracy


def summarize_attempts(session: TestSession, attempts: list[TestAttempt]) -> TestResultCreate:
    """
    Aggregate attempts into a result record.

    Average step time is the mean time per attempt, in milliseconds.
    """
    correct = sum(1 for a in attempts if a.is_correct)
    total_time = sum(a.time_spent for a in attempts)

    return TestResultCreate(
        session_id=session.id,
        total_correct=correct,
        total_incorrect=len(attempts) - correct,
        total_time=total_time,
        average_step_time=total_time // len(attempts) if attempts else 0,
        accuracy=calculate_accuracy(correct, len(attempts)),
    )


def step_history(session: TestSession, attempts: list[TestAttempt]) -> list[StepHistory]:
    """
    Describe every finished step using its last attempt.

    Steps without attempts are left out.
    """
    history = []
    for step in range(1, session.current_step):
        step_attempts = [a for a in attempts if a.step_number == step]
        if not step_attempts:
            continue
        last = step_attempts[-1]
        history.append(StepHistory(
            step_number=step,
            label=f"Step {step}",
            is_correct=last.is_correct,
            time_spent=round(last.time_spent / 1000, 1),
            attempts=len(step_attempts),
        ))
    return history


def latest_result(records: RecordStore, session_id: int) -> TestResult:
    """Most recently stored result for a session."""
    result = records.get_result(session_id)
    if result is None:
        raise ResultNotFoundError(session_id)
    return result
