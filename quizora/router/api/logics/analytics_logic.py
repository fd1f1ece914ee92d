from collections import defaultdict, Counter
from datetime import timedelta
from typing import Dict, Any, List, Optional
import re

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from quizora.constants import GRADE_BOUNDARIES
from quizora.model.questions import Question
from quizora.model.results import Result
from quizora.model.users import User
from quizora.timeutil import utcnow

TIME_RANGE_PATTERN = re.compile(r"^(\d+)d$")
RECENT_LIMIT = 10
TOP_PERFORMERS_LIMIT = 10
QUESTION_ANALYTICS_LIMIT = 10


def _rate(correct: int, total: int) -> float:
    return round(correct / total * 100, 1) if total else 0


def _average(values: List[int]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def _load_results(db: Session, lecturer: User, module_code: Optional[str], time_range: Optional[str]) -> List[Result]:
    query = (
        db.query(Result)
        .options(selectinload(Result.answers))
        .filter(Result.lecturer_id == lecturer.user_id)
    )
    if module_code and module_code != "all":
        query = query.filter(Result.module_code == module_code.strip().upper())
    if time_range and time_range != "all":
        match = TIME_RANGE_PATTERN.match(time_range.strip())
        if not match:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid time range. Use a number of days such as 7d or 30d"
            )
        query = query.filter(Result.created_at >= utcnow() - timedelta(days=int(match.group(1))))
    return query.order_by(Result.created_at.desc(), Result.result_id.desc()).all()


def _bucket_stats(results: List[Result]) -> Dict[str, Any]:
    answers = [a for r in results for a in r.answers]
    return {
        "submissions": len(results),
        "average_score": _average([r.percentage for r in results]),
        "correct_answer_rate": _rate(sum(1 for a in answers if a.is_correct), len(answers)),
    }


def _overall_stats(results: List[Result]) -> Dict[str, Any]:
    answers = [a for r in results for a in r.answers]
    correct = sum(1 for a in answers if a.is_correct)
    percentages = [r.percentage for r in results]
    return {
        "total_submissions": len(results),
        "correct_answers": correct,
        "correct_answer_rate": _rate(correct, len(answers)),
        "average_score": _average(percentages),
        "highest_score": max(percentages) if percentages else 0,
        "lowest_score": min(percentages) if percentages else 0,
        "unique_students": len({r.student_id for r in results}),
    }


def _question_analytics(db: Session, lecturer: User, results: List[Result]) -> List[Dict[str, Any]]:
    per_question: Dict[int, Dict[str, Any]] = {}
    for result in results:
        for answer in result.answers:
            entry = per_question.setdefault(answer.question_id, {
                "question_id": answer.question_id,
                "question_text": answer.question_text,
                "question_type": answer.question_type,
                "attempts": 0,
                "correct_count": 0,
            })
            entry["attempts"] += 1
            entry["correct_count"] += int(answer.is_correct)

    if not per_question:
        return []

    # only questions that still exist, are active and belong to the lecturer
    live = {
        q.question_id: q
        for q in db.query(Question).filter(
            Question.question_id.in_(per_question.keys()),
            Question.created_by == lecturer.user_id,
            Question.is_active == True,
        )
    }
    rows = []
    for question_id, entry in per_question.items():
        question = live.get(question_id)
        if question is None:
            continue
        rows.append({
            **entry,
            "difficulty": question.difficulty,
            "success_rate": _rate(entry["correct_count"], entry["attempts"]),
            "can_delete": True,
        })
    rows.sort(key=lambda row: (row["success_rate"], row["question_id"]))
    return rows[:QUESTION_ANALYTICS_LIMIT]


def analytics_logic(
    db: Session, lecturer: User, module_code: Optional[str], time_range: Optional[str]
) -> Dict[str, Any]:
    """Aggregate a lecturer's results for the analytics dashboard.

    Args:
        db (Session): Database session
        lecturer (User): Whose results to aggregate
        module_code (str, optional): Restrict to one module code, "all" for every module
        time_range (str, optional): Look-back window such as "30d", "all" for no limit

    Raises:
        HTTPException: 400 for a malformed time range

    Returns:
        Dict[str, Any]: overall stats, per-module performance, grade distribution,
        recent submissions, daily trends, top performers and the hardest questions
    """
    results = _load_results(db, lecturer, module_code, time_range)

    by_module: Dict[str, List[Result]] = defaultdict(list)
    by_day: Dict[str, List[Result]] = defaultdict(list)
    by_student: Dict[str, List[Result]] = defaultdict(list)
    for result in results:
        by_module[result.module_code].append(result)
        by_day[result.created_at.strftime("%Y-%m-%d")].append(result)
        by_student[result.student_id].append(result)

    module_performance = [
        {"module_code": code, **_bucket_stats(items)} for code, items in sorted(by_module.items())
    ]

    grade_counts = Counter(r.grade for r in results)
    grade_order = [grade for _, grade in GRADE_BOUNDARIES] + ["F"]
    grade_distribution = [
        {"grade": grade, "count": grade_counts[grade]} for grade in grade_order if grade_counts[grade]
    ]

    recent_submissions = [
        {
            "result_id": r.result_id,
            "student_name": r.student_name,
            "quiz_title": r.quiz_title,
            "module_code": r.module_code,
            "percentage": r.percentage,
            "grade": r.grade,
            "time_taken": r.time_taken,
            "created_at": r.created_at,
            "total_questions": len(r.answers),
            "correct_answers": r.correct_answers,
            "correct_answer_rate": r.correct_answer_rate,
        }
        for r in results[:RECENT_LIMIT]
    ]

    performance_trends = [{"date": day, **_bucket_stats(items)} for day, items in sorted(by_day.items())]

    top_performers = sorted(
        (
            {
                "student_id": student_id,
                "student_name": items[0].student_name,
                "highest_score": max(r.percentage for r in items),
                "average_score": _average([r.percentage for r in items]),
                "total_submissions": len(items),
            }
            for student_id, items in by_student.items()
        ),
        key=lambda row: (-row["highest_score"], -row["average_score"], row["student_name"]),
    )[:TOP_PERFORMERS_LIMIT]

    return {
        "success": True,
        "analytics": {
            "overall_stats": _overall_stats(results),
            "module_performance": module_performance,
            "grade_distribution": grade_distribution,
            "recent_submissions": recent_submissions,
            "performance_trends": performance_trends,
            "top_performers": top_performers,
            "question_analytics": _question_analytics(db, lecturer, results),
        },
    }
