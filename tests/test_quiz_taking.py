from datetime import timedelta

import pytest

from quizora.constants import letter_grade
from quizora.timeutil import utcnow
from tests.conftest import bearer


def _started(minutes_ago: int = 2) -> str:
    return (utcnow() - timedelta(minutes=minutes_ago)).isoformat()


@pytest.fixture()
def questions(make_question):
    return [
        make_question(question_text="Q1"),
        make_question(question_text="Q2", options=[
            {"text": "Alpha", "is_correct": False},
            {"text": "Beta", "is_correct": True},
        ]),
    ]


def _submit(client, headers, quiz, answers, minutes_ago=2):
    return client.post(
        f"/api/quizzes/{quiz.quiz_id}/submit",
        json={"answers": answers, "start_time": _started(minutes_ago)},
        headers=headers,
    )


class TestAvailableQuizzes:
    def test_only_eligible_upcoming_and_running(self, client, student_headers, make_quiz):
        make_quiz(title="Running")
        make_quiz(title="Upcoming", start_offset=timedelta(hours=1))
        make_quiz(title="Finished", start_offset=timedelta(hours=-3))
        make_quiz(title="Other degree", criteria=[("COM-102", 2, 1)])
        make_quiz(title="Other year", criteria=[("COM-101", 3, 1)])
        make_quiz(title="Cancelled", status="cancelled")

        body = client.get("/api/quizzes/student/available", headers=student_headers).json()
        assert [q["title"] for q in body["quizzes"]] == ["Running", "Upcoming"]
        assert all("passcode" not in q for q in body["quizzes"])
        assert body["quizzes"][0]["attempts_taken"] == 0

    def test_quiz_with_several_matching_rows_listed_once(self, client, student_headers, make_quiz):
        make_quiz(criteria=[("COM-101", 2, 1), ("COM-102", 2, 1)])
        assert client.get("/api/quizzes/student/available", headers=student_headers).json()["count"] == 1

    def test_lecturers_are_refused(self, client, lecturer_headers):
        assert client.get("/api/quizzes/student/available", headers=lecturer_headers).status_code == 403


class TestVerifyPasscode:
    def _verify(self, client, headers, quiz, passcode="secret"):
        return client.post(f"/api/quizzes/{quiz.quiz_id}/verify-passcode", json={"passcode": passcode}, headers=headers)

    def test_correct_passcode(self, client, student_headers, make_quiz):
        response = self._verify(client, student_headers, make_quiz())
        assert response.status_code == 200
        assert "passcode" not in response.json()["quiz"]

    def test_passcode_is_trimmed(self, client, student_headers, make_quiz):
        assert self._verify(client, student_headers, make_quiz(), " secret ").status_code == 200

    def test_wrong_passcode(self, client, student_headers, make_quiz):
        response = self._verify(client, student_headers, make_quiz(), "guess")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid passcode"

    def test_missing_quiz(self, client, student_headers):
        response = client.post("/api/quizzes/999/verify-passcode", json={"passcode": "x"}, headers=student_headers)
        assert response.status_code == 404

    def test_not_eligible(self, client, student_headers, make_quiz):
        response = self._verify(client, student_headers, make_quiz(criteria=[("COM-102", 2, 1)]))
        assert response.status_code == 403
        assert response.json()["message"] == "You are not eligible for this quiz"

    def test_not_started(self, client, student_headers, make_quiz):
        response = self._verify(client, student_headers, make_quiz(start_offset=timedelta(hours=1)))
        assert response.status_code == 400
        assert response.json()["message"] == "Quiz has not started yet"

    def test_ended(self, client, student_headers, make_quiz):
        response = self._verify(client, student_headers, make_quiz(start_offset=timedelta(hours=-3)))
        assert response.json()["message"] == "Quiz has ended"

    def test_cancelled_before_passcode(self, client, student_headers, make_quiz):
        response = self._verify(client, student_headers, make_quiz(status="cancelled"), "wrong")
        assert response.status_code == 400
        assert response.json()["message"] == "This quiz has been cancelled by the instructor"

    def test_already_taken_returns_previous_result(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz()
        _submit(client, student_headers, quiz, [{"question_id": questions[0].question_id, "answer": "Right"}])

        response = self._verify(client, student_headers, quiz)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "You have already taken this quiz"
        assert body["result"]["grade"] == "A+"


class TestQuizQuestions:
    def test_answers_are_hidden(self, client, student_headers, make_quiz, questions, make_question):
        make_question("Essay")
        body = client.get(f"/api/quizzes/{make_quiz().quiz_id}/questions", headers=student_headers).json()
        assert body["count"] == 3
        assert body["duration"] == 30
        for question in body["questions"]:
            assert "answer" not in question
            assert all(set(option) == {"text"} for option in question["options"])

    def test_shuffled_quiz_has_same_questions(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz(shuffle_questions=True)
        body = client.get(f"/api/quizzes/{quiz.quiz_id}/questions", headers=student_headers).json()
        assert sorted(q["question_id"] for q in body["questions"]) == sorted(q.question_id for q in questions)

    def test_refused_after_submission(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz()
        _submit(client, student_headers, quiz, [])
        response = client.get(f"/api/quizzes/{quiz.quiz_id}/questions", headers=student_headers)
        assert response.status_code == 400


class TestSubmitQuiz:
    def test_grades_mcq_answers(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz()
        response = _submit(client, student_headers, quiz, [
            {"question_id": questions[0].question_id, "answer": " Right "},
            {"question_id": questions[1].question_id, "answer": "Alpha"},
        ])
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["score"] == 1
        assert result["total_marks"] == 2
        assert result["percentage"] == 50
        assert result["grade"] == "C-"
        assert result["submission_type"] == "normal"

    def test_unknown_and_repeated_questions_are_skipped(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz()
        q1 = questions[0].question_id
        result = _submit(client, student_headers, quiz, [
            {"question_id": q1, "answer": "Right"},
            {"question_id": q1, "answer": "Wrong"},
            {"question_id": 9999, "answer": "Right"},
        ]).json()["result"]
        assert result["score"] == 1
        assert result["total_marks"] == 1

    def test_essay_answers_are_not_auto_marked(self, client, student_headers, make_quiz, make_question):
        essay = make_question("Essay")
        result = _submit(client, student_headers, make_quiz(), [
            {"question_id": essay.question_id, "answer": "Model answer"},
        ]).json()["result"]
        assert result["score"] == 0
        assert result["grade"] == "F"

    def test_empty_submission(self, client, student_headers, make_quiz, questions):
        result = _submit(client, student_headers, make_quiz(), []).json()["result"]
        assert result["total_marks"] == 0
        assert result["percentage"] == 0

    def test_time_taken_measured_by_server(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz(start_offset=timedelta(minutes=-20))
        response = client.post(
            f"/api/quizzes/{quiz.quiz_id}/submit",
            json={"answers": [], "start_time": _started(10), "time_taken": 999},
            headers=student_headers,
        )
        assert response.json()["result"]["time_taken"] == 10

    def test_single_attempt(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz()
        assert _submit(client, student_headers, quiz, []).status_code == 200
        response = _submit(client, student_headers, quiz, [])
        assert response.status_code == 400
        assert response.json()["message"] == "Quiz already submitted"

    def test_multiple_attempts(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz(max_attempts=2)
        assert _submit(client, student_headers, quiz, []).status_code == 200
        assert _submit(client, student_headers, quiz, []).status_code == 200
        assert _submit(client, student_headers, quiz, []).status_code == 400

    def test_before_start(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(start_offset=timedelta(hours=1)), [])
        assert response.status_code == 400
        assert response.json()["message"] == "Quiz submission outside allowed time period"

    def test_after_end_without_late_submission(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz(start_offset=timedelta(minutes=-70))
        response = _submit(client, student_headers, quiz, [])
        assert response.json()["message"] == "Quiz submission outside allowed time period"

    def test_late_submission(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz(start_offset=timedelta(minutes=-70), allow_late_submission=True)
        response = _submit(client, student_headers, quiz, [], minutes_ago=15)
        assert response.status_code == 200
        assert response.json()["result"]["submission_type"] == "late"

    def test_late_submission_needs_start_inside_window(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz(start_offset=timedelta(days=-10), allow_late_submission=True)
        response = _submit(client, student_headers, quiz, [
            {"question_id": questions[0].question_id, "answer": "Right"},
        ], minutes_ago=1)
        assert response.status_code == 400
        assert response.json()["message"] == "Quiz start time must fall within the quiz window"

    def test_start_time_before_quiz_start(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(), [], minutes_ago=60)
        assert response.status_code == 400
        assert response.json()["message"] == "Quiz start time must fall within the quiz window"

    def test_start_time_in_future(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(), [], minutes_ago=-10)
        assert response.status_code == 400

    def test_personal_deadline_exceeded(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(start_offset=timedelta(minutes=-50)), [], minutes_ago=40)
        assert response.status_code == 400
        assert response.json()["message"] == "Quiz submission time exceeded. Quiz has been auto-submitted."

    def test_grace_period(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(start_offset=timedelta(minutes=-50)), [], minutes_ago=30)
        assert response.status_code == 200

    def test_cancelled(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(status="cancelled"), [])
        assert response.json()["message"] == "This quiz has been cancelled by the instructor"

    def test_not_eligible(self, client, student_headers, make_quiz, questions):
        response = _submit(client, student_headers, make_quiz(criteria=[("COM-101", 1, 1)]), [])
        assert response.status_code == 403


class TestResults:
    def test_student_results(self, client, student_headers, make_quiz, questions):
        quiz = make_quiz()
        _submit(client, student_headers, quiz, [
            {"question_id": questions[0].question_id, "answer": "Right"},
            {"question_id": questions[1].question_id, "answer": "Alpha"},
        ])
        body = client.get("/api/quizzes/student/results", headers=student_headers).json()
        assert body["count"] == 1
        result = body["results"][0]
        assert result["quiz_title"] == "Midterm"
        assert result["total_questions"] == 2
        assert result["correct_answers"] == 1
        assert result["correct_answer_rate"] == 50

    def test_lecturer_results_sorted_by_percentage(
        self, client, lecturer_headers, student, make_user, make_quiz, questions
    ):
        quiz = make_quiz()
        weaker = make_user("student")
        _submit(client, bearer(weaker), quiz, [{"question_id": questions[0].question_id, "answer": "Wrong"}])
        _submit(client, bearer(student), quiz, [{"question_id": questions[0].question_id, "answer": "Right"}])

        body = client.get(f"/api/quizzes/{quiz.quiz_id}/results", headers=lecturer_headers).json()
        assert [r["student_id"] for r in body["results"]] == [student.user_id, weaker.user_id]
        assert body["results"][0]["student_name"] == student.full_name

    def test_other_lecturer_cannot_see_results(self, client, make_quiz, make_user):
        quiz = make_quiz()
        response = client.get(f"/api/quizzes/{quiz.quiz_id}/results", headers=bearer(make_user("lecturer")))
        assert response.status_code == 404


@pytest.mark.parametrize("percentage,grade", [
    (100, "A+"), (90, "A+"), (89, "A"), (80, "A-"), (75, "B+"), (70, "B"), (65, "B-"),
    (60, "C+"), (55, "C"), (50, "C-"), (45, "D+"), (40, "D"), (39, "F"), (0, "F"),
])
def test_letter_grade(percentage, grade):
    assert letter_grade(percentage) == grade
