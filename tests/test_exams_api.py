from conftest import create_quiz, create_video, make_question, submit_quiz


def test_admin_routes_need_a_token(client):
    resp = client.get("/exams")

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Not authenticated"}


def test_create_quiz_normalizes_code(client, admin_headers):
    resp = client.post(
        "/exams",
        json={"examName": " Weekly Quiz ", "examCode": " wk1 ", "examType": "quiz", "duration": 10},
        headers=admin_headers,
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "Quiz exam created successfully"
    assert body["data"]["examCode"] == "WK1"
    assert body["data"]["examName"] == "Weekly Quiz"
    assert body["data"]["questions"] == []
    assert body["data"]["isActive"] is True


def test_duplicate_exam_code_is_rejected(client, admin_headers):
    create_quiz(client, admin_headers, code="DUP")

    resp = client.post(
        "/exams",
        json={"examName": "Other", "examCode": "dup", "examType": "quiz", "duration": 5},
        headers=admin_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Exam code already exists"


def test_video_exam_requires_link(client, admin_headers):
    resp = client.post(
        "/exams",
        json={"examName": "Talk", "examCode": "V1", "examType": "video", "duration": 30},
        headers=admin_headers,
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert any("videoLink is required" in e for e in body["errors"])


def test_exam_by_code_strips_correct_options(client, admin_headers):
    create_quiz(client, admin_headers, code="PUBLIC", correct=("B", "D"))

    resp = client.get("/exams/code/public")

    assert resp.status_code == 200
    questions = resp.json()["data"]["questions"]
    assert [q["question"] for q in questions] == ["Q1", "Q2"]
    assert all("correctOption" not in q for q in questions)


def test_admin_view_includes_correct_options(client, admin_headers):
    exam = create_quiz(client, admin_headers, correct=("B", "D"))

    resp = client.get(f"/exams/{exam['id']}", headers=admin_headers)

    assert [q["correctOption"] for q in resp.json()["data"]["questions"]] == ["B", "D"]


def test_inactive_exam_cannot_be_found_by_code(client, admin_headers):
    exam = create_video(client, admin_headers, code="TOGGLE")

    resp = client.patch(f"/exams/{exam['id']}/toggle-status", headers=admin_headers)
    assert resp.json()["message"] == "Exam deactivated successfully"
    assert client.get("/exams/code/TOGGLE").status_code == 404

    client.patch(f"/exams/{exam['id']}/toggle-status", headers=admin_headers)
    assert client.get("/exams/code/TOGGLE").status_code == 200


def test_replace_questions(client, admin_headers):
    exam = create_quiz(client, admin_headers, correct=("A", "B", "C"))

    resp = client.put(
        f"/exams/{exam['id']}/questions",
        json={"questions": [make_question("Only one", "D")]},
        headers=admin_headers,
    )

    assert resp.status_code == 200
    questions = resp.json()["data"]["questions"]
    assert len(questions) == 1
    assert questions[0]["correctOption"] == "D"


def test_questions_cannot_change_after_a_submission(client, admin_headers):
    exam = create_quiz(client, admin_headers, correct=("A", "C"))
    assert submit_quiz(client, exam["id"], "1AB001", ["A", "C"]).status_code == 201

    resp = client.post(
        f"/exams/{exam['id']}/questions",
        json={"questions": [make_question("Late", "A")]},
        headers=admin_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Questions cannot be changed after students have submitted"


def test_questions_only_for_quiz(client, admin_headers):
    exam = create_video(client, admin_headers)

    resp = client.post(
        f"/exams/{exam['id']}/questions",
        json={"questions": [make_question("Q", "A")]},
        headers=admin_headers,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "Questions can only be added to quiz type exams"


def test_delete_exam_cascades_to_submissions(client, admin_headers):
    exam = create_quiz(client, admin_headers, correct=("A", "C"))
    submit_quiz(client, exam["id"], "1AB001", ["A", "C"])
    submit_quiz(client, exam["id"], "1AB002", ["B", "C"])

    resp = client.delete(f"/exams/{exam['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["message"] == "Exam and 2 submission(s) deleted successfully"
    assert client.get(f"/exams/{exam['id']}", headers=admin_headers).status_code == 404
    assert client.get(f"/exams/{exam['id']}/check-submission/1AB001").status_code == 404


def test_list_and_clear_all(client, admin_headers):
    create_quiz(client, admin_headers, code="ONE")
    create_video(client, admin_headers, code="TWO")

    listed = client.get("/exams", headers=admin_headers).json()
    assert listed["count"] == 2

    resp = client.delete("/exams/clear/all", headers=admin_headers)
    assert resp.json()["data"] == {"examsDeleted": 2, "submissionsDeleted": 0}
    assert client.get("/exams", headers=admin_headers).json()["count"] == 0
