from clubexam.services.scoreboard import rank_rows
from conftest import create_quiz, create_video, submit_quiz, submit_video


def test_rank_rows_is_stable_for_ties():
    rows = [
        {"usn": "A", "_sort": 50.0},
        {"usn": "B", "_sort": 100.0},
        {"usn": "C", "_sort": 50.0},
        {"usn": "D", "_sort": 75.0},
    ]

    ranked = rank_rows(rows)

    assert [r["usn"] for r in ranked] == ["B", "D", "A", "C"]
    assert [r["rank"] for r in ranked] == [1, 2, 3, 4]
    assert all("_sort" not in r for r in ranked)


def test_quiz_scoreboard(client, admin_headers):
    exam = create_quiz(client, admin_headers, code="SB", correct=("A", "C"))
    submit_quiz(client, exam["id"], "LOW", ["B", "B"], name="Low")
    submit_quiz(client, exam["id"], "TOP", ["A", "C"], name="Top")
    submit_quiz(client, exam["id"], "MID", ["A", None], name="Mid", autoSubmitReason="timeout")

    resp = client.get(f"/exams/{exam['id']}/scoreboard", headers=admin_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["examCode"] == "SB"
    assert body["examType"] == "quiz"
    assert body["totalSubmissions"] == 3
    rows = body["data"]
    assert [r["usn"] for r in rows] == ["TOP", "MID", "LOW"]
    assert [r["percentage"] for r in rows] == ["100.00", "50.00", "0.00"]
    assert [r["rank"] for r in rows] == [1, 2, 3]
    assert rows[1]["autoSubmitted"] is True
    assert rows[1]["autoSubmitReason"] == "timeout"


def test_video_scoreboard_sorts_by_completion(client, admin_headers):
    exam = create_video(client, admin_headers)
    submit_video(client, exam["id"], "HALF", watch_time=50)
    submit_video(client, exam["id"], "FULL", watch_time=100)

    rows = client.get(f"/exams/{exam['id']}/scoreboard", headers=admin_headers).json()["data"]

    assert [r["usn"] for r in rows] == ["FULL", "HALF"]
    assert rows[0]["completionPercentage"] == "100.00"
    assert rows[1]["watchTime"] == 50


def test_scoreboard_counts_integrity_events(client, admin_headers):
    exam = create_quiz(client, admin_headers, correct=("A",))
    submit_quiz(client, exam["id"], "CLEAN", ["A"])
    submit_quiz(client, exam["id"], "NOISY", ["A"])
    for event in ("tab_hidden", "copy"):
        resp = client.post(f"/exams/{exam['id']}/integrity-events", json={"usn": "noisy", "eventType": event})
        assert resp.status_code == 201

    rows = client.get(f"/exams/{exam['id']}/scoreboard", headers=admin_headers).json()["data"]

    counts = {r["usn"]: r["integrityEvents"] for r in rows}
    assert counts == {"CLEAN": 0, "NOISY": 2}


def test_scoreboard_needs_admin(client, admin_headers):
    exam = create_quiz(client, admin_headers, correct=("A",))

    assert client.get(f"/exams/{exam['id']}/scoreboard").status_code == 401
    assert client.get("/exams/999/scoreboard", headers=admin_headers).status_code == 404


def test_integrity_events_grouped_by_student(client, admin_headers):
    exam = create_video(client, admin_headers)
    url = f"/exams/{exam['id']}/integrity-events"
    client.post(url, json={"usn": "A1", "eventType": "window_blur"})
    client.post(url, json={"usn": "B2", "eventType": "tab_hidden", "details": "visibilitychange"})
    client.post(url, json={"usn": "B2", "eventType": "screenshot_key", "details": "PrintScreen"})

    body = client.get(url, headers=admin_headers).json()

    assert body["studentsWithEvents"] == 2
    assert body["data"][0]["usn"] == "B2"
    assert body["data"][0]["eventCount"] == 2
    assert [e["eventType"] for e in body["data"][0]["events"]] == ["tab_hidden", "screenshot_key"]


def test_unknown_integrity_event_type_is_rejected(client, admin_headers):
    exam = create_video(client, admin_headers)

    resp = client.post(f"/exams/{exam['id']}/integrity-events", json={"usn": "A1", "eventType": "telepathy"})

    assert resp.status_code == 400
