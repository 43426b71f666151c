from clubexam.client.api import NetworkError
from clubexam.client.scoreboard import LiveScoreboard, export_filename, scoreboard_to_csv

QUIZ_BOARD = {
    "examCode": "WK1",
    "examType": "quiz",
    "data": [
        {"rank": 1, "usn": "1AB001", "studentName": "Asha", "score": 2, "totalQuestions": 2, "percentage": "100.00",
         "timeTaken": 3, "submittedAt": "2024-05-01T09:03:00", "autoSubmitted": False, "autoSubmitReason": "manual"},
        {"rank": 2, "usn": "1AB002", "studentName": "Ravi, K", "score": 1, "totalQuestions": 2, "percentage": "50.00",
         "timeTaken": 5, "submittedAt": "2024-05-01T09:05:00", "autoSubmitted": True, "autoSubmitReason": "timeout"},
    ],
}

VIDEO_BOARD = {
    "examCode": "TALK",
    "examType": "video",
    "data": [
        {"rank": 1, "usn": "1AB003", "studentName": "Meera", "watchTime": 125, "totalVideoDuration": 150.0,
         "completionPercentage": "83.33", "timeTaken": 4, "submittedAt": "2024-05-01T10:00:00",
         "autoSubmitted": False, "autoSubmitReason": None},
    ],
}


def test_quiz_csv():
    lines = scoreboard_to_csv(QUIZ_BOARD).splitlines()

    assert lines[0] == "USN,Name,Score,Total Questions,Percentage,Time Taken (mins),Submitted At,Status,Auto-Submit Reason"
    assert lines[1] == "1AB001,Asha,2,2,100.00%,3,2024-05-01T09:03:00,MANUAL,manual"
    assert lines[2] == '1AB002,"Ravi, K",1,2,50.00%,5,2024-05-01T09:05:00,AUTO-SUBMITTED,timeout'


def test_video_csv():
    lines = scoreboard_to_csv(VIDEO_BOARD).splitlines()

    assert lines[0] == "USN,Name,Watch Time,Total Duration,Completion %,Time Spent (mins),Submitted At,Status,Auto-Submit Reason"
    assert lines[1] == "1AB003,Meera,2:05,2:30,83.33%,4,2024-05-01T10:00:00,MANUAL,N/A"


def test_export_filename():
    assert export_filename(QUIZ_BOARD) == "WK1_scoreboard.csv"


class FakeApi:
    def __init__(self, boards):
        self.boards = list(boards)
        self.calls = 0

    def get_scoreboard(self, exam_id):
        self.calls += 1
        board = self.boards.pop(0)
        if isinstance(board, Exception):
            raise board
        return board


def test_failed_poll_keeps_previous_board():
    updates = []
    live = LiveScoreboard(FakeApi([QUIZ_BOARD, NetworkError("offline")]), 1, on_update=updates.append)

    assert live.poll_once() is QUIZ_BOARD
    assert live.poll_once() is QUIZ_BOARD
    assert live.last_error == "offline"
    assert updates == [QUIZ_BOARD]


def test_run_polls_until_stopped():
    api = FakeApi([QUIZ_BOARD] * 3)
    sleeps = []
    live = LiveScoreboard(api, 1, sleep=sleeps.append)

    live.run(should_stop=lambda: len(sleeps) >= 3)

    assert api.calls == 3
    assert sleeps == [5, 5, 5]


def test_paused_live_mode_skips_polls():
    api = FakeApi([QUIZ_BOARD] * 3)
    sleeps = []
    live = LiveScoreboard(api, 1, sleep=sleeps.append)
    assert live.toggle() is False

    live.run(should_stop=lambda: len(sleeps) >= 2)

    assert api.calls == 1
    assert live.to_csv().startswith("USN,Name,Score")
