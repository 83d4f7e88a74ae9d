"""
Student-facing API: home, subject reader, search, progress, downloads, goals, comments, profile, leaderboard.
"""
import pytest
from fastapi.testclient import TestClient

from portal.models.models import DownloadLog, Progress, ProgressStatus, User


@pytest.fixture
def course(make_subject, make_topic):
    subject = make_subject("Operating Systems", semester=3)
    topics = [
        make_topic(subject, "Processes", chapter="Basics"),
        make_topic(subject, "Threads", chapter="Basics"),
        make_topic(subject, "Paging", chapter="Memory"),
    ]
    return subject, topics


@pytest.mark.integration
class TestHome:
    def test_anonymous_home_has_no_progress(self, api_client: TestClient, course):
        data = api_client.get("/").json()
        assert [s["name"] for s in data["subjects"]] == ["Operating Systems"]
        assert data["progress"] == {}
        assert data["goals"] == []

    def test_progress_percentages(self, student_client: TestClient, course, make_subject):
        subject, topics = course
        empty = make_subject("Ethics", semester=3)
        student_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "read"})

        progress = student_client.get("/").json()["progress"]

        assert progress[str(subject.id)] == {"completed": 1, "total": 3, "percentage": 33}
        assert progress[str(empty.id)]["percentage"] == 0


@pytest.mark.integration
class TestSubjectView:
    def test_defaults_to_first_topic(self, api_client: TestClient, course):
        subject, topics = course
        data = api_client.get(f"/subject/{subject.id}").json()

        assert [c["name"] for c in data["chapters"]] == ["Basics", "Memory"]
        assert data["active_topic"]["id"] == topics[0].id
        assert data["prev_topic"] is None
        assert data["next_topic"]["id"] == topics[1].id

    def test_requested_topic_with_own_progress(self, student_client: TestClient, course):
        subject, topics = course
        student_client.post("/api/progress", json={"topic_id": topics[1].id, "status": "revise", "note": "tricky"})

        data = student_client.get(f"/subject/{subject.id}", params={"topic_id": topics[1].id}).json()

        assert data["active_topic"]["title"] == "Threads"
        assert data["prev_topic"]["id"] == topics[0].id
        assert data["next_topic"]["id"] == topics[2].id
        assert data["user_progress"]["status"] == "revise"
        assert data["user_progress"]["note"] == "tricky"

    def test_unknown_subject(self, api_client: TestClient):
        assert api_client.get("/subject/999").status_code == 404

    def test_papers_page_shows_newest_first(self, api_client: TestClient, course, make_paper):
        subject, _ = course
        make_paper(subject, title="Old", year=2019)
        make_paper(subject, title="New", year=2024)

        data = api_client.get(f"/subject/{subject.id}/papers").json()

        assert [p["title"] for p in data["papers"]] == ["New", "Old"]
        assert data["community_notes"] == []


@pytest.mark.integration
class TestSearch:
    def test_matches_titles_and_subjects(self, api_client: TestClient, course):
        data = api_client.get("/search", params={"q": "pag"}).json()
        assert [t["title"] for t in data["topics"]] == ["Paging"]

        data = api_client.get("/search", params={"q": "operating"}).json()
        assert [s["name"] for s in data["subjects"]] == ["Operating Systems"]

    def test_blank_query_is_empty(self, api_client: TestClient, course):
        data = api_client.get("/search", params={"q": "  "}).json()
        assert data["topics"] == [] and data["subjects"] == []

    def test_wildcards_match_literally(self, api_client: TestClient, course):
        data = api_client.get("/search", params={"q": "%"}).json()
        assert data["topics"] == []


@pytest.mark.integration
class TestSaveProgress:
    def test_requires_login(self, api_client: TestClient, course):
        _, topics = course
        response = api_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "read"})
        assert response.status_code == 401

    def test_save_twice_keeps_one_row(self, student_client: TestClient, course, db_session):
        _, topics = course
        first = student_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "read"})
        second = student_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "revise"})

        assert first.status_code == 200 and second.status_code == 200
        assert second.json()["success"] is True
        assert db_session.query(Progress).count() == 1
        assert second.json()["progress"]["status"] == "revise"

    def test_note_only_keeps_status(self, student_client: TestClient, course):
        _, topics = course
        student_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "read"})

        response = student_client.post("/api/progress", json={"topic_id": topics[0].id, "note": "re-check"})

        assert response.json()["progress"]["status"] == "read"
        assert response.json()["progress"]["note"] == "re-check"

    @pytest.mark.parametrize(
        "payload",
        [
            {"status": "read"},
            {"topic_id": 999, "status": "read"},
            {"topic_id": "abc"},
        ],
    )
    def test_bad_payload_is_400(self, student_client: TestClient, course, payload):
        response = student_client.post("/api/progress", json=payload)
        assert response.status_code == 400
        assert response.json() == {"success": False}

    def test_bad_status_is_400(self, student_client: TestClient, course):
        _, topics = course
        response = student_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "skimmed"})
        assert response.status_code == 400


@pytest.mark.integration
class TestDownloads:
    def test_download_recorded_once(self, student_client: TestClient, course, make_paper, db_session):
        subject, _ = course
        paper = make_paper(subject, images=[{"url": "/uploads/media/p1.png", "public_id": "p1.png"}])

        first = student_client.post(f"/api/papers/{paper.id}/download")
        second = student_client.post(f"/api/papers/{paper.id}/download")

        assert first.json() == {"success": True, "recorded": True, "images": ["/uploads/media/p1.png"]}
        assert second.json()["recorded"] is False
        assert db_session.query(DownloadLog).count() == 1

    def test_unknown_paper(self, student_client: TestClient):
        assert student_client.post("/api/papers/404/download").status_code == 404


@pytest.mark.integration
class TestGoals:
    def test_create_toggle_delete(self, student_client: TestClient):
        created = student_client.post("/goals", json={"title": "Finish OS", "target_date": "2026-12-01"}).json()
        assert created["completed"] is False
        assert created["target_date"] == "2026-12-01"

        toggled = student_client.post(f"/goals/{created['id']}/toggle").json()
        assert toggled["completed"] is True

        assert student_client.delete(f"/goals/{created['id']}").status_code == 200
        assert student_client.get("/goals").json() == []

    def test_goals_sorted_by_target_date(self, student_client: TestClient):
        student_client.post("/goals", json={"title": "later", "target_date": "2027-01-01"})
        student_client.post("/goals", json={"title": "undated"})
        student_client.post("/goals", json={"title": "sooner", "target_date": "2026-11-01"})

        titles = [g["title"] for g in student_client.get("/goals").json()]

        assert titles == ["sooner", "later", "undated"]

    def test_other_users_goal_is_not_found(self, api_client: TestClient, login_as, make_user):
        make_user("alice")
        make_user("bob")
        login_as("alice")
        goal_id = api_client.post("/goals", json={"title": "mine"}).json()["id"]

        login_as("bob")

        assert api_client.post(f"/goals/{goal_id}/toggle").status_code == 404
        assert api_client.delete(f"/goals/{goal_id}").status_code == 404


@pytest.mark.integration
class TestComments:
    def test_post_and_list(self, student_client: TestClient, course):
        _, topics = course
        posted = student_client.post(f"/topic/{topics[0].id}/comments", json={"content": "  Good summary  "})

        assert posted.status_code == 200
        listed = student_client.get(f"/topic/{topics[0].id}/comments").json()
        assert [(c["username"], c["content"]) for c in listed] == [("alice", "Good summary")]

    def test_whitespace_comment_rejected(self, student_client: TestClient, course):
        _, topics = course
        response = student_client.post(f"/topic/{topics[0].id}/comments", json={"content": "   "})
        assert response.status_code == 400

    def test_only_author_or_admin_may_delete(self, api_client: TestClient, login_as, make_user, admin, course):
        _, topics = course
        make_user("alice")
        make_user("bob")
        login_as("alice")
        first = api_client.post(f"/topic/{topics[0].id}/comments", json={"content": "one"}).json()["id"]
        second = api_client.post(f"/topic/{topics[0].id}/comments", json={"content": "two"}).json()["id"]

        login_as("bob")
        assert api_client.delete(f"/comments/{first}").status_code == 403

        login_as("alice")
        assert api_client.delete(f"/comments/{first}").status_code == 200

        login_as("admin", login_type="admin")
        assert api_client.delete(f"/comments/{second}").status_code == 200


@pytest.mark.integration
class TestProfile:
    def test_update_semester(self, student_client: TestClient, student, db_session):
        response = student_client.post("/profile/update", json={"semester": 5, "password": "pass123"})

        assert response.status_code == 200
        assert response.json()["semester"] == 5
        db_session.expire_all()
        assert db_session.get(User, student.id).semester == 5

    def test_wrong_password(self, student_client: TestClient):
        response = student_client.post("/profile/update", json={"semester": 5, "password": "wrong"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Incorrect Password"


@pytest.mark.integration
class TestLeaderboard:
    def test_students_by_score(self, api_client: TestClient, make_user, admin):
        make_user("carol", score=10)
        make_user("bob", score=30)
        make_user("dave", score=10)

        entries = api_client.get("/leaderboard").json()["entries"]

        assert [(e["rank"], e["username"]) for e in entries] == [(1, "bob"), (2, "carol"), (3, "dave")]

    def test_rank_continues_across_pages(self, api_client: TestClient, make_user):
        for i in range(5):
            make_user(f"user{i}", score=100 - i)

        entries = api_client.get("/leaderboard", params={"skip": 2, "limit": 2}).json()["entries"]

        assert [(e["rank"], e["username"]) for e in entries] == [(3, "user2"), (4, "user3")]

    def test_scores_come_from_last_recompute(self, student_client: TestClient, course, score_scheduler, student):
        _, topics = course
        student_client.post("/api/progress", json={"topic_id": topics[0].id, "status": "revise"})

        before = student_client.get("/leaderboard").json()["entries"][0]["score"]
        score_scheduler.recompute_now()
        after = student_client.get("/leaderboard").json()["entries"][0]["score"]

        assert before == 0
        assert after == 5
