"""Unit tests for the progress / download upserts."""
import pytest

from portal.models.models import DownloadLog, Goal, Progress, ProgressStatus
from portal.utils.persistence import UpsertOutcome, record_download, upsert_progress


def _first_lookup_misses(db_session, monkeypatch, model):
    """Make the first query for model find nothing, as if another writer inserted right after it."""
    original_query = db_session.query
    calls = {"n": 0}

    def racing_query(*args, **kwargs):
        if args and args[0] is model:
            calls["n"] += 1
            if calls["n"] == 1:
                return original_query(model).filter(model.id == -1)
        return original_query(*args, **kwargs)

    monkeypatch.setattr(db_session, "query", racing_query)


@pytest.fixture
def student(make_user):
    return make_user("alice")


@pytest.fixture
def topic(make_subject, make_topic):
    return make_topic(make_subject("Algorithms"), "Sorting")


@pytest.mark.unit
class TestUpsertProgress:
    def test_first_save_creates(self, db_session, student, topic):
        progress, outcome = upsert_progress(db_session, student.id, topic.id, status=ProgressStatus.READ, note="done")

        assert outcome == UpsertOutcome.CREATED
        assert progress.status == ProgressStatus.READ
        assert progress.note == "done"

    def test_second_save_overwrites_same_row(self, db_session, student, topic):
        first, _ = upsert_progress(db_session, student.id, topic.id, status=ProgressStatus.READ, note="first")
        second, outcome = upsert_progress(db_session, student.id, topic.id, status=ProgressStatus.REVISE, note="second")

        assert outcome == UpsertOutcome.UPDATED
        assert second.id == first.id
        assert db_session.query(Progress).count() == 1
        row = db_session.query(Progress).one()
        assert row.status == ProgressStatus.REVISE
        assert row.note == "second"

    def test_missing_fields_are_left_alone(self, db_session, student, topic):
        upsert_progress(db_session, student.id, topic.id, status=ProgressStatus.REVISE, note="keep me")
        progress, _ = upsert_progress(db_session, student.id, topic.id, note=None, status=None)

        assert progress.status == ProgressStatus.REVISE
        assert progress.note == "keep me"

    def test_empty_note_clears(self, db_session, student, topic):
        upsert_progress(db_session, student.id, topic.id, note="scribble")
        progress, _ = upsert_progress(db_session, student.id, topic.id, note="")

        assert progress.note == ""

    def test_defaults_to_unread(self, db_session, student, topic):
        progress, _ = upsert_progress(db_session, student.id, topic.id, note="just a note")

        assert progress.status == ProgressStatus.UNREAD

    def test_lost_insert_race_updates_the_winning_row(self, db_session, student, topic, monkeypatch):
        winner = Progress(user_id=student.id, topic_id=topic.id, status=ProgressStatus.READ, note="theirs")
        db_session.add(winner)
        db_session.commit()
        _first_lookup_misses(db_session, monkeypatch, Progress)

        progress, outcome = upsert_progress(db_session, student.id, topic.id, status=ProgressStatus.REVISE)

        assert outcome == UpsertOutcome.UPDATED
        assert progress.id == winner.id
        assert db_session.query(Progress).count() == 1
        row = db_session.query(Progress).one()
        assert row.status == ProgressStatus.REVISE
        assert row.note == "theirs"


@pytest.mark.unit
class TestRecordDownload:
    def test_first_download_creates(self, db_session, student, make_subject, make_paper):
        paper = make_paper(make_subject("Physics"))

        log, outcome = record_download(db_session, student.id, paper.id)

        assert outcome == UpsertOutcome.CREATED
        assert log.paper_id == paper.id

    def test_repeat_download_is_a_named_no_op(self, db_session, student, make_subject, make_paper):
        paper = make_paper(make_subject("Physics"))
        first, _ = record_download(db_session, student.id, paper.id)

        again, outcome = record_download(db_session, student.id, paper.id)

        assert outcome == UpsertOutcome.EXISTS
        assert again.id == first.id
        assert db_session.query(DownloadLog).count() == 1

    def test_constraint_violation_resolves_to_existing_row(self, db_session, student, make_subject, make_paper, monkeypatch):
        """A concurrent writer got there first: the unique constraint fires and the winner is returned."""
        paper = make_paper(make_subject("Physics"))
        winner = DownloadLog(user_id=student.id, paper_id=paper.id)
        db_session.add(winner)
        db_session.commit()

        _first_lookup_misses(db_session, monkeypatch, DownloadLog)

        log, outcome = record_download(db_session, student.id, paper.id)

        assert outcome == UpsertOutcome.EXISTS
        assert log.id == winner.id

    def test_lost_race_keeps_other_pending_work(self, db_session, student, make_subject, make_paper, monkeypatch):
        paper = make_paper(make_subject("Physics"))
        db_session.add(DownloadLog(user_id=student.id, paper_id=paper.id))
        db_session.commit()
        db_session.add(Goal(user_id=student.id, title="Finish unit 2"))
        _first_lookup_misses(db_session, monkeypatch, DownloadLog)

        _, outcome = record_download(db_session, student.id, paper.id)

        assert outcome == UpsertOutcome.EXISTS
        db_session.expire_all()
        assert [g.title for g in db_session.query(Goal).all()] == ["Finish unit 2"]
