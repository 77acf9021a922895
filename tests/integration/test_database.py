"""Integration tests for database operations.

These tests verify the storage layer directly:
- Form, question and answer persistence and ordering
- The one-answer-per-respondent unique constraint
- Respondent entries and their ordering
- Engine and session helpers
"""

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

from survey_forms.config import Settings
from survey_forms.models import (
    Answer,
    Form,
    Question,
    RespondentEntry,
    RespondentMapping,
    build_engine,
    get_db,
    init_db,
    session_scope,
)


def make_form(owner="alice", keys=("Q1", "Q2")):
    form = Form(owner=owner, audience="a", data_type="b", purpose="c", demographic="d")
    for key in keys:
        form.append_question(Question(key=key, type="text", prompt=f"{key}?"))
    return form


class TestFormPersistence:
    """Integration tests for Form and Question rows."""

    def test_create_and_query_form(self, db_session):
        """Test a form and its questions round-trip through the database."""
        db_session.add(make_form())
        db_session.commit()
        db_session.expunge_all()

        form = db_session.execute(select(Form)).scalar_one()
        assert form.owner == "alice"
        assert form.question_keys == ["Q1", "Q2"]
        assert form.created_at is not None

    def test_questions_loaded_in_position_order(self, db_session):
        """Test questions come back ordered by position."""
        form = make_form(keys=("Q1", "Q2", "Q3"))
        db_session.add(form)
        db_session.commit()
        db_session.expunge_all()

        reloaded = db_session.get(Form, form.id)
        assert [q.position for q in reloaded.questions] == [0, 1, 2]
        assert reloaded.question_keys == ["Q1", "Q2", "Q3"]

    def test_options_stored_as_json(self, db_session):
        """Test option lists survive storage in order."""
        form = Form(owner="alice", audience="", data_type="", purpose="", demographic="")
        form.append_question(
            Question(key="Q1", type="single-choice", prompt="?", options=["z", "a", "m"])
        )
        db_session.add(form)
        db_session.commit()
        db_session.expunge_all()

        question = db_session.execute(select(Question)).scalar_one()
        assert question.options == ["z", "a", "m"]

    def test_metadata_defaults(self, db_session):
        """Test omitted metadata is stored as empty strings."""
        form = Form(owner="alice")
        db_session.add(form)
        db_session.commit()

        assert form.audience == ""
        assert form.demographic == ""


class TestAnswerConstraint:
    """Integration tests for answer uniqueness."""

    def test_answers_keyed_by_respondent(self, db_session):
        """Test answers reload into a respondent-keyed map."""
        form = make_form()
        form.questions[0].record_answer("r1", "yes")
        form.questions[0].record_answer("r2", "no")
        db_session.add(form)
        db_session.commit()
        db_session.expunge_all()

        question = db_session.get(Question, form.questions[0].id)
        assert question.answer_map == {"r1": "yes", "r2": "no"}

    def test_duplicate_answer_violates_constraint(self, db_session):
        """Test the store refuses a second answer for the same pair."""
        form = make_form()
        form.questions[0].record_answer("r1", "yes")
        db_session.add(form)
        db_session.commit()

        db_session.add(Answer(question_id=form.questions[0].id, respondent="r1", text="no"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_same_respondent_different_questions(self, db_session):
        """Test the constraint is per question."""
        form = make_form()
        form.questions[0].record_answer("r1", "yes")
        form.questions[1].record_answer("r1", "no")
        db_session.add(form)
        db_session.commit()

        count = len(db_session.execute(select(Answer)).scalars().all())
        assert count == 2


class TestRespondentEntries:
    """Integration tests for respondent mapping rows."""

    def test_entries_round_trip_in_order(self, db_session):
        """Test entries reload in position order with duplicates."""
        form = make_form()
        db_session.add(form)
        db_session.commit()

        mapping = RespondentMapping(form_id=form.id)
        for identity in ["b", "a", "b"]:
            mapping.add_respondent(identity)
        db_session.add(mapping)
        db_session.commit()
        db_session.expunge_all()

        reloaded = db_session.get(RespondentMapping, mapping.id)
        assert reloaded.respondents == ["b", "a", "b"]
        assert len(db_session.execute(select(RespondentEntry)).scalars().all()) == 3

    def test_mapping_references_form(self, db_session):
        """Test the mapping's form relationship resolves."""
        form = make_form()
        db_session.add(form)
        db_session.commit()

        mapping = RespondentMapping(form_id=form.id)
        db_session.add(mapping)
        db_session.commit()

        assert mapping.form.id == form.id


class TestEngineHelpers:
    """Integration tests for engine and session helpers."""

    def test_build_engine_for_file_sqlite(self, tmp_path):
        """Test a file URL builds a working engine."""
        engine = build_engine(Settings(database_url=f"sqlite:///{tmp_path / 'x.db'}"))
        try:
            init_db(engine)
            assert "forms" in inspect(engine).get_table_names()
        finally:
            engine.dispose()

    def test_in_memory_engine_shares_one_database(self):
        """Test in-memory SQLite is visible across connections."""
        engine = build_engine(Settings(database_url="sqlite://"))
        try:
            init_db(engine)
            with engine.connect() as first, engine.connect() as second:
                assert inspect(first).has_table("answers")
                assert inspect(second).has_table("answers")
        finally:
            engine.dispose()

    def test_get_db_closes_session(self):
        """Test the generator yields a session and closes it on exit."""
        generator = get_db()
        db = next(generator)
        assert db.is_active
        generator.close()

    def test_session_scope(self):
        """Test session_scope yields a usable session."""
        init_db()
        with session_scope() as db:
            form = make_form()
            db.add(form)
            db.commit()
            assert form.id is not None
