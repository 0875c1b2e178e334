"""Quiz content routes: questions, quiz metadata, per-quiz collections, fallback."""

from unittest.mock import patch

from quiz_store.mongo_client import PersistenceError


class TestQuestions:

    def test_returns_all_questions_with_string_ids(self, client, db):
        db["questions"].insert_many([
            {"question": "Largest organ?", "options": ["Skin", "Liver"], "answer": "Skin"},
            {"question": "Filters blood?", "options": ["Kidney", "Lung"], "answer": "Kidney"},
        ])

        response = client.get("/api/questions")

        assert response.status_code == 200
        body = response.json()
        assert [q["question"] for q in body] == ["Largest organ?", "Filters blood?"]
        assert all(isinstance(q["_id"], str) and len(q["_id"]) == 24 for q in body)

    def test_empty_collection(self, client):
        response = client.get("/api/questions")

        assert response.status_code == 200
        assert response.json() == []

    def test_persistence_error_is_500(self, client, store):
        with patch.object(store, "find_all", side_effect=PersistenceError("connection refused")):
            response = client.get("/api/questions")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Error fetching questions"
        assert body["detail"] == "connection refused"


class TestQuizzes:

    def test_lists_quiz_metadata(self, client, db):
        db["quizzes"].insert_many([
            {"title": "Anatomy", "collectionName": "quiz-anatomy"},
            {"title": "Renal", "collectionName": "quiz-renal"},
        ])

        response = client.get("/api/quizzes")

        assert response.status_code == 200
        assert [q["collectionName"] for q in response.json()] == ["quiz-anatomy", "quiz-renal"]

    def test_metadata_persistence_error_is_500(self, client, store):
        with patch.object(store, "find_all", side_effect=PersistenceError("timeout")):
            response = client.get("/api/quizzes")

        assert response.status_code == 500
        assert response.json()["error"] == "Error fetching quizzes"

    def test_quiz_collection_documents(self, client, db):
        db["quiz-anatomy"].insert_one({"question": "Bones in the adult body?", "answer": "206"})

        response = client.get("/api/quizzes/quiz-anatomy")

        assert response.status_code == 200
        assert response.json()[0]["answer"] == "206"

    def test_unknown_quiz_collection_is_empty_not_404(self, client):
        response = client.get("/api/quizzes/quiz-does-not-exist")

        assert response.status_code == 200
        assert response.json() == []

    def test_disallowed_names_are_404(self, client, db):
        db["users"].insert_one({"clerkUserId": "user_1", "firstName": "Ada"})

        for name in ("users", "questions", "system.profile", "anatomy"):
            response = client.get(f"/api/quizzes/{name}")
            assert response.status_code == 404, name
            assert response.json()["error"] == f"Collection {name} not found"


class TestFallbackRoute:

    def test_existing_quiz_collection(self, client, db):
        db["quiz-renal"].insert_one({"question": "Functional unit of the kidney?"})

        response = client.get("/api/quiz-renal")

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_missing_collection_is_404(self, client):
        response = client.get("/api/quiz-missing")

        assert response.status_code == 404
        assert response.json()["error"] == "Collection quiz-missing not found"

    def test_users_collection_is_never_served(self, client, db):
        db["users"].insert_one({"clerkUserId": "user_1"})

        assert client.get("/api/users").status_code == 404

    def test_named_routes_take_precedence(self, client):
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/questions").status_code == 200
        assert client.get("/api/quizzes").status_code == 200

    def test_persistence_error_is_500(self, client, store):
        with patch.object(store, "collection_names", side_effect=PersistenceError("down")):
            response = client.get("/api/quiz-renal")

        assert response.status_code == 500
        assert response.json()["error"] == "Error fetching collection data"
