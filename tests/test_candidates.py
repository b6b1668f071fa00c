import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime


@pytest.fixture
def test_app():
    from fastapi import FastAPI
    from app.routers import candidates
    from app.middleware.error_handlers import ExceptionHandlerMiddleware

    app = FastAPI()
    app.add_middleware(ExceptionHandlerMiddleware)
    app.include_router(candidates.router, prefix="/candidates")
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


def _candidate_doc(candidate_id="c-1", **overrides):
    doc = {
        "id": candidate_id,
        "full_name": "Grace Hopper",
        "email": "grace@example.com",
        "years_of_experience": 12,
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
    }
    doc.update(overrides)
    return doc


class TestCandidatesRouter:
    """Test cases for candidates router"""

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_create_candidate_with_skills(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.insert_one = AsyncMock()
        mock_skills_coll.insert_many = AsyncMock()

        payload = {
            "full_name": "Grace Hopper",
            "email": "grace@example.com",
            "years_of_experience": 12,
            "skills": [
                {"skill_name": " COBOL ", "proficiency_level": "expert", "years_of_experience": 10},
                {"skill_name": "Compilers"},
            ],
        }

        response = client.post("/candidates/", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["full_name"] == "Grace Hopper"
        assert [s["skill_name"] for s in data["skills"]] == ["COBOL", "Compilers"]
        assert all(s["candidate_id"] == data["id"] for s in data["skills"])
        assert data["skills"][1]["proficiency_level"] == "intermediate"

        mock_candidates_coll.insert_one.assert_called_once()
        inserted_skills = mock_skills_coll.insert_many.call_args.args[0]
        assert len(inserted_skills) == 2

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_create_candidate_without_skills(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.insert_one = AsyncMock()
        mock_skills_coll.insert_many = AsyncMock()

        response = client.post("/candidates/", json={"full_name": "Alan Turing", "email": "alan@example.com"})

        assert response.status_code == 200
        assert response.json()["skills"] == []
        mock_skills_coll.insert_many.assert_not_called()

    def test_create_candidate_negative_experience(self, client):
        response = client.post(
            "/candidates/",
            json={"full_name": "Bad Data", "email": "bad@example.com", "years_of_experience": -1},
        )

        assert response.status_code == 422

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_get_candidate_found(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.find_one = AsyncMock(return_value=_candidate_doc())
        mock_skills_coll.find.return_value.to_list = AsyncMock(return_value=[
            {"id": "s-1", "candidate_id": "c-1", "skill_name": "COBOL", "proficiency_level": "expert"},
        ])

        response = client.get("/candidates/c-1")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "c-1"
        assert data["skills"][0]["skill_name"] == "COBOL"

    @patch('app.routers.candidates.candidates_coll')
    def test_get_candidate_not_found(self, mock_candidates_coll, client):
        mock_candidates_coll.find_one = AsyncMock(return_value=None)

        response = client.get("/candidates/missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Candidate not found"

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_list_candidates(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.find.return_value.sort.return_value.to_list = AsyncMock(return_value=[
            _candidate_doc("c-2", full_name="Newer"),
            _candidate_doc("c-1", full_name="Older"),
        ])
        mock_skills_coll.find.return_value.to_list = AsyncMock(return_value=[])

        response = client.get("/candidates/all")

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == ["c-2", "c-1"]

    @patch('app.routers.candidates.candidates_coll')
    def test_list_candidates_database_failure(self, mock_candidates_coll, client):
        mock_candidates_coll.find.return_value.sort.return_value.to_list = AsyncMock(
            side_effect=RuntimeError("server selection timeout")
        )

        response = client.get("/candidates/all")

        assert response.status_code == 500
        assert response.json()["error"]["error_code"] == "DATABASE_ERROR"

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_update_candidate_replaces_skills(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.find_one_and_update = AsyncMock(
            return_value=_candidate_doc(years_of_experience=13)
        )
        mock_skills_coll.delete_many = AsyncMock()
        mock_skills_coll.insert_many = AsyncMock()
        mock_skills_coll.find.return_value.to_list = AsyncMock(return_value=[
            {"id": "s-9", "candidate_id": "c-1", "skill_name": "Fortran"},
        ])

        response = client.patch("/candidates/c-1", json={"years_of_experience": 13, "skills": [{"skill_name": "Fortran"}]})

        assert response.status_code == 200
        assert response.json()["years_of_experience"] == 13
        update = mock_candidates_coll.find_one_and_update.call_args.args[1]
        assert update["$set"]["years_of_experience"] == 13
        assert "skills" not in update["$set"]
        inserted = mock_skills_coll.insert_many.call_args.args[0]
        assert [s["skill_name"] for s in inserted] == ["Fortran"]
        mock_skills_coll.delete_many.assert_called_once_with({
            "candidate_id": "c-1",
            "id": {"$nin": [inserted[0]["id"]]},
        })

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_update_candidate_empty_skill_list_clears_skills(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.find_one_and_update = AsyncMock(return_value=_candidate_doc())
        mock_skills_coll.delete_many = AsyncMock()
        mock_skills_coll.insert_many = AsyncMock()
        mock_skills_coll.find.return_value.to_list = AsyncMock(return_value=[])

        response = client.patch("/candidates/c-1", json={"skills": []})

        assert response.status_code == 200
        mock_skills_coll.insert_many.assert_not_called()
        mock_skills_coll.delete_many.assert_called_once_with({"candidate_id": "c-1", "id": {"$nin": []}})

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_update_candidate_failed_skill_insert_keeps_old_skills(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.find_one_and_update = AsyncMock(return_value=_candidate_doc())
        mock_skills_coll.delete_many = AsyncMock()
        mock_skills_coll.insert_many = AsyncMock(side_effect=RuntimeError("write concern timeout"))

        response = client.patch("/candidates/c-1", json={"skills": [{"skill_name": "COBOL"}]})

        assert response.status_code == 500
        mock_skills_coll.delete_many.assert_not_called()

    @patch('app.routers.candidates.candidates_coll')
    def test_update_candidate_rejects_null_required_fields(self, mock_candidates_coll, client):
        mock_candidates_coll.find_one_and_update = AsyncMock()

        response = client.patch("/candidates/c-1", json={"full_name": None, "years_of_experience": None})

        assert response.status_code == 422
        mock_candidates_coll.find_one_and_update.assert_not_called()

    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_update_candidate_null_optional_field_is_cleared(self, mock_candidates_coll, mock_skills_coll, client):
        mock_candidates_coll.find_one_and_update = AsyncMock(return_value=_candidate_doc())
        mock_skills_coll.find.return_value.to_list = AsyncMock(return_value=[])

        response = client.patch("/candidates/c-1", json={"phone": None})

        assert response.status_code == 200
        update = mock_candidates_coll.find_one_and_update.call_args.args[1]
        assert update["$set"]["phone"] is None

    @patch('app.routers.candidates.matches_coll')
    @patch('app.routers.candidates.skills_coll')
    @patch('app.routers.candidates.candidates_coll')
    def test_delete_candidate_cascades(self, mock_candidates_coll, mock_skills_coll, mock_matches_coll, client):
        mock_candidates_coll.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
        mock_skills_coll.delete_many = AsyncMock()
        mock_matches_coll.delete_many = AsyncMock()

        response = client.delete("/candidates/c-1")

        assert response.status_code == 200
        assert response.json() == {"id": "c-1", "deleted": True}
        mock_skills_coll.delete_many.assert_called_once_with({"candidate_id": "c-1"})
        mock_matches_coll.delete_many.assert_called_once_with({"candidate_id": "c-1"})

    @patch('app.routers.candidates.candidates_coll')
    def test_delete_candidate_not_found(self, mock_candidates_coll, client):
        mock_candidates_coll.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

        response = client.delete("/candidates/missing")

        assert response.status_code == 404
