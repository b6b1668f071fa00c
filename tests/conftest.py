"""
Pytest configuration and shared fixtures.
"""
import os

# Console-only, warning-level logging for the test run
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from typing import Any, Dict, List, Optional

from app.models.models import Candidate, CandidateSkill, Job
from app.services.repository import MatchRepository


class InMemoryRepository(MatchRepository):
    """MatchRepository backed by plain dicts, with switches to simulate failures."""

    def __init__(self, jobs: List[Job] = None, candidates: List[Candidate] = None,
                 skills: Dict[str, List[str]] = None):
        self.jobs = {j.id: j for j in (jobs or [])}
        self.candidates = list(candidates or [])
        self.skills = {
            cid: [
                CandidateSkill(id=f"{cid}-{i}", candidate_id=cid, skill_name=name)
                for i, name in enumerate(names)
            ]
            for cid, names in (skills or {}).items()
        }
        self.matches: Dict[tuple, Dict[str, Any]] = {}
        self.skill_calls: List[str] = []
        self.fail_candidates = False
        self.fail_skills_for: Optional[str] = None
        self.fail_upsert = False

    async def get_job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    async def list_candidates(self) -> List[Candidate]:
        if self.fail_candidates:
            raise RuntimeError("candidates table unavailable")
        return list(self.candidates)

    async def list_skills(self, candidate_id: str) -> List[CandidateSkill]:
        self.skill_calls.append(candidate_id)
        if candidate_id == self.fail_skills_for:
            raise RuntimeError("skills table unavailable")
        return list(self.skills.get(candidate_id, []))

    async def upsert_matches(self, records: List[Dict[str, Any]]) -> None:
        if self.fail_upsert:
            raise RuntimeError("write rejected")
        for r in records:
            self.matches[(r["candidate_id"], r["job_id"])] = dict(r)


def make_job(**overrides) -> Job:
    data = {
        "id": "job-1",
        "title": "Frontend Engineer",
        "company": "Acme",
        "location": "Remote",
        "description": "Build the recruiter dashboard",
        "required_skills": ["React", "Node.js", "TypeScript"],
        "preferred_skills": ["GraphQL"],
        "min_experience": 2,
        "max_experience": 8,
    }
    data.update(overrides)
    return Job(**data)


def make_candidate(candidate_id: str, years: float = 3, **overrides) -> Candidate:
    data = {
        "id": candidate_id,
        "full_name": f"Candidate {candidate_id}",
        "email": f"{candidate_id}@example.com",
        "years_of_experience": years,
    }
    data.update(overrides)
    return Candidate(**data)


@pytest.fixture
def job() -> Job:
    return make_job()


@pytest.fixture
def repository(job) -> InMemoryRepository:
    candidates = [
        make_candidate("c-strong", years=5),
        make_candidate("c-partial", years=1),
        make_candidate("c-none", years=20),
    ]
    skills = {
        "c-strong": ["react", "Node", "TypeScript", "GraphQL"],
        "c-partial": ["React.js", "Python"],
        "c-none": ["COBOL"],
    }
    return InMemoryRepository(jobs=[job], candidates=candidates, skills=skills)


@pytest.fixture
def job_factory():
    return make_job


@pytest.fixture
def candidate_factory():
    return make_candidate


@pytest.fixture
def repo_factory():
    return InMemoryRepository
