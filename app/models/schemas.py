from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional

from app.models.models import ProficiencyLevel, JobType, JobStatus, MatchStatus, MatchResult


def _split_skills(v):
    """Accept a list or a comma-separated string; trim and drop empties."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(",")
    return [s.strip() for s in v if isinstance(s, str) and s.strip()]


def _reject_null(v, info):
    # Omit a field to leave it unchanged; null would erase a required value
    if v is None:
        raise ValueError(f"{info.field_name} may not be null")
    return v


# -------- Candidates --------
class SkillInput(BaseModel):
    skill_name: str = Field(min_length=1)
    proficiency_level: ProficiencyLevel = "intermediate"
    years_of_experience: float = Field(default=0, ge=0)


class CandidateCreate(BaseModel):
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    location: Optional[str] = None
    current_title: Optional[str] = None
    years_of_experience: float = Field(default=0, ge=0)
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    resume_url: Optional[str] = None
    summary: Optional[str] = None
    skills: List[SkillInput] = []


class CandidateUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    current_title: Optional[str] = None
    years_of_experience: Optional[float] = Field(default=None, ge=0)
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    resume_url: Optional[str] = None
    summary: Optional[str] = None
    skills: Optional[List[SkillInput]] = None  # replaces the whole list when given

    @field_validator("full_name", "email", "years_of_experience", mode="before")
    @classmethod
    def reject_null(cls, v, info):
        return _reject_null(v, info)


# -------- Jobs --------
class JobCreate(BaseModel):
    title: str = Field(min_length=1)
    company: str = Field(min_length=1)
    location: str = ""
    job_type: JobType = "full-time"
    description: str = ""
    required_skills: List[str] = []
    preferred_skills: List[str] = []
    min_experience: float = Field(default=0, ge=0)
    max_experience: Optional[float] = Field(default=None, ge=0)
    salary_range_min: Optional[float] = None
    salary_range_max: Optional[float] = None
    posted_by: Optional[str] = None

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def normalize_skill_list(cls, v):
        return _split_skills(v)

    @model_validator(mode="after")
    def validate_experience_band(self):
        if self.max_experience is not None and self.max_experience < self.min_experience:
            raise ValueError("max_experience must not be less than min_experience")
        return self


class JobUpdate(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    description: Optional[str] = None
    required_skills: Optional[List[str]] = None
    preferred_skills: Optional[List[str]] = None
    min_experience: Optional[float] = Field(default=None, ge=0)
    max_experience: Optional[float] = Field(default=None, ge=0)
    salary_range_min: Optional[float] = None
    salary_range_max: Optional[float] = None
    status: Optional[JobStatus] = None

    @field_validator(
        "title", "company", "location", "job_type", "description", "min_experience", "status",
        mode="before",
    )
    @classmethod
    def reject_null(cls, v, info):
        return _reject_null(v, info)

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def normalize_skill_list(cls, v):
        # null clears the list
        return _split_skills(v)

    @model_validator(mode="after")
    def validate_experience_band(self):
        if self.min_experience is not None and self.max_experience is not None \
                and self.max_experience < self.min_experience:
            raise ValueError("max_experience must not be less than min_experience")
        return self


# -------- Matches --------
class MatchStatusUpdate(BaseModel):
    status: MatchStatus


class MatchRunResponse(BaseModel):
    job_id: str
    count: int
    saved: int
    matches: List[MatchResult] = []


class DashboardStats(BaseModel):
    total_candidates: int = 0
    open_jobs: int = 0
    total_matches: int = 0
    shortlisted: int = 0
