from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional, Literal
from datetime import datetime

ProficiencyLevel = Literal["beginner", "intermediate", "advanced", "expert"]
JobType = Literal["full-time", "contract", "part-time"]
JobStatus = Literal["open", "closed", "on-hold"]
MatchStatus = Literal["suggested", "shortlisted", "rejected", "interviewing", "hired"]


class CandidateSkill(BaseModel):
    id: str
    candidate_id: str
    skill_name: str
    proficiency_level: ProficiencyLevel = "intermediate"
    years_of_experience: float = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Candidate(BaseModel):
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    current_title: Optional[str] = None
    years_of_experience: float = Field(default=0, ge=0)
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    resume_url: Optional[str] = None
    summary: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CandidateWithSkills(Candidate):
    skills: List[CandidateSkill] = Field(default_factory=list)


class Job(BaseModel):
    id: str
    posted_by: Optional[str] = None
    title: str
    company: str
    location: str = ""
    job_type: JobType = "full-time"
    description: str = ""
    required_skills: List[str] = Field(default_factory=list)
    preferred_skills: List[str] = Field(default_factory=list)
    min_experience: float = Field(default=0, ge=0)
    max_experience: Optional[float] = None
    salary_range_min: Optional[float] = None
    salary_range_max: Optional[float] = None
    status: JobStatus = "open"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        # Stored documents may carry null skill lists
        return v or []


class SkillMatch(BaseModel):
    """Partition of a target skill list against a candidate's skills"""
    matched: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    score: float = 0.0


class MatchResult(BaseModel):
    candidate_id: str
    match_score: int
    matched_skills: List[str] = Field(default_factory=list)
    skill_gaps: List[str] = Field(default_factory=list)
    reasoning: str


class CandidateJobMatch(BaseModel):
    id: str
    candidate_id: str
    job_id: str
    match_score: int
    matched_skills: List[str] = Field(default_factory=list)
    skill_gaps: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None
    status: MatchStatus = "suggested"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MatchWithCandidate(CandidateJobMatch):
    candidate: Optional[Candidate] = None


class ScoringWeights(BaseModel):
    """Weights for combining the component scores of a match"""
    required_skills: float = Field(default=0.6, ge=0.0, le=1.0, description="Weight for required-skill similarity")
    experience: float = Field(default=0.3, ge=0.0, le=1.0, description="Weight for experience suitability")
    preferred_skills: float = Field(default=0.1, ge=0.0, le=1.0, description="Weight for preferred-skill similarity")

    @model_validator(mode="after")
    def validate_total_weights(self):
        total = self.required_skills + self.experience + self.preferred_skills
        if abs(total - 1.0) > 1e-9:
            raise ValueError("Scoring weights must sum to 1.0")
        return self
