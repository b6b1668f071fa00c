import asyncio
import math
from datetime import datetime
from typing import List, Optional, Tuple

from app.models.models import CandidateWithSkills, MatchResult, ScoringWeights, SkillMatch
from app.services.repository import MatchRepository
from app.utils.exceptions import FetchError, NotFoundError, PersistError
from app.utils.logging_config import get_logger, log_function_call, PerformanceMonitor

logger = get_logger(__name__)

DEFAULT_WEIGHTS = ScoringWeights()


def normalize_skill(skill: str) -> str:
    return skill.lower().strip()


def calculate_skill_similarity(candidate_skills: List[str], target_skills: List[str]) -> SkillMatch:
    """
    Split target_skills into matched and gap lists against candidate_skills.

    A target skill is matched when some candidate skill equals it, contains it,
    or is contained in it after normalization; the first such candidate skill
    wins. Both output lists keep the target order and original casing.
    """
    normalized_candidate = [normalize_skill(s) for s in candidate_skills]

    matched, gaps = [], []
    for target in target_skills:
        key = normalize_skill(target)
        hit = next(
            (c for c in normalized_candidate if c == key or key in c or c in key),
            None,
        )
        if hit is not None:
            matched.append(target)
        else:
            gaps.append(target)

    score = (len(matched) / len(target_skills)) * 100 if target_skills else 0.0
    return SkillMatch(matched=matched, gaps=gaps, score=score)


def calculate_experience_score(candidate_exp: float, min_exp: float, max_exp: Optional[float]) -> float:
    # min_exp <= 0 is trivially satisfied, which also keeps the ratio defined
    if min_exp > 0 and candidate_exp < min_exp:
        return max(0.0, (candidate_exp / min_exp) * 100)

    if max_exp is not None and candidate_exp > max_exp:
        excess = candidate_exp - max_exp
        penalty = min(20.0, excess * 2)
        return max(70.0, 100 - penalty)

    return 100.0


def round_score(value: float) -> int:
    """Round half up, so 62.5 -> 63. The result is clamped to 0..100."""
    return min(100, max(0, int(math.floor(value + 0.5))))


def build_reasoning(skill_match: SkillMatch, preferred_match: SkillMatch, total_required: int) -> str:
    reasoning = f"Match based on {len(skill_match.matched)}/{total_required} required skills"

    if skill_match.matched:
        reasoning += f". Strong in: {', '.join(skill_match.matched[:3])}"

    if skill_match.gaps:
        reasoning += f". Needs to develop: {', '.join(skill_match.gaps[:3])}"

    if preferred_match.matched:
        reasoning += f". Also has preferred skills: {', '.join(preferred_match.matched[:2])}"

    return reasoning


def score_candidate(candidate: CandidateWithSkills, job, weights: ScoringWeights = DEFAULT_WEIGHTS) -> MatchResult:
    """Score one candidate against one job."""
    candidate_skills = [s.skill_name for s in candidate.skills]

    skill_match = calculate_skill_similarity(candidate_skills, job.required_skills)

    experience_score = calculate_experience_score(
        candidate.years_of_experience,
        job.min_experience,
        job.max_experience,
    )

    if job.preferred_skills:
        preferred_match = calculate_skill_similarity(candidate_skills, job.preferred_skills)
    else:
        preferred_match = SkillMatch()

    final_score = round_score(
        skill_match.score * weights.required_skills
        + experience_score * weights.experience
        + preferred_match.score * weights.preferred_skills
    )

    return MatchResult(
        candidate_id=candidate.id,
        match_score=final_score,
        matched_skills=skill_match.matched,
        skill_gaps=skill_match.gaps,
        reasoning=build_reasoning(skill_match, preferred_match, len(job.required_skills)),
    )


async def _load_candidates_with_skills(repository: MatchRepository) -> List[CandidateWithSkills]:
    try:
        candidates = await repository.list_candidates()
    except FetchError:
        raise
    except Exception as e:
        raise FetchError("Failed to fetch candidates", collection="candidates", cause=e) from e

    async def attach(candidate):
        skills = await repository.list_skills(candidate.id)
        return CandidateWithSkills(**candidate.model_dump(exclude={"skills"}), skills=skills)

    try:
        # Fan out one skill fetch per candidate; gather keeps input order
        return list(await asyncio.gather(*(attach(c) for c in candidates)))
    except FetchError:
        raise
    except Exception as e:
        raise FetchError("Failed to fetch candidate skills", collection="candidate_skills", cause=e) from e


@log_function_call
async def find_matches_for_job(
    job_id: str,
    repository: MatchRepository,
    weights: Optional[ScoringWeights] = None,
) -> List[MatchResult]:
    """
    Score every candidate against the job and return results ranked by
    descending match_score. Equal scores keep candidate population order.

    Raises:
        NotFoundError: the job does not exist
        FetchError: candidates or their skills could not be retrieved
    """
    weights = weights or DEFAULT_WEIGHTS

    job = await repository.get_job(job_id)
    if job is None:
        logger.warning(f"Job not found for matching: {job_id}")
        raise NotFoundError("Job not found", resource="job", resource_id=job_id)

    candidates = await _load_candidates_with_skills(repository)
    logger.info(f"Scoring {len(candidates)} candidates against job {job_id}")

    with PerformanceMonitor(f"score_candidates[{job_id}]", logger, threshold_ms=500):
        results = [score_candidate(c, job, weights) for c in candidates]
        results.sort(key=lambda r: r.match_score, reverse=True)

    return results


def build_match_records(job_id: str, matches: List[MatchResult]) -> List[dict]:
    now = datetime.utcnow()
    return [
        {
            "id": f"match_{job_id}_{m.candidate_id}",
            "job_id": job_id,
            "candidate_id": m.candidate_id,
            "match_score": m.match_score,
            "matched_skills": list(m.matched_skills),
            "skill_gaps": list(m.skill_gaps),
            "reasoning": m.reasoning,
            "status": "suggested",
            "created_at": now,
            "updated_at": now,
        }
        for m in matches
    ]


@log_function_call
async def save_matches(job_id: str, matches: List[MatchResult], repository: MatchRepository) -> int:
    """Upsert all matches for the job as 'suggested'; returns the number written."""
    records = build_match_records(job_id, matches)
    if not records:
        logger.info(f"No matches to save for job {job_id}")
        return 0

    try:
        await repository.upsert_matches(records)
    except PersistError:
        raise
    except Exception as e:
        raise PersistError("Failed to save matches", job_id=job_id, record_count=len(records), cause=e) from e

    logger.info(f"Saved {len(records)} matches for job {job_id}")
    return len(records)


async def generate_matches(
    job_id: str,
    repository: MatchRepository,
    weights: Optional[ScoringWeights] = None,
) -> Tuple[List[MatchResult], int]:
    """Compute and persist matches for a job in one pass; returns (results, saved)."""
    results = await find_matches_for_job(job_id, repository, weights)
    saved = await save_matches(job_id, results, repository)
    return results, saved
