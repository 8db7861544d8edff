"""
Iterative resume optimization: tailor, then score and rewrite until the
score reaches the target or the iteration budget runs out.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from .ai_services import AIService
from .models import Job, Resume
from .resumes import apply_content, create_tailored_resume, job_to_dict, resume_to_dict
from .schemas import ResumeScore

logger = logging.getLogger(__name__)

WEAK_SCORE = 80


def weak_areas(score: ResumeScore) -> Tuple[List[str], List[str]]:
    """Return (areas scoring below 80, improvement suggestions) from a score report."""
    areas: List[str] = []
    suggestions: List[str] = []

    checks = [
        ("Contact Information", score.completeness.contactInformation),
        ("Detail Level", score.completeness.detailLevel),
        ("Active Voice Usage", score.impactScore.activeVoiceUsage),
        ("Quantified Achievements", score.impactScore.quantifiedAchievements),
        ("Skills Relevance", score.roleMatch.skillsRelevance),
        ("Experience Alignment", score.roleMatch.experienceAlignment),
        ("Education Fit", score.roleMatch.educationFit),
    ]
    for label, metric in checks:
        if metric.score < WEAK_SCORE:
            areas.append(label)
            suggestions.append(metric.reason)

    alignment = score.jobAlignment
    if alignment:
        if alignment.keywordMatch.score < WEAK_SCORE:
            areas.append("Keyword Match")
            suggestions.append(alignment.keywordMatch.reason)
            if alignment.keywordMatch.missingKeywords:
                suggestions.append(f"Missing keywords: {', '.join(alignment.keywordMatch.missingKeywords)}")
        if alignment.requirementsMatch.score < WEAK_SCORE:
            areas.append("Requirements Match")
            suggestions.append(alignment.requirementsMatch.reason)
            if alignment.requirementsMatch.gapAnalysis:
                suggestions.append(f"Gaps: {', '.join(alignment.requirementsMatch.gapAnalysis)}")
        if alignment.companyFit.score < WEAK_SCORE:
            areas.append("Company Fit")
            suggestions.append(alignment.companyFit.reason)

    suggestions.extend(score.overallImprovements or [])
    suggestions.extend(score.jobSpecificImprovements or [])
    return areas, suggestions


def build_optimization_prompt(score: ResumeScore, resume: Dict[str, Any], job: Dict[str, Any]) -> str:
    areas, suggestions = weak_areas(score)
    area_lines = "\n".join(f"{i}. {a}" for i, a in enumerate(areas, 1)) or "None identified"
    suggestion_lines = "\n".join(f"{i}. {s}" for i, s in enumerate(suggestions, 1))
    return f"""
You are an expert resume optimizer. Optimize this resume to better align with the job description.

CURRENT RESUME:
{json.dumps(resume, indent=2, default=str)}

JOB DESCRIPTION:
{json.dumps(job, indent=2, default=str)}

CURRENT SCORE: {score.overallScore.score}/100

WEAK AREAS REQUIRING IMPROVEMENT (score < {WEAK_SCORE}):
{area_lines}

SPECIFIC IMPROVEMENT SUGGESTIONS:
{suggestion_lines}

OPTIMIZATION INSTRUCTIONS:
1. Focus ONLY on the weak areas listed above
2. Incorporate missing keywords naturally into work experience bullets
3. Quantify achievements with specific metrics where possible
4. Use strong action verbs and active voice
5. Ensure all content is truthful and based on existing resume data
6. DO NOT fabricate experience or skills
7. Maintain chronological accuracy
8. Keep bullets concise (1-2 lines max)
9. Remove any STAR labels or annotations from the output

Return the optimized resume that addresses these specific weak areas while maintaining factual accuracy.
"""


async def run_optimization(db: Session, ai: AIService, base: Resume, job: Job,
                           target_score: float, max_iterations: int) -> Dict[str, Any]:
    job_data = job_to_dict(job)

    logger.info(f"[OPTIMIZE] Tailoring base resume {base.id} for job {job.id}")
    content = await ai.tailor_resume(resume_to_dict(base), job_data)
    resume = create_tailored_resume(db, base, job, content)

    history: List[Dict[str, Any]] = []
    target_achieved = False

    for iteration in range(1, max_iterations + 1):
        logger.info(f"[OPTIMIZE] Iteration {iteration}/{max_iterations}: scoring resume {resume.id}")
        score = await ai.score_resume(resume_to_dict(resume), job_data)
        current = score.overallScore.score
        logger.info(f"[OPTIMIZE] Iteration {iteration}: score {current} (target {target_score})")

        if current >= target_score:
            target_achieved = True
            history.append({
                "iteration": iteration,
                "score": current,
                "changes": ["Target score achieved"],
                "timestamp": datetime.now(timezone.utc),
            })
            break

        prompt = build_optimization_prompt(score, resume_to_dict(resume), job_data)
        optimized = await ai.optimize_resume(prompt)
        apply_content(resume, optimized.content)
        db.commit()
        db.refresh(resume)

        history.append({
            "iteration": iteration,
            "score": current,
            "changes": optimized.changes_made,
            "timestamp": datetime.now(timezone.utc),
        })
        logger.info(f"[OPTIMIZE] Iteration {iteration}: {len(optimized.changes_made)} changes applied")

    final_score = await ai.score_resume(resume_to_dict(resume), job_data)
    logger.info(
        f"[OPTIMIZE] Done: final score {final_score.overallScore.score}, "
        f"{len(history)} iterations, target achieved: {target_achieved}"
    )
    return {
        "resume": resume,
        "score": final_score,
        "iterations": len(history),
        "target_achieved": target_achieved,
        "optimization_history": history,
    }
