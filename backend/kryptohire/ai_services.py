"""
AI Services Module for Kryptohire
Handles all AI interactions: resume tailoring, job formatting, scoring,
optimization, chat edits, cover letters, resume import and bullet point
writing. Every call walks an ordered list of candidate models and returns
the first structured result.
"""
import logging
import time
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from agents import (
    Agent,
    AgentOutputSchema,
    ModelSettings,
    OpenAIChatCompletionsModel,
    Runner,
    set_tracing_disabled,
)
from openai import AsyncOpenAI
from pydantic import BaseModel
from sqlalchemy.orm import Session

from . import prompts
from .ai_models import OPENROUTER_BASE_URL, get_model_by_id, get_provider_by_id
from .billing import is_pro
from .models import AIInteraction
from .rate_limiter import check_rate_limit
from .schemas import (
    AIConfig,
    BulletPoints,
    ChatOptimizedResume,
    CoverLetter,
    ImprovedBullet,
    JobListing,
    OptimizedResume,
    ResumeContent,
    ResumeScore,
)
from .settings import get_settings

logger = logging.getLogger(__name__)

# Runs are short-lived request work; nothing to export traces to.
set_tracing_disabled(True)

T = TypeVar("T", bound=BaseModel)

PROXY_FALLBACK_MODELS = ["gpt-5-codex", "gpt-5.2-codex", "gpt-5.1-codex"]
OPENROUTER_FALLBACK_MODELS = [
    "openai/gpt-oss-120b:free",
    "qwen/qwen3-coder:free",
    "nvidia/nemotron-nano-9b-v2:free",
    "z-ai/glm-4.5-air:free",
    "openai/gpt-oss-20b:free",
    "deepseek/deepseek-v3.2:nitro",
]


class AIService:
    """Core AI service bound to one user and one request."""

    def __init__(self, db: Session, user_id: str, plan: str = "free", config: Optional[AIConfig] = None):
        self.db = db
        self.user_id = user_id
        self.plan = plan or "free"
        self.config = config or AIConfig()
        self.settings = get_settings()
        # one client per (key, base url), closed when the call finishes
        self._clients: Dict[Tuple[str, Optional[str]], AsyncOpenAI] = {}

    @property
    def is_pro(self) -> bool:
        return is_pro(self.plan)

    def _model_candidates(self) -> List[str]:
        fallbacks = (
            PROXY_FALLBACK_MODELS
            if self.settings.uses_custom_openai_proxy
            else OPENROUTER_FALLBACK_MODELS
        )
        if self.config.model:
            return [self.config.model] + [m for m in fallbacks if m != self.config.model]
        return list(fallbacks)

    def _user_key(self, service: str) -> Optional[str]:
        for k in self.config.api_keys:
            if k.service == service and k.key:
                return k.key
        return None

    def _system_prompt(self, key: str, default: str) -> str:
        """User override from `customPrompts`, else the built-in prompt."""
        return (self.config.custom_prompts or {}).get(key) or default

    def _openrouter_headers(self) -> Dict[str, str]:
        return {"HTTP-Referer": self.settings.site_url, "X-Title": "Kryptohire"}

    def _build_model(self, model_id: str) -> OpenAIChatCompletionsModel:
        """Resolve the client for one candidate. Raises when the model cannot be used."""
        model = get_model_by_id(model_id)
        provider = get_provider_by_id(model.provider) if model else None
        if not model or not provider:
            raise ValueError(f"Unknown model: {model_id}")

        # provider/model ids are served through OpenRouter
        via_openrouter = "/" in model.id
        if via_openrouter:
            provider = get_provider_by_id("openrouter")

        if self.is_pro or model.is_free or via_openrouter:
            api_key = self.settings.provider_key(provider.env_key)
            if not api_key:
                raise ValueError(f"{provider.name} API key not found ({provider.env_key})")
        else:
            api_key = self._user_key(provider.id)
            if not api_key:
                raise ValueError(f"{provider.name} API key not found in user configuration")

        headers = None
        if provider.id == "openrouter":
            base_url = OPENROUTER_BASE_URL
            headers = self._openrouter_headers()
        elif provider.id == "openai":
            base_url = self.settings.openai_base_url
        else:
            base_url = provider.base_url

        client = self._clients.get((api_key, base_url))
        if client is None:
            client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=2, default_headers=headers)
            self._clients[(api_key, base_url)] = client
        return OpenAIChatCompletionsModel(model=model.id, openai_client=client)

    def _store_ai_interaction(self, interaction_type: str, model_used: str, prompt: str,
                              response: Optional[str], success: bool, error: Optional[str],
                              duration_ms: int) -> None:
        """Store one model attempt for auditing and cost tracking"""
        try:
            self.db.add(AIInteraction(
                user_id=self.user_id,
                interaction_type=interaction_type,
                model_used=model_used,
                success=success,
                error=error,
                duration_ms=duration_ms,
                prompt=prompt,
                response=response,
            ))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to store AI interaction: {e}")

    async def _close_clients(self) -> None:
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            try:
                await client.close()
            except Exception as e:
                logger.warning(f"Failed to close AI client: {e}")

    async def _generate(self, tag: str, step: str, interaction_type: str, instructions: str,
                        prompt: str, output_type: Type[T], temperature: Optional[float] = None) -> T:
        try:
            return await self._try_candidates(
                tag, step, interaction_type, instructions, prompt, output_type, temperature
            )
        finally:
            await self._close_clients()

    async def _try_candidates(self, tag: str, step: str, interaction_type: str, instructions: str,
                              prompt: str, output_type: Type[T], temperature: Optional[float]) -> T:
        candidates = self._model_candidates()
        subscription = "PRO" if self.is_pro else "FREE"
        overall_start = time.monotonic()
        last_error: Optional[Exception] = None

        for model_id in candidates:
            start = time.monotonic()
            logger.info(f"[{tag}][TRY] {model_id} | STEP: {step} | Subscription: {subscription}")
            try:
                agent = Agent(
                    name=f"Kryptohire{tag.title()}",
                    instructions=instructions,
                    model=self._build_model(model_id),
                    output_type=AgentOutputSchema(output_type, strict_json_schema=False),
                    model_settings=ModelSettings(temperature=temperature),
                )
                result = await Runner.run(agent, prompt)
                output = result.final_output
                if isinstance(output, dict):
                    output = output_type.model_validate(output)
                if not isinstance(output, output_type):
                    raise ValueError("Model returned no structured output")
            except Exception as e:
                last_error = e
                duration_ms = int((time.monotonic() - start) * 1000)
                logger.error(
                    f"[{tag}][FAILED] {model_id} | STEP: {step} | Duration: {duration_ms}ms | Reason: {e}"
                )
                self._store_ai_interaction(interaction_type, model_id, prompt, None, False, str(e), duration_ms)
                continue

            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info(f"[{tag}][SUCCESS] {model_id} | Duration: {duration_ms}ms | STEP: {step}")
            self._store_ai_interaction(
                interaction_type, model_id, prompt, output.model_dump_json(), True, None, duration_ms
            )
            return output

        total_ms = int((time.monotonic() - overall_start) * 1000)
        logger.error(
            f"[{tag}][ABORT] All models failed | Tried: {', '.join(candidates)} | Total Duration: {total_ms}ms"
        )
        raise last_error or RuntimeError(f"All models failed for {step}")

    async def tailor_resume(self, resume: Dict[str, Any], job: Dict[str, Any]) -> ResumeContent:
        check_rate_limit(self.db, self.user_id, "tailor")
        return await self._generate(
            "TAILOR",
            "Tailoring resume content",
            "tailor",
            prompts.TAILOR_SYSTEM_PROMPT,
            prompts.tailor_prompt(resume, job),
            ResumeContent,
            temperature=0.5,
        )

    async def format_job_listing(self, listing: str) -> JobListing:
        check_rate_limit(self.db, self.user_id, "format_job")
        return await self._generate(
            "FORMAT",
            "Analyzing job description -> Formatting requirements",
            "format_job",
            prompts.FORMAT_JOB_SYSTEM_PROMPT,
            prompts.format_job_prompt(listing),
            JobListing,
            temperature=0.7,
        )

    async def score_resume(self, resume: Dict[str, Any], job: Optional[Dict[str, Any]] = None) -> ResumeScore:
        is_tailored = job is not None and not resume.get("is_base_resume", True)
        resume_for_scoring = {
            "target_role": resume.get("target_role"),
            "is_base_resume": resume.get("is_base_resume"),
            "contact": {
                k: resume.get(k)
                for k in ("first_name", "last_name", "email", "phone_number",
                          "location", "website", "linkedin_url", "github_url")
            },
            "work_experience": resume.get("work_experience") or [],
            "education": resume.get("education") or [],
            "skills": resume.get("skills") or [],
            "projects": resume.get("projects") or [],
        }
        job_for_scoring = None
        if is_tailored:
            job_for_scoring = {
                k: job.get(k)
                for k in ("company_name", "position_title", "description", "location",
                          "salary_range", "keywords", "work_location", "employment_type")
            }
        score = await self._generate(
            "SCORE",
            "Scoring resume",
            "score",
            prompts.SCORE_SYSTEM_PROMPT,
            prompts.score_prompt(resume_for_scoring, job_for_scoring),
            ResumeScore,
        )
        # copy so the structured output returned by the runner stays untouched
        return score.model_copy(update={
            "isTailoredResume": is_tailored,
            "jobAlignment": score.jobAlignment if is_tailored else None,
        })

    async def optimize_resume(self, optimization_prompt: str) -> OptimizedResume:
        return await self._generate(
            "OPTIMIZE",
            "Optimizing resume content",
            "optimize",
            prompts.OPTIMIZE_SYSTEM_PROMPT,
            optimization_prompt,
            OptimizedResume,
            temperature=0.5,
        )

    async def chat_optimize(self, resume: Dict[str, Any], message: str,
                            job: Optional[Dict[str, Any]] = None) -> ChatOptimizedResume:
        return await self._generate(
            "CHAT",
            "Applying chat instruction",
            "chat",
            self._system_prompt("aiAssistant", prompts.AI_ASSISTANT_SYSTEM_PROMPT),
            prompts.chat_prompt(resume, message, job),
            ChatOptimizedResume,
            temperature=0.5,
        )

    async def generate_cover_letter(self, resume: Dict[str, Any], job: Dict[str, Any],
                                    tone: str = "professional", length: str = "medium") -> str:
        letter = await self._generate(
            "COVER_LETTER",
            "Writing cover letter",
            "cover_letter",
            prompts.COVER_LETTER_SYSTEM_PROMPT,
            prompts.cover_letter_prompt(resume, job, tone, length),
            CoverLetter,
            temperature=0.7,
        )
        return letter.cover_letter.strip()

    async def import_resume_text(self, text: str) -> ResumeContent:
        check_rate_limit(self.db, self.user_id, "import_text")
        return await self._generate(
            "IMPORT",
            "Extracting resume sections from text",
            "import_text",
            self._system_prompt("textAnalyzer", prompts.TEXT_IMPORT_SYSTEM_PROMPT),
            prompts.text_import_prompt(text),
            ResumeContent,
            temperature=0.5,
        )

    async def select_profile_content(self, profile: Dict[str, Any], target_role: str) -> ResumeContent:
        return await self._generate(
            "SELECT",
            "Selecting profile content for target role",
            "import_profile",
            prompts.RESUME_IMPORTER_SYSTEM_PROMPT,
            prompts.profile_import_prompt(profile, target_role),
            ResumeContent,
            temperature=0.3,
        )

    async def _bullet_points(self, tag: str, interaction_type: str, kind: str, prompt_key: str,
                             default_prompt: str, entry: Dict[str, Any], target_role: str,
                             num_points: int, existing: Optional[List[str]]) -> List[str]:
        result = await self._generate(
            tag,
            f"Writing {kind} bullet points",
            interaction_type,
            self._system_prompt(prompt_key, default_prompt),
            prompts.bullet_points_prompt(kind, entry, target_role, num_points, existing),
            BulletPoints,
            temperature=0.7,
        )
        points = [p.strip() for p in result.points if p.strip()]
        return points[:num_points]

    async def _improve_point(self, tag: str, interaction_type: str, kind: str, prompt_key: str,
                             default_prompt: str, point: str, instruction: Optional[str]) -> str:
        result = await self._generate(
            tag,
            f"Improving {kind} bullet point",
            interaction_type,
            self._system_prompt(prompt_key, default_prompt),
            prompts.improve_point_prompt(kind, point, instruction),
            ImprovedBullet,
            temperature=0.5,
        )
        return result.content.strip()

    async def generate_work_experience_points(self, experience: Dict[str, Any], target_role: str = "",
                                              num_points: int = 3,
                                              existing: Optional[List[str]] = None) -> List[str]:
        return await self._bullet_points(
            "WORK_POINTS", "work_experience_points", "work experience", "workExperienceGenerator",
            prompts.WORK_EXPERIENCE_GENERATOR_SYSTEM_PROMPT, experience, target_role, num_points, existing,
        )

    async def improve_work_experience_point(self, point: str, instruction: Optional[str] = None) -> str:
        return await self._improve_point(
            "WORK_IMPROVE", "work_experience_improve", "work experience", "workExperienceImprover",
            prompts.WORK_EXPERIENCE_IMPROVER_SYSTEM_PROMPT, point, instruction,
        )

    async def generate_project_points(self, project: Dict[str, Any], target_role: str = "",
                                      num_points: int = 3, existing: Optional[List[str]] = None) -> List[str]:
        return await self._bullet_points(
            "PROJECT_POINTS", "project_points", "project", "projectGenerator",
            prompts.PROJECT_GENERATOR_SYSTEM_PROMPT, project, target_role, num_points, existing,
        )

    async def improve_project_point(self, point: str, instruction: Optional[str] = None) -> str:
        return await self._improve_point(
            "PROJECT_IMPROVE", "project_improve", "project", "projectImprover",
            prompts.PROJECT_IMPROVER_SYSTEM_PROMPT, point, instruction,
        )


def get_ai_service(db: Session, user_id: str, plan: str = "free",
                   config: Optional[AIConfig] = None) -> AIService:
    """Get an AI service instance for the caller's plan and model settings"""
    return AIService(db, user_id, plan=plan, config=config)
