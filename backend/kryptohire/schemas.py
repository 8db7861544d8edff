from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any, Literal
from datetime import datetime
from uuid import UUID

WorkLocation = Literal["remote", "in_person", "hybrid"]
EmploymentType = Literal["full_time", "part_time", "co_op", "internship"]

# ----- Resume sections -----

class WorkExperience(BaseModel):
    position: str
    company: str
    location: str = ""
    date: str = ""
    description: List[str] = []
    technologies: List[str] = []

class Education(BaseModel):
    school: str
    degree: str
    field: str = ""
    location: str = ""
    date: str = ""
    gpa: Optional[str] = None
    achievements: List[str] = []

class Skill(BaseModel):
    category: str
    items: List[str]

class Project(BaseModel):
    name: str
    description: List[str] = []
    technologies: List[str] = []
    url: Optional[str] = None
    github_url: Optional[str] = None
    date: str = ""

class ResumeContent(BaseModel):
    """Resume body as produced by the model: sections only, no contact or layout data."""
    target_role: str = ""
    professional_summary: Optional[str] = None
    work_experience: List[WorkExperience] = []
    education: List[Education] = []
    skills: List[Skill] = []
    projects: List[Project] = []

class JobListing(BaseModel):
    company_name: str = ""
    position_title: str = ""
    job_url: str = ""
    description: str = ""
    location: str = ""
    salary_range: str = ""
    keywords: List[str] = []
    work_location: Optional[WorkLocation] = None
    employment_type: Optional[EmploymentType] = None

# ----- Scoring -----

class ScoreMetric(BaseModel):
    score: float = Field(ge=0, le=100)
    reason: str

class KeywordMatch(ScoreMetric):
    matchedKeywords: Optional[List[str]] = None
    missingKeywords: Optional[List[str]] = None

class RequirementsMatch(ScoreMetric):
    matchedRequirements: Optional[List[str]] = None
    gapAnalysis: Optional[List[str]] = None

class CompanyFit(ScoreMetric):
    suggestions: Optional[List[str]] = None

class Completeness(BaseModel):
    contactInformation: ScoreMetric
    detailLevel: ScoreMetric

class ImpactScore(BaseModel):
    activeVoiceUsage: ScoreMetric
    quantifiedAchievements: ScoreMetric

class RoleMatch(BaseModel):
    skillsRelevance: ScoreMetric
    experienceAlignment: ScoreMetric
    educationFit: ScoreMetric

class JobAlignment(BaseModel):
    keywordMatch: KeywordMatch
    requirementsMatch: RequirementsMatch
    companyFit: CompanyFit

class ResumeScore(BaseModel):
    overallScore: ScoreMetric
    completeness: Completeness
    impactScore: ImpactScore
    roleMatch: RoleMatch
    jobAlignment: Optional[JobAlignment] = None
    miscellaneous: Dict[str, ScoreMetric] = {}
    overallImprovements: List[str] = []
    jobSpecificImprovements: List[str] = []
    isTailoredResume: bool = False

class OptimizedResume(BaseModel):
    content: ResumeContent
    changes_made: List[str] = Field(description="List of specific changes made to the resume")

class ChangeApplied(BaseModel):
    section: str
    description: str

class ChatOptimizedResume(BaseModel):
    content: ResumeContent
    message: str = Field(description="Short reply to the user describing what was done")
    changes_applied: List[ChangeApplied] = []

class CoverLetter(BaseModel):
    cover_letter: str

class BulletPoints(BaseModel):
    points: List[str] = Field(description="New bullet points, one achievement each")

class ImprovedBullet(BaseModel):
    content: str = Field(description="The improved bullet point")

# ----- AI config -----

class ApiKey(BaseModel):
    service: str
    key: str

class AIConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model: Optional[str] = None
    api_keys: List[ApiKey] = Field(default=[], alias="apiKeys")
    custom_prompts: Optional[Dict[str, str]] = Field(default=None, alias="customPrompts")

# ----- Auth -----

class SignupRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)

class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)

class RefreshRequest(BaseModel):
    refresh_token: str

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    created_at: Optional[datetime] = None

class SessionOut(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: int
    expires_in: int

class LoginData(BaseModel):
    user: UserOut
    session: SessionOut
    access_token: str
    refresh_token: str

class LoginResponse(BaseModel):
    data: LoginData

class RefreshData(SessionOut):
    user: UserOut

class RefreshResponse(BaseModel):
    data: RefreshData

class SubscriptionState(BaseModel):
    plan: str
    status: Optional[str] = None
    has_pro_access: bool
    is_trialing: bool
    trial_days_remaining: int
    current_period_end: Optional[datetime] = None
    trial_end: Optional[datetime] = None

class SuccessData(BaseModel):
    success: bool
    message: Optional[str] = None

class SuccessResponse(BaseModel):
    data: SuccessData

# ----- Profiles -----

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    work_experience: Optional[List[WorkExperience]] = None
    education: Optional[List[Education]] = None
    skills: Optional[List[Skill]] = None
    projects: Optional[List[Project]] = None

class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    first_name: Optional[str] = ""
    last_name: Optional[str] = ""
    email: Optional[str] = ""
    phone_number: Optional[str] = ""
    location: Optional[str] = ""
    website: Optional[str] = ""
    linkedin_url: Optional[str] = ""
    github_url: Optional[str] = ""
    work_experience: List[WorkExperience] = []
    education: List[Education] = []
    skills: List[Skill] = []
    projects: List[Project] = []

class ProfileData(BaseModel):
    profile: ProfileOut

class ProfileResponse(BaseModel):
    data: ProfileData

class MeData(BaseModel):
    user: UserOut
    profile: Optional[ProfileOut] = None
    subscription: SubscriptionState

class MeResponse(BaseModel):
    data: MeData

# ----- Resumes -----

class SelectedContent(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    work_experience: List[WorkExperience] = []
    education: List[Education] = []
    skills: List[Skill] = []
    projects: List[Project] = []

class ResumeCreate(BaseModel):
    name: str = Field(min_length=1)
    importOption: Literal["import-profile", "fresh", "import-resume"] = "import-profile"
    selectedContent: Optional[SelectedContent] = None

class ResumeUpdate(BaseModel):
    name: Optional[str] = None
    target_role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    professional_summary: Optional[str] = None
    work_experience: Optional[List[WorkExperience]] = None
    education: Optional[List[Education]] = None
    skills: Optional[List[Skill]] = None
    projects: Optional[List[Project]] = None
    section_order: Optional[List[str]] = None
    section_configs: Optional[Dict[str, Any]] = None
    document_settings: Optional[Dict[str, Any]] = None

class ResumeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    job_id: Optional[str] = None
    name: str
    resume_title: Optional[str] = None
    target_role: Optional[str] = ""
    is_base_resume: bool
    first_name: Optional[str] = ""
    last_name: Optional[str] = ""
    email: Optional[str] = ""
    phone_number: Optional[str] = ""
    location: Optional[str] = ""
    website: Optional[str] = ""
    linkedin_url: Optional[str] = ""
    github_url: Optional[str] = ""
    professional_summary: Optional[str] = None
    work_experience: List[WorkExperience] = []
    education: List[Education] = []
    skills: List[Skill] = []
    projects: List[Project] = []
    section_order: Optional[List[str]] = None
    section_configs: Optional[Dict[str, Any]] = None
    document_settings: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool

class ResumeListResponse(BaseModel):
    data: List[ResumeOut]
    pagination: Pagination

class ResumeData(BaseModel):
    resume: ResumeOut
    score: Optional[ResumeScore] = None

class ResumeResponse(BaseModel):
    data: ResumeData

class ScoreRequest(BaseModel):
    config: Optional[AIConfig] = None

class ScoreResponse(BaseModel):
    data: ResumeScore

class TailorRequest(BaseModel):
    base_resume_id: UUID
    job_id: UUID
    config: Optional[AIConfig] = None
    generate_score: bool = False

class TextImportRequest(BaseModel):
    text: str = Field(min_length=1)
    name: str = Field(default="Imported Resume", min_length=1)
    config: Optional[AIConfig] = None

class ProfileImportRequest(BaseModel):
    name: str = Field(min_length=1)
    target_role: str = Field(min_length=1)
    config: Optional[AIConfig] = None

# ----- Jobs -----

class JobCreate(BaseModel):
    company_name: str = Field(min_length=1)
    position_title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    job_url: Optional[str] = None
    location: Optional[str] = None
    salary_range: Optional[str] = None
    keywords: Optional[List[str]] = None
    requirements: List[str] = []
    responsibilities: List[str] = []
    work_location: Optional[WorkLocation] = None
    employment_type: Optional[EmploymentType] = None
    application_deadline: Optional[str] = None

class JobUpdate(BaseModel):
    company_name: Optional[str] = None
    position_title: Optional[str] = None
    description: Optional[str] = None
    job_url: Optional[str] = None
    location: Optional[str] = None
    salary_range: Optional[str] = None
    keywords: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    responsibilities: Optional[List[str]] = None
    work_location: Optional[WorkLocation] = None
    employment_type: Optional[EmploymentType] = None
    application_deadline: Optional[str] = None
    is_active: Optional[bool] = None

class JobImportRequest(BaseModel):
    text: Optional[str] = None
    url: Optional[str] = None
    config: Optional[AIConfig] = None

class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    company_name: Optional[str] = ""
    position_title: Optional[str] = ""
    job_url: Optional[str] = None
    description: Optional[str] = ""
    location: Optional[str] = None
    salary_range: Optional[str] = None
    keywords: List[str] = []
    requirements: List[str] = []
    responsibilities: List[str] = []
    work_location: Optional[str] = None
    employment_type: Optional[str] = None
    application_deadline: Optional[str] = None
    is_active: Optional[bool] = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class JobData(BaseModel):
    job: JobOut

class JobResponse(BaseModel):
    data: JobData

class JobListData(BaseModel):
    jobs: List[JobOut]
    totalCount: int
    currentPage: int
    totalPages: int

class JobListResponse(BaseModel):
    data: JobListData

# ----- Optimization -----

class OptimizeRequest(BaseModel):
    base_resume_id: UUID
    job_id: UUID
    target_score: float = Field(default=85, ge=0, le=100)
    max_iterations: int = Field(default=5, ge=1, le=10)
    config: Optional[AIConfig] = None

class OptimizationStep(BaseModel):
    iteration: int
    score: float
    changes: List[str]
    timestamp: datetime

class OptimizeData(BaseModel):
    resume: ResumeOut
    score: ResumeScore
    iterations: int
    target_achieved: bool
    optimization_history: List[OptimizationStep]

class OptimizeResponse(BaseModel):
    data: OptimizeData

class ChatOptimizeRequest(BaseModel):
    resume_id: UUID
    message: str = Field(min_length=1)
    job_id: Optional[UUID] = None
    config: Optional[AIConfig] = None

class ChatOptimizeData(BaseModel):
    resume: ResumeOut
    message: str
    changes_applied: List[ChangeApplied]

class ChatOptimizeResponse(BaseModel):
    data: ChatOptimizeData

# ----- Cover letters -----

class CoverLetterRequest(BaseModel):
    resume_id: UUID
    job_id: UUID
    tone: Literal["professional", "enthusiastic", "creative", "formal"] = "professional"
    length: Literal["short", "medium", "long"] = "medium"
    config: Optional[AIConfig] = None

class CoverLetterData(BaseModel):
    cover_letter: str
    metadata: Dict[str, Any]

class CoverLetterResponse(BaseModel):
    data: CoverLetterData

# ----- AI writing -----

class WorkExperiencePointsRequest(BaseModel):
    position: str = Field(min_length=1)
    company: str = Field(min_length=1)
    date: str = ""
    technologies: List[str] = []
    existing_points: List[str] = []
    target_role: str = ""
    num_points: int = Field(default=3, ge=1, le=6)
    config: Optional[AIConfig] = None

class ProjectPointsRequest(BaseModel):
    name: str = Field(min_length=1)
    technologies: List[str] = []
    existing_points: List[str] = []
    target_role: str = ""
    num_points: int = Field(default=3, ge=1, le=6)
    config: Optional[AIConfig] = None

class ImprovePointRequest(BaseModel):
    point: str = Field(min_length=1)
    instruction: Optional[str] = None
    config: Optional[AIConfig] = None

class BulletPointsResponse(BaseModel):
    data: BulletPoints

class ImprovedBulletResponse(BaseModel):
    data: ImprovedBullet

# ----- Billing -----

class CheckoutRequest(BaseModel):
    price_id: Optional[str] = None
    trial: bool = False

class BillingSessionData(BaseModel):
    url: str

class BillingSessionResponse(BaseModel):
    data: BillingSessionData

class SubscriptionResponse(BaseModel):
    data: SubscriptionState

# ----- Models -----

class ModelInfo(BaseModel):
    id: str
    name: str
    provider: str
    is_free: bool
    requires_pro: bool

class ModelsResponse(BaseModel):
    data: List[ModelInfo]
