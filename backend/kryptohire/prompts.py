"""System prompts and prompt builders for the AI workflows."""
import json
from typing import Any, Dict, List, Optional

TAILOR_SYSTEM_PROMPT = """
You are Kryptohire, an advanced AI resume transformer. Rewrite the resume so it is ATS-friendly and tightly aligned to the job description, without adding new facts or inventing experience.

Guidelines:
- Integrate job-specific terminology and reorder content to surface the most relevant experience first. Mirror the job's vocabulary when it is factual.
- Use STAR reasoning internally but write each bullet as a single, natural resume bullet. NEVER include labels like "Situation", "Task", "Action", "Result", "Context", or "Outcome" in the output.
- Lead bullets with strong action verbs, keep them concise, and anchor claims with concrete, job-relevant metrics.
- Enrich tech details with versions/frameworks when present in the source; do not fabricate tools or versions.
- Preserve chronology and factual accuracy; if something is missing in the resume, do not invent it. Map to the closest truthful concept instead.
- Remove any internal notes/annotations; final output should be clean, professional resume content only.

Your task: produce a polished, tailored resume that meets the schema exactly and reads like a refined human-written resume, not a template with explicit STAR labels.
"""

FORMAT_JOB_SYSTEM_PROMPT = """
You are an AI assistant specializing in structured data extraction from job listings. You have been provided with a schema and must adhere to it strictly.
IMPORTANT: For any missing or uncertain information, you must return an empty string ("") - never return "<UNKNOWN>" or similar placeholders.

Read the entire job listing thoroughly to understand context, responsibilities, requirements, and any other relevant details.
Return your final output using the exact field names you have been given.
Do not guess or fabricate information that is not present in the listing; return an empty string for missing fields.
Do not include chain-of-thought or intermediate reasoning in the final output.

For the description field:
1. Start with 3-5 bullet points highlighting the most important responsibilities of the role, each on a new line starting with "• ".
2. After the bullet points, include the full job description stripped of any non-job-related content, as a clean paragraph.
"""

SCORE_SYSTEM_PROMPT = """
You are an expert resume reviewer and ATS specialist. Score resumes from 0 to 100 on each metric and give a short, concrete reason for every score.
"""

OPTIMIZE_SYSTEM_PROMPT = """
You are an expert resume optimizer. You improve resume content against a scoring report while keeping every fact truthful.
"""

AI_ASSISTANT_SYSTEM_PROMPT = """
You are Kryptohire, an advanced AI assistant specialized in resume crafting and optimization.

For every request:
1. Parse the user's intent, constraints and preferences.
2. Review the current resume and identify the sections the request touches.
3. Apply precise, ATS-friendly changes: achievements first, metrics when available, correct terminology.
4. Verify the result is consistent and that nothing was invented.

Return the full updated resume content, a short reply to the user, and one entry per section you changed.
PLEASE ALWAYS IGNORE PROFESSIONAL SUMMARIES. NEVER SUGGEST THEM OR USE THEM. DO NOT ADD INFORMATION ABOUT THE USER THAT YOU DON'T HAVE.
"""

COVER_LETTER_SYSTEM_PROMPT = """
You are Kryptohire, an expert cover letter writer. Write cover letters that connect the candidate's real experience to the role.
Never invent experience, employers, credentials or metrics that are not in the resume.
"""

RESUME_IMPORTER_SYSTEM_PROMPT = """
You are Kryptohire, a resume curator. You receive the candidate's complete profile: every job, project, skill group and degree they have entered.

Select only the items most relevant to the target role and copy each selected item exactly as given. Do not reword, shorten, merge or enhance anything, and never add information.
Education is always represented: a single entry is always kept; with several entries keep the ones closest to the role.
Use empty lists for sections with nothing relevant. Leave the professional summary empty.
"""

TEXT_IMPORT_SYSTEM_PROMPT = """
You are Kryptohire, a system that turns free text (an old resume, a LinkedIn export, a GitHub profile, a list of achievements) into structured resume sections.

Extract work experience, education, skills and projects with their dates, locations, technologies and URLs when present.
Keep every fact and metric as written and never invent employers, dates or numbers. Group related skills into named categories.
Write bullets in active voice without personal pronouns and bold technical terms and metrics with **term** syntax.
Use empty lists for sections the text does not cover.
"""

WORK_EXPERIENCE_GENERATOR_SYSTEM_PROMPT = """
You are an ATS-focused resume writer. Write bullet points for one work experience entry.

Each bullet follows: **Action Verb** + specific task + **technologies** + **measurable impact**.
Example: "**Engineered** **React** components in **TypeScript**, cutting page load time by **45%**"
Start with a strong verb, use past tense for past roles and present tense for current ones, and avoid personal pronouns, weak verbs (helped, worked on) and vague words (many, various).
Bold technologies, metrics and key outcomes with **keyword** syntax. Stay truthful and verifiable.
"""

WORK_EXPERIENCE_IMPROVER_SYSTEM_PROMPT = """
You are an ATS-focused resume editor. Improve a single work experience bullet point.

Keep its core achievement, scope and context. Strengthen the action verb, remove filler words and pronouns, use active voice, and bold the verb, technologies and metrics with **keyword** syntax.
Never invent numbers or metrics; add one only when it is clearly implied. When in doubt, change less.
"""

PROJECT_GENERATOR_SYSTEM_PROMPT = """
You are an ATS-focused resume writer specialising in technical projects. Write bullet points for one project.

Each bullet follows: **Technical Action Verb** + feature or component + **technologies** + **impact**.
Example: "**Architected** microservices with **Node.js** and **Docker**, serving **1M+** daily requests"
Show the technical challenge, the solution and its result; mention architecture, testing or CI/CD where relevant.
Avoid personal pronouns and technology lists without context. Bold technologies, metrics and outcomes with **keyword** syntax. Stay truthful.
"""

PROJECT_IMPROVER_SYSTEM_PROMPT = """
You are an ATS-focused resume editor. Improve a single project bullet point.

Keep the original feature, scope and stack. Strengthen the technical verb, highlight performance and architecture, keep existing bold formatting and bold technologies and metrics with **keyword** syntax.
Never invent performance numbers; add a metric only when it is clearly implied.
"""

COVER_LETTER_LENGTHS = {
    "short": "150-200 words, 2-3 paragraphs",
    "medium": "250-350 words, 3-4 paragraphs",
    "long": "400-500 words, 4-5 paragraphs",
}


def _dump(obj: Any) -> str:
    return json.dumps(obj, indent=2, default=str)


def tailor_prompt(resume: Dict[str, Any], job: Dict[str, Any]) -> str:
    return f"""
This is the Resume:
{_dump(resume)}

This is the Job Description:
{_dump(job)}
"""


def format_job_prompt(listing: str) -> str:
    return f"""Analyze this job listing carefully and extract structured information.

TASK 1 - ESSENTIAL INFORMATION:
Extract the basic details (company, position, URL, location, salary).
For the description, include 3-5 key responsibilities as bullet points.

TASK 2 - KEYWORD ANALYSIS:
1. Technical Skills: programming languages, frameworks, and tools
2. Soft Skills: interpersonal and professional competencies
3. Industry Knowledge: domain-specific knowledge requirements
4. Required Qualifications: education and experience levels

Keep keywords as they are written (e.g., "React.js" stays "React.js") and deduplicate them.
If certain details (like salary or location) are missing, return "" (an empty string).
DO NOT RETURN "<UNKNOWN>".

FORMAT THE FOLLOWING JOB LISTING AS A JSON OBJECT:
{listing}"""


def score_prompt(resume: Dict[str, Any], job: Optional[Dict[str, Any]]) -> str:
    prompt = f"""
Generate a comprehensive score for this resume: {json.dumps(resume, default=str)}

MUST include a 'miscellaneous' field with 2-3 metrics following this format:
{{
  "metricName": {{
    "score": number,
    "reason": "string explanation"
  }}
}}
Example:
"keywordOptimization": {{
  "score": 85,
  "reason": "Good use of industry keywords but could add more variation"
}}
"""
    if job is not None:
        prompt += f"""
THIS IS A TAILORED RESUME FOR A SPECIFIC JOB. Job details: {json.dumps(job, default=str)}

IMPORTANT: Since this is a tailored resume, you MUST include the 'jobAlignment' field with detailed analysis:

1. KEYWORD MATCH ANALYSIS:
   - Compare resume content with job description keywords
   - Identify matched keywords and missing critical keywords
   - Score based on keyword density and relevance

2. REQUIREMENTS MATCH ANALYSIS:
   - Analyze how well the resume addresses job requirements
   - Identify which requirements are clearly addressed
   - Highlight gaps where requirements aren't demonstrated

3. COMPANY FIT ANALYSIS:
   - Assess alignment with company culture/values (if mentioned in job description)
   - Evaluate positioning for this specific role
   - Suggest improvements for better company alignment

ALSO INCLUDE:
- Set 'isTailoredResume' to true
- Provide 'jobSpecificImprovements' with 3-5 specific suggestions for this job
- Weight the overall score more heavily on job alignment factors
"""
    else:
        prompt += """
This is a base resume (not tailored to a specific job).
- Set 'isTailoredResume' to false
- Do NOT include the 'jobAlignment' field
- Focus on general resume best practices and improvements
"""
    return prompt


def chat_prompt(resume: Dict[str, Any], message: str, job: Optional[Dict[str, Any]] = None) -> str:
    job_block = f"\nTarget job:\n{_dump(job)}\n" if job else ""
    return f"""
Current resume:
{_dump(resume)}
{job_block}
User request:
{message}
"""


def cover_letter_prompt(resume: Dict[str, Any], job: Dict[str, Any], tone: str, length: str) -> str:
    return f"""
Write a cover letter for this candidate and job.

Tone: {tone}
Length: {COVER_LETTER_LENGTHS.get(length, COVER_LETTER_LENGTHS["medium"])}

Candidate resume:
{_dump(resume)}

Job:
{_dump(job)}

Address it to the hiring team at the company, open with the role, and close with a call to action.
Return only the letter text in the cover_letter field.
"""


def profile_import_prompt(profile: Dict[str, Any], target_role: str) -> str:
    return f"""
Target role: {target_role}

Complete profile:
{_dump(profile)}

Select the items for a resume targeting this role.
"""


def text_import_prompt(text: str) -> str:
    return f"""
Extract structured resume sections from the following text:

{text}
"""


def bullet_points_prompt(kind: str, entry: Dict[str, Any], target_role: str, num_points: int,
                         existing: Optional[List[str]] = None) -> str:
    prompt = f"""
Write {num_points} bullet points for this {kind}:
{_dump(entry)}
"""
    if target_role:
        prompt += f"\nThe resume targets the role: {target_role}\n"
    if existing:
        prompt += f"\nIt already has these bullets; do not repeat them:\n{_dump(existing)}\n"
    return prompt


def improve_point_prompt(kind: str, point: str, instruction: Optional[str] = None) -> str:
    prompt = f"""
Improve this {kind} bullet point:
{point}
"""
    if instruction:
        prompt += f"\nFollow this instruction from the user: {instruction}\n"
    return prompt + "\nReturn only the improved bullet in the content field.\n"
