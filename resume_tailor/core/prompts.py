"""Prompt templates for the tailoring backend.

Every prompt asks for a single JSON object; answers are still run through
tolerant extraction because models routinely ignore that instruction.
"""

from __future__ import annotations

from typing import List

from resume_tailor.domain import Bullet, ResumeContent, Skill, TailoredBullet, TargetLanguage, User

from .ports import JobAnalysis

SYSTEM_PROMPT = (
    "You are an expert resume consultant and ATS specialist. "
    "You never invent employers, metrics or skills that are not present in the input. "
    "You always answer with a single valid JSON object."
)

JSON_ONLY = "IMPORTANT: Respond ONLY with valid JSON. Do not include markdown formatting or additional text."


def _join(items: List[str]) -> str:
    return ", ".join(items) if items else "(none)"


def analyze_job_prompt(job_description: str, language: TargetLanguage) -> str:
    return f"""Analyze the following job description and extract key information.

Job Description:
{job_description}

Write free-text fields (summary) in {language.display_name}; keep skill and technology names as written in the posting.

Provide a JSON response with the following structure:
{{
  "title": "extracted job title",
  "company": "company name if found",
  "required_skills": ["list", "of", "required", "skills"],
  "preferred_skills": ["list", "of", "nice-to-have", "skills"],
  "keywords": ["important", "keywords", "from", "description"],
  "seniority_level": "junior/mid/senior/lead/executive",
  "years_experience": null or number,
  "summary": "brief 2-3 sentence summary of the role"
}}

{JSON_ONLY}"""


def select_bullets_prompt(
    analysis: JobAnalysis,
    bullets: List[Bullet],
    max_bullets: int,
    language: TargetLanguage,
) -> str:
    bullets_text = "\n".join(f"{i}. [ID: {b.id}] {b.content}" for i, b in enumerate(bullets, start=1))
    return f"""Select the most relevant experience bullets for this job.

JOB REQUIREMENTS:
- Title: {analysis.title}
- Company: {analysis.company}
- Required Skills: {_join(analysis.required_skills)}
- Preferred Skills: {_join(analysis.preferred_skills)}
- Keywords: {_join(analysis.keywords)}
- Summary: {analysis.summary}

AVAILABLE BULLETS:
{bullets_text}

Select up to {max_bullets} bullets that best match this job. Prioritize:
1. Direct skill matches
2. Quantifiable achievements
3. Relevant industry experience
4. Leadership/impact indicators

IMPORTANT RULES:
1. Only use IDs from the list above, most relevant first.
2. Return ONLY the final JSON object. Do not output drafts or reasoning outside the JSON.
3. If no bullets match perfectly, select the closest ones and explain in "reasoning".
4. Write "reasoning" in {language.display_name}.

Respond with JSON:
{{
  "selected_bullet_ids": ["id1", "id2"],
  "reasoning": "Brief explanation of selection strategy"
}}"""


def tailor_bullet_prompt(
    bullet: Bullet,
    analysis: JobAnalysis,
    language: TargetLanguage,
    style: str,
) -> str:
    return f"""Optimize one experience bullet for a job application.

ORIGINAL BULLET:
{bullet.content}

TARGET CONTEXT:
- Job Title: {analysis.title}
- Required Skills: {_join(analysis.required_skills)}
- Keywords: {_join(analysis.keywords)}

TASK INSTRUCTIONS:
1. Fix grammar and clarity problems.
2. If the bullet already has a clear action and a quantifiable result, keep its structure close to the original.
   Otherwise rewrite it around a specific action and a measurable result that the original supports.
3. Weave in at most 3-5 of the keywords, only where they are true for this bullet.
4. Preserve the facts. Never add technologies, numbers or outcomes the original does not state.
5. Use a {style} tone and write strictly in {language.display_name}.

Apply **bold** markdown to 3-5 high-value terms (tech stack, metrics, strong action verbs).

{JSON_ONLY}

Response format:
{{
  "tailored_content": "The optimized bullet with **markdown** formatting",
  "keywords": ["keywords", "used"]
}}"""


def summary_prompt(
    user: User,
    analysis: JobAnalysis,
    bullets: List[TailoredBullet],
    language: TargetLanguage,
) -> str:
    achievements = "\n".join(f"- {b.tailored_content}" for b in bullets) or "- (none)"
    return f"""Generate a professional summary for a resume application.

CANDIDATE INFO:
- Name: {user.display_name()}
- Headline: {user.headline or ""}
- Current Summary: {user.summary or ""}

KEY ACHIEVEMENTS (selected for this job):
{achievements}

TARGET JOB:
- Title: {analysis.title}
- Company: {analysis.company}
- Required Skills: {_join(analysis.required_skills)}
- Summary: {analysis.summary}

Write a compelling 3-4 sentence professional summary that:
1. Highlights relevant experience and skills
2. References the strongest achievements above
3. Aligns with the target job requirements
4. Uses confident, professional language
5. Is written in {language.display_name}

Use **bold** sparingly, 4-6 terms at most.

{JSON_ONLY}

Respond with JSON:
{{
  "summary": "the generated professional summary"
}}"""


def score_match_prompt(
    analysis: JobAnalysis,
    content: ResumeContent,
    skills: List[Skill],
) -> str:
    skills_text = "\n".join(f"- {s.name} (proficiency: {int(s.proficiency_level)}%)" for s in skills) or "- (none)"

    lines = [f"Summary: {content.summary}", ""]
    for exp in content.experiences:
        lines.append(f"{exp.title} at {exp.organization}:")
        lines.extend(f"  - {b.tailored_content}" for b in exp.bullets)
    years = analysis.years_experience if analysis.years_experience is not None else "not specified"

    return f"""Score how well this resume matches the job requirements.

JOB REQUIREMENTS:
- Title: {analysis.title}
- Required Skills: {_join(analysis.required_skills)}
- Preferred Skills: {_join(analysis.preferred_skills)}
- Years Experience: {years}
- Summary: {analysis.summary}

CANDIDATE SKILLS:
{skills_text}

RESUME CONTENT:
{chr(10).join(lines)}

Analyze the match and provide an integer score from 0-100 based on:
1. Skill alignment (40%)
2. Experience relevance (30%)
3. Seniority fit (15%)
4. Keyword coverage (15%)

{JSON_ONLY}

Respond with JSON:
{{
  "score": 85,
  "breakdown": {{"skills": 90, "experience": 80, "seniority": 85, "keywords": 75}},
  "explanation": "Brief explanation of the score"
}}"""
