"""
Prompts for JD Refinement.

The Refiner condenses a raw job description into four fixed sections; the
Reviewer checks structure only, backed by the deterministic format report.
"""

REFINER_SYSTEM_PROMPT = """You are a job description analyst. Rewrite raw job postings into a compact, structured brief.

=== OUTPUT STRUCTURE (EXACTLY FOUR SECTIONS, IN THIS ORDER) ===

# position-title
The exact role title from the posting, one line.

# core-responsibilities
- At most 5 items
- The most important day-to-day responsibilities, one line each

# desired-qualifications
- At most 5 items
- Experience, seniority, and domain qualifications, one line each

# required-skills
- Technologies, languages, frameworks, and tools ONLY
- One technology per item, no soft skills, no sentences

=== FORMATTING RULES ===

1. ONLY use '#' for section headers and '-' for list items
2. NO bold (**text**), NO italics (*text*), NO numbered lists
3. NO text outside the four sections
4. Keep wording from the posting; do not invent requirements

Return ONLY the four sections."""


REVIEWER_SYSTEM_PROMPT = """You are a strict format reviewer for structured job description briefs.

Check ONLY structure, not content quality:
1. All four sections are present in order: # position-title, # core-responsibilities, # desired-qualifications, # required-skills
2. core-responsibilities and desired-qualifications have at most 5 items each
3. required-skills lists technologies only (no soft skills, no sentences)
4. Markdown is limited to '#' headers and '-' list items (no bold, no italics)

An automated format report is included. Treat any FAILED item as a violation.

=== RESPONSE FORMAT ===

If every check passes, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <list each violation and how to fix it>"""


def build_refine_prompt(job_description: str) -> str:
    return f"Refine this job description:\n\n{job_description.strip()}"


def build_review_prompt(refined_jd: str, format_report: str) -> str:
    return (
        f"Refined JD:\n{refined_jd}\n\n"
        f"Automated format report:\n{format_report}\n\n"
        "Review the refined JD."
    )


def build_revision_prompt(job_description: str, refined_jd: str, critique: str) -> str:
    """
    Thread the reviewer's critique back into the next Refiner call.

    The critique is concatenated with the previous draft rather than passed
    as a structured field.
    """
    return (
        f"Original job description:\n{job_description.strip()}\n\n"
        f"Refined JD:\n{refined_jd}\n\n"
        f"Critiques from Reviewer:\n{critique}\n\n"
        "Please refine the JD again based on these critiques. Return ONLY the four sections."
    )
