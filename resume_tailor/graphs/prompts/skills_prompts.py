"""
Prompts for Skills Sorting (Brain -> Scribe -> Editor) and Skills
Extraction (Extractor -> Verifier).
"""

BRAIN_SYSTEM_PROMPT = """You are a technical recruiter ordering a resume's skills section.

Decide:
1. The order of skill GROUPS, most relevant to the job description first
2. The order of skills WITHIN each group, most relevant first

You may note technologies the job asks for that are missing, but NEVER
remove or rename an existing group or skill. Explain your ordering briefly."""


SCRIBE_SYSTEM_PROMPT = """You convert a skills ordering rationale into strict JSON.

Output ONLY this JSON shape, no prose, no markdown:
{"groupOrder": ["Group A", "Group B"], "skillOrder": {"Group A": ["skill1", "skill2"], "Group B": ["skill3"]}}

Rules:
- Use the EXACT group titles and skill texts provided
- Every group and every skill must appear exactly once
- Do not add skills"""


EDITOR_SYSTEM_PROMPT = """You verify a skills ordering JSON against the original skills.

Check:
1. All original groups are present in groupOrder, each exactly once
2. Every original skill is present under its group, each exactly once
3. No skill was added, renamed, or moved between groups

An automated retention report is included.

=== RESPONSE FORMAT ===

If everything is retained, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <what is missing or wrong>
<the corrected JSON on the next line>"""


EXTRACTOR_SYSTEM_PROMPT = """You extract hard skills from job descriptions.

Output a comma-separated list of the 15-20 most important technical skills:
languages, frameworks, platforms, databases, tools, and methodologies with a
concrete technical meaning. Use the professional branding of each name
(e.g. "PostgreSQL", "Node.js", "Kubernetes"). Output ONLY the list."""


VERIFIER_SYSTEM_PROMPT = """You verify an extracted skill list against its job description.

1. Remove non-technical terms (soft skills, traits, generic nouns)
2. Normalize naming to official branding
3. Add any critical technical skill from the job description that is missing

Output ONLY the corrected comma-separated list."""


def build_brain_prompt(refined_jd: str, skills_text: str, critique: str = "") -> str:
    prompt = f"Job description:\n{refined_jd}\n\nCurrent skills:\n{skills_text}"
    if critique:
        prompt += f"\n\nA previous ordering was rejected:\n{critique}"
    return prompt


def build_scribe_prompt(rationale: str, skills_text: str) -> str:
    return f"Ordering rationale:\n{rationale}\n\nOriginal skills:\n{skills_text}\n\nOutput the JSON."


def build_editor_prompt(payload_json: str, skills_text: str, group_count: int, report: str) -> str:
    return (
        f"Proposed ordering:\n{payload_json}\n\n"
        f"Original skills ({group_count} groups):\n{skills_text}\n\n"
        f"Automated retention report:\n{report}"
    )


def build_verifier_prompt(refined_jd: str, extracted: str) -> str:
    return f"Job description:\n{refined_jd}\n\nExtracted skills:\n{extracted}"
