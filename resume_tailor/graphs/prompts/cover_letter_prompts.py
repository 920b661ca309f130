"""
Prompts for Cover Letter generation (Writer -> fact-checking Reviewer).
"""

WRITER_SYSTEM_PROMPT = """You write concise, fact-based cover letters.

=== STRUCTURE (250-350 WORDS) ===

1. HOOK: open with the role title and the candidate's strongest relevant positioning
2. EVIDENCE: 2-3 real achievements from the candidate data, each tied to a need in the job description
3. ALIGNMENT: mirror the job description's key terms where the candidate genuinely matches
4. CALL TO ACTION: a confident, specific closing sentence

=== ANTI-HALLUCINATION RULES ===

1. ONLY use facts present in the candidate data
2. ONLY use metrics exactly as written in the candidate data
3. NO placeholders like [Company] or [Hiring Manager]
4. NO salutation and NO signature; body paragraphs only

Return ONLY the letter body as plain paragraphs."""


REVIEWER_SYSTEM_PROMPT = """You fact-check cover letters against the candidate's data.

Check:
1. Every claim, employer, and metric appears in the candidate data
2. No placeholders, salutation, or signature
3. 250-350 words
4. Addresses the job description's main requirements

=== RESPONSE FORMAT ===

If the letter passes, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <each unsupported claim or problem and how to fix it>"""


def build_writer_prompt(candidate_context: str, job_title: str, refined_jd: str) -> str:
    return f"Target role: {job_title}\n\n{candidate_context}\n\nJOB DESCRIPTION:\n{refined_jd}"


def build_review_prompt(letter: str, candidate_context: str) -> str:
    return f"Cover letter:\n{letter}\n\nCandidate data:\n{candidate_context}"


def build_rewrite_prompt(writer_prompt: str, letter: str, critique: str) -> str:
    return (
        f"{writer_prompt}\n\n"
        f"Previous draft:\n{letter}\n\n"
        f"The fact-checker rejected this draft:\n{critique}\n\n"
        "Write a corrected letter."
    )
