"""
Skills Extraction Graph.

Flow: Extractor (comma-separated skills from the JD) -> Verifier (removes
non-technical terms, normalizes names, adds critical missing skills).
Single pass; there is no reject branch to bound.
"""

import re
from typing import List, Optional

from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.prompts.skills_prompts import (
    EXTRACTOR_SYSTEM_PROMPT,
    VERIFIER_SYSTEM_PROMPT,
    build_verifier_prompt,
)

GRAPH_NAME = "skills_extraction"


def parse_skill_list(text: str) -> List[str]:
    """
    Parse a comma/newline separated skill list.

    Strips bullets, numbering and wrapping quotes; deduplicates
    case-insensitively preserving first occurrence.
    """
    seen = set()
    skills = []
    for raw in re.split(r"[,\n;]", text or ""):
        item = re.sub(r"^\s*(?:[-*•]|\d+[.)])\s*", "", raw).strip().strip("\"'`.").strip()
        if not item or len(item) > 60:
            continue
        key = item.lower()
        if key not in seen:
            seen.add(key)
            skills.append(item)
    return skills


class SkillsExtractionGraph:
    """Extract the key technical skills a job description asks for."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, refined_jd: str) -> List[str]:
        ctx = self.context
        extractor = ctx.agent("skills_extractor", EXTRACTOR_SYSTEM_PROMPT, self.config.temperature)
        verifier = ctx.agent("skills_verifier", VERIFIER_SYSTEM_PROMPT, self.config.temperature)

        ctx.emit("Extracting key skills from JD...")
        extracted = await ctx.call(extractor, refined_jd)

        ctx.emit("Verifying skill accuracy...")
        verified = parse_skill_list(await ctx.call(verifier, build_verifier_prompt(refined_jd, extracted)))

        skills = verified or parse_skill_list(extracted)
        self._logger.info(f"Extracted {len(skills)} skills")
        return skills


async def extract_skills(refined_jd: str, context: GraphContext) -> List[str]:
    """Convenience function to run the skills extraction graph."""
    return await SkillsExtractionGraph(context).run(refined_jd)
