"""PRD generation prompts, one specialist prompt per section."""
from __future__ import annotations

PRD_TEMPERATURE = 0.2

PRD_SYSTEM_PROMPT = (
    "You are a senior product manager writing a Product Requirements Document. "
    "Be specific and practical."
)

JSON_RESPONSE_RULES = """

Your response MUST be a single, valid JSON object with a flat structure. Do not \
nest the response inside other keys. All property names (keys) must be camelCase \
and enclosed in double quotes. All string values must also be in double quotes."""

SUMMARY_PROMPT = (
    'Based on the refined idea, create an "Elevator Pitch" and a "Project Summary". '
    "REFINED IDEA: {refined_idea}. ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with keys "elevatorPitch" and "summary".'
)

PERSONAS_PROMPT = (
    'Based on the refined idea, define 2-3 detailed "User Personas". '
    "REFINED IDEA: {refined_idea}. ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with a key "personas" (an array of persona '
    "objects). Each persona must have: name, role, goals (array), "
    "frustrations (array)."
)

FEATURES_PROMPT = (
    'Based on the refined idea, list 5-7 "Key Features" with priority. '
    "REFINED IDEA: {refined_idea}. ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with a key "features" (an array of feature '
    'objects). Each feature must have: name, description, priority ("High", '
    '"Medium", or "Low").'
)

TECH_STACK_PROMPT = (
    'Based on the refined idea, recommend a detailed "Tech Stack". '
    "REFINED IDEA: {refined_idea}. ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with keys: "frontend", "backend", "database", '
    '"hosting". If any field is not applicable, set its value to "Not specified".'
)

UI_DESIGN_PROMPT = (
    'Based on the refined idea, describe the "UI/UX Design". '
    "REFINED IDEA: {refined_idea}. ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with keys "principles" (array), "palette" '
    '(object mapping color names to values), and "screens" (array of objects '
    "with name and description)."
)

IMPLEMENTATION_PROMPT = (
    'Based on the refined idea and tech stack, draft an "Implementation Plan". '
    "REFINED IDEA: {refined_idea}. TECH STACK: {tech_stack}. "
    "ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with keys "timeline" (array of objects with '
    "phase, duration, description, deliverables (array)), \"resources\" (array "
    "of objects with role, commitment, responsibilities (array)) and "
    '"stakeholders" (array of objects with stakeholder, communication, '
    "frequency, deliverables (array))."
)

TIMELINE_PROMPT = (
    "Based on the refined idea and tech stack, plan the project timeline. "
    "REFINED IDEA: {refined_idea}. TECH STACK: {tech_stack}. "
    "ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with a key "timeline" (an array of phase '
    "objects). Each phase must have: phase, duration, description, "
    "deliverables (array)."
)

RESOURCES_PROMPT = (
    "Based on the refined idea and tech stack, plan the team and resource "
    "allocation. REFINED IDEA: {refined_idea}. TECH STACK: {tech_stack}. "
    "ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with a key "resources" (an array of objects). '
    "Each must have: role, commitment, responsibilities (array)."
)

STAKEHOLDERS_PROMPT = (
    "Based on the refined idea, plan stakeholder communication. "
    "REFINED IDEA: {refined_idea}. TECH STACK: {tech_stack}. "
    "ORIGINAL CONTEXT: {context}. "
    'Respond with a JSON object with a key "stakeholders" (an array of '
    "objects). Each must have: stakeholder, communication, frequency, "
    "deliverables (array)."
)

SECTION_PROMPTS: dict[str, str] = {
    "summary": SUMMARY_PROMPT,
    "personas": PERSONAS_PROMPT,
    "features": FEATURES_PROMPT,
    "techStack": TECH_STACK_PROMPT,
    "uiDesign": UI_DESIGN_PROMPT,
    "implementation": IMPLEMENTATION_PROMPT,
    "implementationTimeline": TIMELINE_PROMPT,
    "implementationResources": RESOURCES_PROMPT,
    "implementationStakeholders": STAKEHOLDERS_PROMPT,
}


def build_section_prompt(
    key: str, refined_idea: str, context: str, tech_stack: str = ""
) -> str:
    """Fill in the specialist prompt for one PRD section.

    Raises:
        KeyError: If key is not a PRD section.
    """
    template = SECTION_PROMPTS[key]
    body = template.format(
        refined_idea=refined_idea,
        context=context,
        tech_stack=tech_stack or "Not specified",
    )
    return body + JSON_RESPONSE_RULES
