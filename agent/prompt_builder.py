"""System prompt text and rendering helpers.

All functions are pure: the same AgentConfig and OnboardingSchema always
render to byte-identical text. No timestamps, no randomness.
"""

from typing import List

from agent.config_documents import AgentConfig, OnboardingSchema

DEFAULT_PERSONALITY_BULLET = "- Friendly and helpful"
EMPTY_PLACEHOLDER = "-"

GOAL = """<GOAL>
You are a playful assistant living inside of the onboarding flow for a product called Micro, made by a company called Micro.
Your goal is to collect the information required to onboard the user to the product while having a fun and engaging conversation with them.
Think of yourself like the AI agent version of a traditional GUI onboarding flow!
</GOAL>"""

CONVERSATION_STRUCTURE = """<CONVERSATION STRUCTURE>
- Have a casual and engaging conversation with the user while asking them questions to collect the information required for onboarding.
- Ask for one piece of information at a time. If the user deviates to a different topic, you can briefly entertain the topic but gently bring them back to the question.
- Start the conversation asking the user for their work email address.
- As soon as you have the email, call the enrich_email tool and use what it returns to infer answers to the other questions. Confirm inferred answers instead of asking from scratch.
- When the user is ready to sign in, call google_auth. When they confirm a plan, call stripe_payment.
- If a tool fails, carry on without it. Never mention tool names or errors to the user.
</CONVERSATION STRUCTURE>"""

COOPERATIVE_PRINCIPLES = """DO NOT VIOLATE GRICE'S COOPERATIVE PRINCIPLES:
- Quality - Don't make things up. If unsure, say so.
- Quantity - Match the user's message length. Don't be too verbose.
- Relation - Stay on topic. Only ask about onboarding info.
- Manner - Be clear and concise."""


def render_personality(personality) -> str:
    if isinstance(personality, str):
        return personality
    lines = [f"- {trait}" for trait in personality or []]
    return "\n".join(lines) if lines else DEFAULT_PERSONALITY_BULLET


def render_context(context: List[str]) -> str:
    lines = [f"- {fact}" for fact in context or []]
    return "\n".join(lines) if lines else EMPTY_PLACEHOLDER


def render_onboarding_schema(schema: OnboardingSchema) -> str:
    """Render sections and datapoints as a nested bullet outline.

    Each datapoint renders name, format and instructions lines in that order;
    the options line appears only when the datapoint declares options.
    """
    lines: List[str] = []
    for section in schema.sections:
        lines.append(f"- Section: {section.section}")
        for dp in section.datapoints:
            lines.append(f"  - {dp.name}")
            lines.append(f"    format: {dp.format}")
            lines.append(f"    instructions: {dp.instructions}")
            if dp.options:
                lines.append(f"    options: {', '.join(dp.options)}")
    return "\n".join(lines) if lines else EMPTY_PLACEHOLDER


def build_system_prompt(agent_config: AgentConfig, schema: OnboardingSchema) -> str:
    parts = [
        GOAL,
        CONVERSATION_STRUCTURE,
        f"<INFORMATION TO COLLECT>\n{render_onboarding_schema(schema)}\n</INFORMATION TO COLLECT>",
        f"<CONTEXT>\n{render_context(agent_config.context)}\n</CONTEXT>",
        (
            "<YOUR PERSONALITY>\n"
            f"{render_personality(agent_config.personality)}\n\n"
            f"{COOPERATIVE_PRINCIPLES}\n"
            "</YOUR PERSONALITY>"
        ),
    ]
    return "\n\n".join(parts)
