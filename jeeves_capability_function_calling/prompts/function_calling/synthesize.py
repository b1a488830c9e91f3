"""Second-pass prompt: turn a capability result into a natural answer."""

from jeeves_capability_function_calling.prompts.registry import PromptRegistry, register_prompt


@register_prompt(
    name="function_calling.synthesize",
    version="1.0",
    description="Answer the user's question from a capability result",
)
def function_calling_synthesize() -> str:
    return """You called the function "{capability_name}" to help answer the user.

## User's Question
{user_query}

## Function Result (JSON)
{result_json}

## Task
Answer the user's question using ONLY the function result above.
- Reply in plain text, 1-3 sentences
- Do NOT output JSON and do NOT call another function
- If the result contains a link or query string, include it exactly as given

Answer:"""


def build_synthesis_prompt(capability_name: str, user_query: str, result_json: str) -> str:
    return PromptRegistry.get_instance().get(
        "function_calling.synthesize",
        context={
            "capability_name": capability_name,
            "user_query": user_query,
            "result_json": result_json,
        },
    )
