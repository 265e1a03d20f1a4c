"""Prompt templates for answering and for the relevance check."""
from dataclasses import dataclass
from typing import Optional, Sequence

NO_INFORMATION_ANSWER = "I did not find any relevant information on this subject."

OFF_TOPIC_ANSWER = (
    "I can only answer questions about the documentation. "
    "Please rephrase your question."
)

PRODUCT_NAME = "Directus"

ANSWER_INSTRUCTIONS = [
    f"You are a technical assistant specialized in {PRODUCT_NAME}.",
    "Use only the documentation below to answer.",
    "You must rely strictly on this documentation, and do not hallucinate.",
    "Structure your answer with Markdown headings and subheadings for each important section.",
    "Use bullet or numbered lists for steps or key points, blockquotes for notes or warnings, "
    "and Markdown code blocks for any code examples.",
    "Your answer must be complete, precise, well-structured, and easy to read.",
    "Avoid generic statements and focus on real implementation details.",
    "Do not reference the sources in your answer.",
]


@dataclass
class PromptContext:
    """One retrieved passage as shown to the model."""

    text: str
    source: str
    section: Optional[str] = None

    def render(self) -> str:
        header = f"Source: {self.source}"
        if self.section:
            header += f", section: {self.section}"
        return f"{header}\n{self.text}"


def build_prompt(question: str, contexts: Sequence[PromptContext]) -> str:
    """Assemble the grounded answer prompt.

    With no contexts the fixed NO_INFORMATION_ANSWER is returned instead of
    a prompt, and callers must not send it to a model.
    """
    if not contexts:
        return NO_INFORMATION_ANSWER

    context_text = "\n\n".join(context.render() for context in contexts)

    return "\n".join(
        ANSWER_INSTRUCTIONS
        + [
            "",
            f"Documentation:\n{context_text}",
            "",
            f"Question: {question}",
            "Answer:",
        ]
    )


def build_relevance_prompt(question: str) -> str:
    """Yes/no prompt asking whether a question is about the product."""
    return f"""
You are a filter placed before a documentation assistant.
The assistant only answers questions about the {PRODUCT_NAME} platform (CMS, API, SDK, configuration, permissions, etc.).

Assume the user is on the official {PRODUCT_NAME} documentation site.
Determine whether the following question is meant to be about {PRODUCT_NAME}.

Answer strictly with "yes" or "no". Do not explain.

Question: {question}
Answer:
""".strip()
