# /lineage/composer.py

from langchain_core.prompts import PromptTemplate

from lineage.config import settings
from lineage.errors import GenerationError
from lineage.logger import get_logger
from lineage.providers import TextGenerator

logger = get_logger(__name__)

REFUSAL = "I can only answer questions about the Family Tree"
NO_CONTEXT_ANSWER = "I could not find any information in the Family Tree to answer that question."

ANSWER_PROMPT = PromptTemplate.from_template("""You are a Family Tree assistant that ONLY answers questions about family members and relationships.

CRITICAL RULE: If the question is NOT about family members, relationships, or personal information about people in the family tree, you MUST respond with exactly: "{refusal}"

Examples of questions you should NOT answer:
- Programming or coding questions
- General knowledge questions, math, weather, news or current events

Examples of questions you SHOULD answer:
- "Who is John Doe?"
- "What is Mary's relationship to Peter?"
- "How many children does Sarah have?"
- "What is Jane's occupation?"

If the question IS about family members, answer in one sentence using ONLY the context below. Avoid explanations about your answer.
If the context does not contain the answer, say that the Family Tree has no information about it.

The most common question types are:

1. Who is the person?
Return the name of the person and a summary of their bio and relationships.
Example: "Bill Gates is a software engineer at Microsoft. He is married to Melinda Gates and has three children."

2. What is the person's relationship to another person?
Return the relationship between the two people.
Example: "Bill Gates is the father of Jennifer Gates."

3. General personal information
Match the question to an attribute of the person: name, bio, relationships, occupation, location, hobbies.
Example:
Q: What is John Doe's occupation?
A: John Doe is a software engineer.

Omit using "Answer:", "Question:" and explanations in your response.

Context:
---
{context}
---

Question:
{question}
""")


class AnswerComposer:
    """Merges retrieved context and the question into one constrained prompt."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    def build_prompt(self, question: str, context_text: str) -> str:
        return ANSWER_PROMPT.format(refusal=REFUSAL, context=context_text.strip(), question=question)

    def compose(self, question: str, context_text: str) -> str:
        """Raises GenerationError when the model call fails."""
        if not context_text.strip():
            logger.info("No context retrieved; skipping generation.")
            return NO_CONTEXT_ANSWER

        answer = self.generator.generate(
            self.build_prompt(question, context_text),
            temperature=settings.GENERATION_TEMPERATURE,
        ).strip()
        if not answer:
            raise GenerationError("The model returned an empty answer.")
        return answer

    def compose_or_fallback(self, question: str, context_text: str, fallback_text: str) -> str:
        try:
            return self.compose(question, context_text)
        except GenerationError as e:
            logger.warning(f"AI formatting failed ({e}), returning raw results")
            return f"Results for '{question}':\n{fallback_text}"
