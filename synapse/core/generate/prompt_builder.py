import json
from typing import Dict, List, Sequence, Tuple
from synapse.models.chat import ChatMessage
from synapse.models.study import ConceptAnalysis, HistoryTurn

CHAT_SYSTEM_PROMPT = """You are a helpful AI assistant that answers questions about documents.
You have access to relevant excerpts from the document to help answer questions accurately.
Always cite the specific chunks you're referencing in your answer."""

CHAT_TIMESTAMP_RULES = """When the content comes from audio/video sources, include timestamp references in your responses.
Format timestamps as [MM:SS] or [HH:MM:SS] in your response when referring to specific audio segments.
This helps users navigate to the exact moment in the audio where the information is discussed."""

CHAT_CLOSING_RULES = "Be concise but thorough. If you're unsure about something, say so rather than making up information."

EVALUATOR_SYSTEM_PROMPT = "You are an expert educational evaluator. Analyze teaching explanations for accuracy, clarity, and completeness."


class PromptBuilder:
    # Chat

    @staticmethod
    def chat_system_prompt(include_timestamps: bool) -> str:
        parts = [CHAT_SYSTEM_PROMPT]
        if include_timestamps:
            parts.append(CHAT_TIMESTAMP_RULES)
        parts.append(CHAT_CLOSING_RULES)
        return "\n\n".join(parts)

    @staticmethod
    def chat_user_prompt(message: str, context: str, history: Sequence[ChatMessage]) -> str:
        """History (oldest first), then excerpts, then the question."""
        prompt = "Previous conversation:\n"
        for msg in history:
            speaker = "User" if msg.role == "user" else "Assistant"
            prompt += f"{speaker}: {msg.content}\n"

        prompt += f"\nRelevant document excerpts:\n{context}\n\n"
        prompt += f"Current question: {message}\n\n"
        prompt += "Please answer the question based on the provided context and conversation history."
        return prompt

    # Study aids

    @staticmethod
    def summary_prompts(title: str, context: str) -> Tuple[str, str]:
        system_msg = (
            "You are an expert study assistant. Write a clear, well-structured summary of the document "
            "based ONLY on the provided content. Cover the main ideas and key takeaways in 3-5 paragraphs."
        )
        user_prompt = f"Document Title: {title}\n\nContent:\n---\n{context}\n---\nProvide the summary now."
        return system_msg, user_prompt

    @staticmethod
    def flashcard_prompts(title: str, context: str, count: int) -> Tuple[str, str]:
        system_msg = f"""You are an expert study assistant. Create {count} flashcards from the provided content.
Each flashcard has a short question on the front and a concise answer on the back.
Only use facts present in the content.

Output format (JSON):
{{
  "flashcards": [
    {{"question": "Question text", "answer": "Answer text"}}
  ]
}}"""
        user_prompt = f"Document Title: {title}\n\nContent:\n{context}"
        return system_msg, user_prompt

    @staticmethod
    def quiz_prompts(title: str,
                     content: str,
                     difficulty: str,
                     description: str,
                     question_count: int,
                     include_timestamps: bool) -> Tuple[str, str]:
        requirements = [
            f"Questions should test {description}",
            "Include a mix of question types",
            "Each question must have 4 options (A, B, C, D)",
            "Provide clear explanations for correct answers",
        ]
        if include_timestamps:
            requirements.append("For timestamp questions, reference specific times from the provided timestamps")
        requirements.append("Ensure questions are context-aware and meaningful")

        example = {
            "question": "Question text",
            "options": ["A) Option 1", "B) Option 2", "C) Option 3", "D) Option 4"],
            "correct_answer": 0,
            "explanation": "Why this answer is correct",
            "type": "multiple_choice",
        }
        if include_timestamps:
            example["timestamp"] = {"start": 135, "end": 150, "display_time": "2:15"}
        example["difficulty"] = difficulty

        system_msg = (
            f"You are an expert quiz creator. Generate {question_count} {difficulty} difficulty questions "
            "based on the provided content.\n\n"
        )
        if include_timestamps:
            system_msg += (
                f"This is audio content with timestamps. Include {question_count // 3} "
                "timestamp-based questions that reference specific times in the audio "
                "(e.g., \"What did the speaker mention at 2:15?\").\n\n"
            )
        system_msg += "Requirements:\n"
        system_msg += "\n".join(f"{i}. {req}" for i, req in enumerate(requirements, start=1))
        system_msg += "\n\nOutput format (JSON):\n"
        system_msg += json.dumps({"questions": [example]}, indent=2)

        user_prompt = f"Document Title: {title}\n\nContent:\n{content}"
        return system_msg, user_prompt

    # Teach Me

    @staticmethod
    def evaluation_prompts(source_material: str, explanation: str, topic: str) -> Tuple[str, str]:
        user_prompt = f"""You are evaluating a teaching explanation for accuracy, clarity, and completeness.

Source Material:
{source_material}

Student's Explanation:
{explanation}

Current Topic: {topic}

Please evaluate the explanation on the following criteria:
1. Accuracy (0-100): How factually correct is the explanation compared to the source?
2. Clarity (0-100): How clear and understandable is the explanation?
3. Completeness (0-100): How well does it cover the key concepts?
4. Misconceptions: List any errors or misconceptions in the explanation
5. Missing Concepts: List important concepts that were not covered
6. Strengths: What did the teacher explain particularly well?

Provide your evaluation in JSON format with the keys
"accuracy", "clarity", "completeness", "misconceptions", "missing_concepts" and "strengths"."""
        return EVALUATOR_SYSTEM_PROMPT, user_prompt

    @staticmethod
    def student_reply_prompt(scores: Dict[str, int],
                             misconceptions: List[str],
                             missing_concepts: List[str],
                             history: Sequence[HistoryTurn]) -> str:
        if history:
            history_text = "\n".join(f"{turn.role}: {turn.content}" for turn in history)
        else:
            history_text = "No previous messages"

        return f"""Based on this evaluation of the teacher's explanation:
- Accuracy: {scores['accuracy']}%
- Clarity: {scores['clarity']}%
- Completeness: {scores['completeness']}%
- Misconceptions: {', '.join(misconceptions) or 'None'}
- Missing concepts: {', '.join(missing_concepts) or 'None'}

Generate an appropriate response that:
1. Reflects your personality traits
2. Shows understanding where the explanation was clear
3. Asks for clarification where needed
4. Points out any confusion from misconceptions
5. Inquires about missing concepts naturally
6. Maintains engagement and encourages the teacher

Previous conversation for context:
{history_text}"""

    @staticmethod
    def follow_up_prompt(topic: str, recent_explanation: str, comprehension_level: float) -> str:
        return f"""Current topic: {topic}
Recent explanation: {recent_explanation}
Student's comprehension level: {comprehension_level}%

Generate a follow-up question that:
1. Matches the personality's learning style and difficulty preference
2. Probes deeper if comprehension is high (>70%)
3. Asks for clarification if comprehension is low (<50%)
4. Tests understanding if comprehension is moderate (50-70%)
5. Relates to real-world applications or examples"""

    # Teach Me script

    @staticmethod
    def concept_analysis_prompts(content: str) -> Tuple[str, str]:
        system_msg = """You are an expert educator analyzing content for teaching. Extract the key concepts, main ideas, and potential areas of confusion from the following content.

Output format (JSON):
{
  "key_concepts": ["concept1", "concept2"],
  "main_ideas": ["idea1", "idea2"],
  "potential_confusions": ["confusion1", "confusion2"],
  "suggested_teaching_order": ["topic1", "topic2"]
}"""
        return system_msg, content

    @staticmethod
    def conversation_starter_prompts(student_name: str, title: str, key_concepts: List[str]) -> Tuple[str, str]:
        first_concept = key_concepts[0] if key_concepts else title
        system_msg = f"""You are creating a Teach Me mode conversation script. The user will teach {student_name} about the topic.

Create an engaging opening for the teaching session that:
1. Introduces {student_name} with their personality
2. Shows what {student_name} already knows (very basic)
3. Asks the user to explain the first key concept: "{first_concept}"
4. Includes 2-3 follow-up questions {student_name} might ask based on their personality
5. Adds one intentional misconception that {student_name} might have

Format as a conversation starter, not a full script."""
        user_prompt = f"Topic: {title}\nKey concepts to cover: {', '.join(key_concepts)}"
        return system_msg, user_prompt

    @staticmethod
    def targeted_question_prompts(student_name: str, key_concepts: List[str], traits: Sequence[str]) -> Tuple[str, str]:
        system_msg = (
            f"As {student_name}, create specific questions for each key concept that match the personality. "
            "Questions should test understanding and encourage deeper explanation."
        )
        user_prompt = f"Concepts: {json.dumps(key_concepts)}\nPersonality traits: {', '.join(traits)}"
        return system_msg, user_prompt

    @staticmethod
    def misconception_prompts(student_name: str, title: str, analysis: ConceptAnalysis) -> Tuple[str, str]:
        system_msg = (
            f"Create 3-5 common misconceptions about the topic that {student_name} might have. "
            "These should be realistic misunderstandings that help test if the teacher truly understands the material."
        )
        user_prompt = (
            f"Topic: {title}\n"
            f"Main ideas: {', '.join(analysis.main_ideas)}\n"
            f"Potential confusions: {', '.join(analysis.potential_confusions)}"
        )
        return system_msg, user_prompt
