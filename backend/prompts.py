QUIZ_SYSTEM_PROMPT = (
    "You are a quiz generator that creates clear, accurate questions. "
    "Always respond with valid JSON containing a questions array."
)


QUIZ_PROMPT = """
Generate exactly {count} multiple choice questions about "{topic}" at {difficulty} difficulty level.

Each question must follow this format:
{{
  "question": "Clear, concise question text",
  "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
  "correctAnswer": "The exact text of the correct option"
}}

Requirements:
- Questions should be appropriate for {difficulty} difficulty
- Each question must have exactly 4 options
- The correctAnswer must exactly match one of the options
- No duplicate questions or options
- Keep questions and answers concise
{exclusions}
Return a JSON object with this structure:
{{
  "questions": [
    // Array of question objects as specified above
  ]
}}
""".strip()


QUIZ_EXCLUSIONS = """
Do not repeat or rephrase any of these questions, which the quiz already contains:
{questions}
"""
