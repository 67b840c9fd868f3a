from typing import Dict, List, Tuple

JSON_SYSTEM_PROMPT = (
    "You are a career coaching assistant. "
    "Respond with a single valid JSON object and nothing else. "
    "Do not wrap the JSON in markdown. If something is unknown, use an empty list or empty string."
)

CONTENT_SYSTEM_PROMPT = (
    "You are a concise career coaching assistant. Respond as clear plain text."
)

MAX_RESUME_CHARS = 5000


def build_resume_analysis_prompt(resume_text: str, target_role: str) -> Tuple[str, str]:
    resume = resume_text.strip()[:MAX_RESUME_CHARS]
    user = (
        f"You are analyzing a candidate resume for the role of {target_role}.\n\n"
        f"RESUME:\n{resume}\n\n"
        "TASKS:\n"
        "1. List the technical and professional skills evidenced in the resume.\n"
        f"2. List only the top 3-5 missing or weak skills critical for {target_role}. "
        "Avoid generic items unless they are clearly missing.\n"
        "3. For each gap, recommend a concrete learning step with specific resources, "
        "a realistic duration, and a priority (high, medium, low).\n"
        "4. Give an overall score from 0 to 100 and a short actionable recommendation.\n\n"
        "SCHEMA: {\"identified_skills\": [string], \"skill_gaps\": [string], "
        "\"learning_path\": [{\"title\": string, \"duration\": string, \"priority\": string, "
        "\"resources\": [{\"title\": string, \"url\": string, \"type\": string}]}], "
        "\"overall_score\": number, \"recommendations\": string}"
    )
    return JSON_SYSTEM_PROMPT, user


def build_interview_questions_prompt(role: str, experience: str, question_count: int) -> Tuple[str, str]:
    user = (
        f"Generate {question_count} interview questions for a {experience}-level {role} candidate. "
        "Mix behavioral and technical questions appropriate to the level.\n\n"
        "SCHEMA: {\"questions\": [{\"question\": string, \"type\": \"behavioral\"|\"technical\"|\"situational\", "
        "\"difficulty\": \"easy\"|\"medium\"|\"hard\", \"category\": string, "
        "\"expected_duration\": string, \"follow_up_questions\": [string]}]}"
    )
    return JSON_SYSTEM_PROMPT, user


def build_interview_evaluation_prompt(
    role: str,
    experience: str,
    questions_and_answers: List[Dict[str, str]],
) -> Tuple[str, str]:
    transcript = "\n\n".join(
        f"Q{index + 1}: {qa.get('question', '').strip()}\nA{index + 1}: {(qa.get('answer') or '').strip() or '(no answer)'}"
        for index, qa in enumerate(questions_and_answers)
    )
    user = (
        f"Evaluate this interview for a {experience}-level {role} candidate. "
        "Score each answer from 0 to 100 with specific feedback.\n\n"
        f"TRANSCRIPT:\n{transcript}\n\n"
        "SCHEMA: {\"overall_score\": number, \"individual_scores\": [{\"question_index\": number, "
        "\"score\": number, \"feedback\": string, \"strengths\": [string], \"improvements\": [string]}], "
        "\"summary\": {\"strengths\": [string], \"areas_for_improvement\": [string], "
        "\"recommendations\": [string], \"next_steps\": [string]}, "
        "\"competency_assessment\": {\"technical\": number, \"communication\": number, "
        "\"problem_solving\": number, \"leadership\": number}}"
    )
    return JSON_SYSTEM_PROMPT, user


def build_assessment_prompt(domain: str, difficulty: str, question_count: int) -> Tuple[str, str]:
    user = (
        f"Create {question_count} multiple-choice {domain} assessment questions at {difficulty} difficulty. "
        "Each question has exactly four options and one correct answer copied verbatim from the options.\n\n"
        "SCHEMA: {\"questions\": [{\"question\": string, \"options\": [string], \"correct_answer\": string, "
        "\"explanation\": string, \"difficulty\": string, \"category\": string}]}"
    )
    return JSON_SYSTEM_PROMPT, user


def build_content_prompt(prompt: str) -> Tuple[str, str]:
    return CONTENT_SYSTEM_PROMPT, prompt.strip()
