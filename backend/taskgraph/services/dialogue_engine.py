"""Guided multi-stage clarification dialogue for task creation.

A ``DialogueEngine`` owns exactly one session. The stage only moves forward
(initial -> clarification -> refinement -> final) until ``reset`` or a new
``start_interaction``. Calls addressed to unknown question, option or
suggestion ids are logged and leave the state untouched.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence
from uuid import uuid4

from taskgraph.schemas.dialogue import (
    STAGE_ORDER,
    DialogueOption,
    DialogueQuestion,
    DialogueStage,
    DialogueState,
    Suggestion,
)
from taskgraph.schemas.proposal import TaskProposal
from taskgraph.schemas.task import Category, TaskRecord
from taskgraph.services.category import detect_category
from taskgraph.services.history_miner import HistoryMiner

logger = logging.getLogger(__name__)

HISTORY_CONTEXT = "Based on feedback from your previous tasks"


def _question(question_id: str, text: str, options: List[tuple[str, str]], context: str | None = None) -> DialogueQuestion:
    return DialogueQuestion(
        id=question_id,
        text=text,
        type="choice",
        options=[DialogueOption(id=value, text=label, value=value) for value, label in options],
        context=context,
    )


CATEGORY_QUESTIONS: Dict[str, List[DialogueQuestion]] = {
    "work": [
        _question(
            "work-priority",
            "What matters most for this work task?",
            [("efficiency", "Efficiency and speed"), ("quality", "Quality and completeness"), ("innovation", "Innovation and differentiation")],
        ),
        _question(
            "work-deadline",
            "How much preparation time do you have?",
            [("urgent", "Less than a day (urgent)"), ("standard", "2-3 days (standard)"), ("relaxed", "4+ days (relaxed)")],
        ),
        _question(
            "work-collaboration",
            "Does this task need collaboration?",
            [("solo", "I'll do it alone"), ("team", "Needs team collaboration"), ("stakeholders", "Needs coordination with several stakeholders")],
        ),
    ],
    "learning": [
        _question(
            "learning-style",
            "Which learning style do you prefer?",
            [("structured", "Structured, step by step"), ("practical", "Hands-on, learn by doing"), ("social", "Social, learn through discussion")],
        ),
        _question(
            "learning-time",
            "How much time can you commit to learning?",
            [("minimal", "Under 30 minutes a day"), ("moderate", "1-2 hours a day"), ("intensive", "More than 2 hours a day")],
        ),
        _question(
            "learning-depth",
            "What level of mastery are you aiming for?",
            [("basic", "Basic understanding"), ("intermediate", "Practical proficiency"), ("expert", "Deep expertise")],
        ),
    ],
    "health": [
        _question(
            "health-condition",
            "How would you describe your current condition?",
            [("recovery", "Recovering / need gentle activity"), ("maintaining", "Normal / maintaining"), ("improving", "Good / want to improve")],
        ),
        _question(
            "health-goal",
            "What is your main health goal?",
            [
                ("weight", "Weight management"),
                ("strength", "Build strength"),
                ("endurance", "Improve endurance"),
                ("flexibility", "Improve flexibility"),
                ("wellness", "Overall wellness"),
            ],
        ),
        _question(
            "health-time",
            "How much time can you commit each week?",
            [("minimal", "1-2 sessions a week"), ("moderate", "3-4 sessions a week"), ("intensive", "5+ sessions a week")],
        ),
    ],
    "other": [
        _question(
            "general-priority",
            "What matters most for this task?",
            [("time", "Time efficiency"), ("quality", "Quality"), ("cost", "Cost"), ("experience", "Experience")],
        ),
        _question(
            "general-complexity",
            "How elaborate should the plan be?",
            [("simple", "Simple and direct"), ("moderate", "Moderately comprehensive"), ("complex", "Thorough and in-depth")],
        ),
    ],
}

HISTORY_TIME_QUESTION = _question(
    "history-time",
    "You mentioned running short on time before. How do you want to handle it this time?",
    [("more-time", "Allocate more time"), ("simplify", "Simplify the requirements"), ("delegate", "Ask for extra help")],
    context=HISTORY_CONTEXT,
)
HISTORY_DIFFICULTY_QUESTION = _question(
    "history-difficulty",
    "You mentioned difficulty-related challenges before. This time you would like to:",
    [("easier", "Lower the difficulty to make sure it gets done"), ("same", "Keep a moderate challenge"), ("harder", "Raise the difficulty to grow")],
    context=HISTORY_CONTEXT,
)
HISTORY_HEALTH_QUESTION = _question(
    "history-health",
    "Considering the health issues you mentioned before, this time you need:",
    [("gentle", "A gentler plan"), ("balanced", "A balanced plan"), ("challenging", "A challenging plan")],
    context="Based on feedback about your health",
)

PRIORITY_QUESTION_IDS = ["work-priority", "general-priority", "learning-style", "health-condition"]
DEFAULT_PRIORITY = "balanced"

SUGGESTION_TEMPLATES = {
    "efficiency": "Need it done fast? A lean, efficient plan for {title}",
    "quality": "Aiming for excellence? A thorough, detailed plan for {title}",
    "innovation": "Looking for a breakthrough? An innovative, differentiated plan for {title}",
}

FINAL_STEPS = [
    "Step 1: Initial preparation",
    "Step 2: Analyze requirements",
    "Step 3: Make a plan",
    "Step 4: Execute the task",
    "Step 5: Evaluate results",
]

SHORT_ESTIMATE = "Short: 1-2 hours"
MEDIUM_ESTIMATE = "Medium: 3-7 hours"
LONG_ESTIMATE = "Long: 8+ hours"

TIME_QUESTION_IDS = ["work-deadline", "learning-time", "health-time"]
SHORT_TIME_ANSWERS = {"urgent", "minimal"}
LONG_TIME_ANSWERS = {"relaxed", "intensive"}

# (question id, triggering answers, risk)
RISK_RULES = [
    ("work-deadline", {"urgent"}, "Tight deadline may compromise quality"),
    ("work-collaboration", {"team", "stakeholders"}, "Multi-party collaboration may cause communication delays"),
    ("learning-depth", {"expert"}, "Expert-level learning requires more time and effort"),
    ("health-condition", {"recovery"}, "Recovery period requires care to avoid overtraining"),
]
DEFAULT_RISK = "No specific risk identified"

PRIORITY_LABELS = {
    "efficiency": "values efficiency",
    "time": "values efficiency",
    "quality": "focuses on quality",
    "innovation": "pursues innovation",
}
DEADLINE_LABELS = {"urgent": "urgent timeframe", "standard": "standard timeframe", "relaxed": "relaxed timeframe"}
LEARNING_STYLE_LABELS = {"structured": "structured learning", "practical": "hands-on learning", "social": "social learning"}
HEALTH_GOAL_LABELS = {
    "weight": "weight management",
    "strength": "strength building",
    "endurance": "endurance",
    "flexibility": "flexibility",
    "wellness": "overall wellness",
}


class DialogueEngine:
    """State machine for one guided clarification session."""

    def __init__(self, history: Sequence[TaskRecord] = (), history_miner: Optional[HistoryMiner] = None) -> None:
        self.history: List[TaskRecord] = list(history)
        self.history_miner = history_miner or HistoryMiner()
        self._state = DialogueState()

    def start_interaction(self, title: str, history: Optional[Sequence[TaskRecord]] = None) -> DialogueState:
        logger.info("Starting interaction for task: %s", title)
        if history is not None:
            self.history = list(history)

        self._state = DialogueState(task_title=title)
        category = detect_category(title)
        questions = [question.model_copy(deep=True) for question in CATEGORY_QUESTIONS[category]]
        history_questions = self._history_questions(title, category)
        self._state.questions = questions + history_questions

        logger.info(
            "Detected task type %s, generated %d questions (%d history-based)",
            category,
            len(self._state.questions),
            len(history_questions),
        )
        return self.get_state()

    def submit_answer(self, question_id: str, option_id: str) -> DialogueState:
        logger.info("Submitting answer: %s=%s", question_id, option_id)
        state = self._state
        if state.stage not in ("initial", "clarification"):
            logger.warning("Ignoring answer for %s: session already in %s stage", question_id, state.stage)
            return self.get_state()

        question = next((q for q in state.questions if q.id == question_id), None)
        if question is None:
            logger.warning("Question not found: %s", question_id)
            return self.get_state()
        option = question.find_option(option_id)
        if option is None:
            logger.warning("Option %s not found for question %s", option_id, question_id)
            return self.get_state()

        state.answers[question_id] = option.value
        if state.current_question_index < len(state.questions) - 1:
            state.current_question_index += 1
            self._advance("clarification")
        else:
            self._advance("refinement")
            self.generate_suggestions()

        logger.info("Updated stage to: %s", state.stage)
        return self.get_state()

    def generate_suggestions(self) -> List[Suggestion]:
        if self._state.stage != "refinement":
            logger.warning("Not generating suggestions: session in %s stage", self._state.stage)
            return list(self._state.suggestions)

        priority = self._priority_answer()
        # The templates are fixed per intent; the priority is only reported.
        logger.info("Generating suggestions (priority preference: %s)", priority)
        batch = uuid4().hex[:8]
        self._state.suggestions = [
            Suggestion(
                id=f"suggestion-{index}-{batch}",
                text=template.format(title=self._state.task_title),
                intent_type=intent,  # type: ignore[arg-type]
            )
            for index, (intent, template) in enumerate(SUGGESTION_TEMPLATES.items(), start=1)
        ]
        return list(self._state.suggestions)

    def select_suggestion(self, suggestion_id: str) -> DialogueState:
        logger.info("Selecting suggestion: %s", suggestion_id)
        if self._state.stage not in ("refinement", "final"):
            logger.warning("Ignoring suggestion %s: session still in %s stage", suggestion_id, self._state.stage)
            return self.get_state()

        suggestion = next((s for s in self._state.suggestions if s.id == suggestion_id), None)
        if suggestion is None:
            logger.warning("Suggestion not found: %s", suggestion_id)
            return self.get_state()

        self._state.selected_suggestion = suggestion.text
        self.generate_final_proposal()
        self._advance("final")
        logger.info("Updated stage to: %s", self._state.stage)
        return self.get_state()

    def generate_final_proposal(self) -> TaskProposal:
        proposal = TaskProposal(
            summary=self._state.task_title,
            steps=list(FINAL_STEPS),
            estimated_time=self._estimate_time(),
            risks=self._identify_risks(),
            history_references=[],
            user_adaptation=f"Optimized for your preferences: {self._preference_summary()}",
        )
        self._state.final_proposal = proposal
        logger.info("Generated final proposal with %d steps", len(proposal.steps))
        return proposal

    def get_state(self) -> DialogueState:
        return self._state.model_copy(deep=True)

    def reset(self) -> DialogueState:
        self._state = DialogueState()
        return self.get_state()

    def _advance(self, stage: DialogueStage) -> None:
        if STAGE_ORDER[stage] >= STAGE_ORDER[self._state.stage]:
            self._state.stage = stage

    def _history_questions(self, title: str, category: Category) -> List[DialogueQuestion]:
        lowered = title.lower()
        related = [
            record
            for record in self.history
            if lowered in record.title.lower() or (record.description and lowered in record.description.lower())
        ]
        if not related:
            logger.debug("No related tasks found for %s", title)
            return []

        patterns = self.history_miner.detect_feedback_patterns(related)
        questions: List[DialogueQuestion] = []
        if patterns.time_issues and category == "work":
            questions.append(HISTORY_TIME_QUESTION.model_copy(deep=True))
        if patterns.difficulty_issues and category in ("work", "learning"):
            questions.append(HISTORY_DIFFICULTY_QUESTION.model_copy(deep=True))
        if patterns.health_issues and category == "health":
            questions.append(HISTORY_HEALTH_QUESTION.model_copy(deep=True))
        return questions

    def _priority_answer(self) -> str:
        for key in PRIORITY_QUESTION_IDS:
            if self._state.answers.get(key):
                return self._state.answers[key]
        return DEFAULT_PRIORITY

    def _estimate_time(self) -> str:
        answers = [self._state.answers.get(key) for key in TIME_QUESTION_IDS]
        if any(answer in SHORT_TIME_ANSWERS for answer in answers):
            return SHORT_ESTIMATE
        if any(answer in LONG_TIME_ANSWERS for answer in answers):
            return LONG_ESTIMATE
        return MEDIUM_ESTIMATE

    def _identify_risks(self) -> List[str]:
        risks = [
            risk for question_id, triggers, risk in RISK_RULES if self._state.answers.get(question_id) in triggers
        ]
        return risks or [DEFAULT_RISK]

    def _preference_summary(self) -> str:
        answers = self._state.answers
        parts: List[str] = []
        priority_label = PRIORITY_LABELS.get(self._priority_answer())
        if priority_label:
            parts.append(f"priority: {priority_label}")
        if answers.get("work-deadline") in DEADLINE_LABELS:
            parts.append(f"deadline: {DEADLINE_LABELS[answers['work-deadline']]}")
        if answers.get("learning-style") in LEARNING_STYLE_LABELS:
            parts.append(f"learning style: {LEARNING_STYLE_LABELS[answers['learning-style']]}")
        if answers.get("health-goal") in HEALTH_GOAL_LABELS:
            parts.append(f"health goal: {HEALTH_GOAL_LABELS[answers['health-goal']]}")
        return "; ".join(parts)
