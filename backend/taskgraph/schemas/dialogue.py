"""Schemas for the guided clarification dialogue."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from taskgraph.schemas.proposal import TaskProposal

QuestionType = Literal["choice", "yes_no", "multiple_choice", "text"]
DialogueStage = Literal["initial", "clarification", "refinement", "final"]
IntentType = Literal["efficiency", "quality", "innovation"]

STAGE_ORDER: Dict[str, int] = {"initial": 0, "clarification": 1, "refinement": 2, "final": 3}


class DialogueOption(BaseModel):
    id: str
    text: str
    value: str


class DialogueQuestion(BaseModel):
    id: str
    text: str
    type: QuestionType = "choice"
    options: List[DialogueOption] = Field(default_factory=list)
    context: Optional[str] = None

    def find_option(self, option_id: str) -> Optional[DialogueOption]:
        return next((option for option in self.options if option.id == option_id), None)


class Suggestion(BaseModel):
    id: str
    text: str
    intent_type: IntentType


class DialogueState(BaseModel):
    task_title: str = ""
    stage: DialogueStage = "initial"
    questions: List[DialogueQuestion] = Field(default_factory=list)
    current_question_index: int = Field(default=0, ge=0)
    answers: Dict[str, str] = Field(default_factory=dict, description="question id -> option value")
    suggestions: List[Suggestion] = Field(default_factory=list)
    selected_suggestion: Optional[str] = None
    final_proposal: Optional[TaskProposal] = None

    @property
    def current_question(self) -> Optional[DialogueQuestion]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None
