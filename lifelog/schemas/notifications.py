from typing import Any, Literal, Optional

from pydantic import BaseModel


class PromptOut(BaseModel):
    kind: str
    is_open: bool
    payload: Optional[dict[str, Any]] = None


class NotificationStateResponse(BaseModel):
    user_id: Optional[str]
    state: Literal["idle", "checking", "ready"]
    prompts: list[PromptOut]


class PreferencesBody(BaseModel):
    diary_enabled: bool = True
    weekly_summary_enabled: bool = True
    monthly_summary_enabled: bool = True
    daily_question_enabled: bool = True
