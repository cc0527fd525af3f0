"""
Prompt Composer: ordered chat messages for one extraction call.

    1. persona + task instruction + structured-payload directive (system)
    2. search grounding block, only when the context is non-empty (system)
    3. meal-type override, only when the meal type is unresolved (system)
    4. trailing conversation history, oldest first
    5. the current user turn (text, or text + image parts)
"""
import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from foodlog.config import HISTORY_WINDOW, get_default_user_weight_kg
from foodlog.llm.prompts import (
    DEFAULT_IMAGE_PROMPT,
    MEAL_TYPE_OVERRIDE,
    PERSONA_PROMPT,
    SEARCH_CONTEXT_TEMPLATE,
    STRUCTURED_PAYLOAD_INSTRUCTION,
    task_instruction,
)
from foodlog.models.entries import LogRequest, RequestKind, SearchContext

Message = Dict[str, Any]


@dataclass
class ChatTurn:
    role: str  # "user" | "assistant"
    content: str


def image_content(text: str, image: bytes, mime: str = "image/jpeg") -> List[Dict[str, Any]]:
    encoded = base64.b64encode(image).decode("ascii")
    return [
        {"type": "text", "text": text or DEFAULT_IMAGE_PROMPT},
        {"type": "image_url", "image_url": {"url": f"data:{mime};base64,{encoded}"}},
    ]


class PromptComposer:
    def __init__(
        self,
        history_window: int = HISTORY_WINDOW,
        user_weight_kg: Optional[float] = None,
        request_structured_payload: bool = True,
    ):
        self.history_window = max(0, history_window)
        self.user_weight_kg = user_weight_kg if user_weight_kg is not None else get_default_user_weight_kg()
        self.request_structured_payload = request_structured_payload

    def compose(
        self,
        request: LogRequest,
        kind: RequestKind = RequestKind.FOOD,
        search: Optional[SearchContext] = None,
        needs_meal_type: bool = False,
        history: Sequence[ChatTurn] = (),
    ) -> List[Message]:
        messages: List[Message] = [{"role": "system", "content": PERSONA_PROMPT}]
        instruction = task_instruction(kind, self.user_weight_kg)
        if self.request_structured_payload:
            instruction = f"{instruction}\n\n{STRUCTURED_PAYLOAD_INSTRUCTION}"
        messages.append({"role": "system", "content": instruction})

        if search is not None and not search.is_empty:
            messages.append({"role": "system", "content": SEARCH_CONTEXT_TEMPLATE.format(context=search.context)})

        if needs_meal_type:
            messages.append({"role": "system", "content": MEAL_TYPE_OVERRIDE})

        recent = list(history)[-self.history_window:] if self.history_window else []
        for turn in recent:
            if turn.role in ("user", "assistant") and turn.content:
                messages.append({"role": turn.role, "content": turn.content})

        if request.has_image:
            messages.append({"role": "user", "content": image_content(request.text, request.image)})
        else:
            messages.append({"role": "user", "content": request.text})
        return messages
