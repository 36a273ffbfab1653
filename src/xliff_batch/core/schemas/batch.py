"""
Wire models for batch input and output lines.

Instruction and unit records share the request-line shape but are distinct
types, so result correlation can tell them apart without string conventions.
"""

from typing import List, Optional, Set
from pydantic import BaseModel, Field

CHAT_COMPLETIONS_URL = "/v1/chat/completions"


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequestBody(BaseModel):
    model: str
    messages: List[ChatMessage]


class BatchRequestLine(BaseModel):
    custom_id: str
    method: str = "POST"
    url: str = CHAT_COMPLETIONS_URL
    body: ChatRequestBody


class InstructionRecord(BatchRequestLine):
    """Job-wide instruction; never correlated to a translation unit."""


class UnitRecord(BatchRequestLine):
    """Request for exactly one translation unit; custom_id is the unit id."""


class BatchRequest(BaseModel):
    target_language: str
    instruction: InstructionRecord
    records: List[UnitRecord] = Field(default_factory=list)

    @property
    def unit_ids(self) -> Set[str]:
        return {record.custom_id for record in self.records}

    @property
    def instruction_id(self) -> str:
        return self.instruction.custom_id

    def lines(self) -> List[BatchRequestLine]:
        return [self.instruction, *self.records]

    def to_jsonl(self) -> str:
        return "\n".join(line.model_dump_json() for line in self.lines())


class ResultMessage(BaseModel):
    content: Optional[str] = None


class ResultChoice(BaseModel):
    message: ResultMessage


class ResultBody(BaseModel):
    choices: List[ResultChoice]


class ResultResponse(BaseModel):
    status_code: Optional[int] = None
    body: ResultBody


class BatchResultLine(BaseModel):
    custom_id: str
    response: ResultResponse

    @property
    def content(self) -> Optional[str]:
        if not self.response.body.choices:
            return None
        return self.response.body.choices[0].message.content
