from pydantic import BaseModel, validator
from typing import List

from models import Question, Answer
from schemas.shared import AuthoredResponse, require_text, clean_tags

class QuestionCreate(BaseModel):
    title: str
    body: str
    tags: List[str] = []

    @validator('title')
    def validate_title(cls, v):
        return require_text(v, 'Title', 200)

    @validator('body')
    def validate_body(cls, v):
        return require_text(v, 'Body', 10000)

    @validator('tags')
    def validate_tags(cls, v):
        return clean_tags(v)

class AnswerCreate(BaseModel):
    body: str

    @validator('body')
    def validate_body(cls, v):
        return require_text(v, 'Answer', 10000)

class SolveRequest(BaseModel):
    answer_id: str

class QuestionResponse(Question, AuthoredResponse):
    pass

class AnswerResponse(Answer, AuthoredResponse):
    pass
