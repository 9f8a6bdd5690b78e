from pydantic import BaseModel
from typing import List, Optional

from models import Profile


def require_text(v: Optional[str], field: str, max_length: Optional[int] = None) -> Optional[str]:
    """Shared check for free-text fields: not blank, optionally bounded"""
    if v is None:
        return v
    if not v.strip():
        raise ValueError(f'{field} cannot be empty')
    if max_length is not None and len(v) > max_length:
        raise ValueError(f'{field} must be at most {max_length} characters long')
    return v

def clean_tags(v: Optional[List[str]], max_tags: int = 10) -> Optional[List[str]]:
    if v is None:
        return v
    tags = []
    for tag in v:
        tag = tag.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    if len(tags) > max_tags:
        raise ValueError(f'Maximum {max_tags} tags allowed')
    return tags


class SuccessResponse(BaseModel):
    success: bool

class AuthoredResponse(BaseModel):
    author: Optional[Profile] = None
