from __future__ import annotations
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

# ids are unsigned 64-bit
MAX_ID = 2**64 - 1


def _encodable(value: str) -> str:
    # lone surrogates survive json.loads but can never be written back out
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ValueError("string is not valid UTF-8") from e
    return value


EntityId = Annotated[int, Field(ge=0, le=MAX_ID)]
Text = Annotated[str, AfterValidator(_encodable)]


class Task(BaseModel):
    id: EntityId
    name: Text
    complete: bool


class User(BaseModel):
    id: EntityId
    username: Text
    # stored and compared as plaintext
    password: Text


class Credentials(BaseModel):
    username: Text
    password: Text
