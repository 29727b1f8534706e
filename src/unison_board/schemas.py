from typing import Annotated, Optional

from pydantic import AliasChoices, BaseModel, Field, StringConstraints

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class PostMessageRequest(BaseModel):
    text: NonBlankStr
    # Older clients send the tag as ``mockSenderId``.
    author_tag: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("authorTag", "mockSenderId"),
    )


class RefreshTokenRequest(BaseModel):
    token: NonBlankStr
