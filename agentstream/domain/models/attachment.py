from typing import Annotated, List, Literal, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class FileAttachment(BaseModel):
    """A file in the agent workspace, referenced by path"""
    model_config = ConfigDict(frozen=True)

    type: Literal["file"] = "file"
    path: str = Field(description="Workspace path of the file")

    def identity_key(self) -> Tuple[str, str]:
        return ("file", self.path)


class ImageAttachment(BaseModel):
    """An inline image carried as base64 text"""
    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    base64: str = Field(description="Base64 encoded image payload")
    mime_type: str = Field(default="image/png")

    def identity_key(self) -> Tuple[str, str]:
        # mime type is presentation only
        return ("image", self.base64)


Attachment = Annotated[Union[FileAttachment, ImageAttachment], Field(discriminator="type")]

attachment_list_adapter = TypeAdapter(List[Attachment])
