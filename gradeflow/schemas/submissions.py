from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gradeflow.core.naming import snake_to_camel


class UploadedFile(BaseModel):
    model_config = ConfigDict(alias_generator=snake_to_camel, populate_by_name=True)

    name: str
    content_type: str = Field(default="application/octet-stream")
    size: Optional[int] = None


class BatchUploadRequest(BaseModel):
    model_config = ConfigDict(alias_generator=snake_to_camel, populate_by_name=True)

    batch_name: Optional[str] = None
    files: List[UploadedFile] = []
