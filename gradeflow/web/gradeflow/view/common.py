import pydantic as p


class ErrorResponse(p.BaseModel):
    """Body of every engine error response"""

    kind: str
    code: str
    detail: str


class ResponseModel(p.BaseModel):
    model_config = p.ConfigDict(from_attributes=True)
