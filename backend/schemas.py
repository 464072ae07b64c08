from pydantic import BaseModel, StrictInt, StrictStr
from typing import List, Optional, Union


class ArticleFields(BaseModel):
    # Missing fields default to "" so they fail the emptiness check in order.
    title: str = ""
    content: str = ""
    category: str = ""
    status: str = ""


class ArticleCreate(ArticleFields):
    pass


class ArticleUpdate(ArticleFields):
    articleId: Optional[Union[StrictInt, StrictStr]] = None


class ArticleDelete(BaseModel):
    articleId: Optional[Union[StrictInt, StrictStr]] = None


class ArticleOut(BaseModel):
    id: int
    title: str
    content: str
    category: str
    status: str
    createdAt: str
    updatedAt: str


class ArticleId(BaseModel):
    id: str


class ArticleListResponse(BaseModel):
    data: List[ArticleOut]


class ArticleResponse(BaseModel):
    data: ArticleOut


class ArticleIdResponse(BaseModel):
    data: ArticleId


class ErrorDetail(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
