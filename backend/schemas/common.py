from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class MutationResult(BaseModel, Generic[T]):
    """Envelope returned by every create/update/delete endpoint."""
    success: bool = True
    message: Optional[str] = None
    warnings: List[str] = []
    data: Optional[T] = None
