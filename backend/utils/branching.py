from typing import Optional
from fastapi import Header


def get_branch_id(x_branch_id: Optional[int] = Header(None)) -> Optional[int]:
    """Branch the request was made for. Stored with documents, not enforced."""
    return x_branch_id
