from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.common import MutationResult
from schemas.journal_entries import JournalGroup, ManualJournalCreate, ManualJournalUpdate
from crud import manual_journals as crud_journals
from utils.auth_utils import get_current_user, get_user_identifier
from utils.branching import get_branch_id

router = APIRouter(prefix="/manual-journals", tags=["Manual Journals"])


@router.get("/", response_model=List[JournalGroup])
def read_manual_journals(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """Manual journal groups, newest reference first."""
    return crud_journals.list_manual_journals(db, skip=skip, limit=limit)


@router.get("/{reference_id}", response_model=JournalGroup)
def read_manual_journal(reference_id: int, db: Session = Depends(get_db)):
    return crud_journals.get_manual_journal(db, reference_id)


@router.post("/", response_model=MutationResult[JournalGroup], status_code=status.HTTP_201_CREATED)
def create_manual_journal(
    journal: ManualJournalCreate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
    branch_id: Optional[int] = Depends(get_branch_id),
):
    group, warnings = crud_journals.create_manual_journal(
        db, journal, created_by=get_user_identifier(user), branch_id=branch_id
    )
    return MutationResult(
        message="Journal entry created", warnings=warnings, data=JournalGroup.model_validate(group, from_attributes=True)
    )


@router.patch("/{reference_id}", response_model=MutationResult[JournalGroup])
def update_manual_journal(
    reference_id: int,
    journal_update: ManualJournalUpdate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    group, warnings = crud_journals.update_manual_journal(
        db, reference_id, journal_update, updated_by=get_user_identifier(user)
    )
    return MutationResult(
        message="Journal entry updated", warnings=warnings, data=JournalGroup.model_validate(group, from_attributes=True)
    )


@router.delete("/{reference_id}", response_model=MutationResult[dict])
def delete_manual_journal(
    reference_id: int,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    removed = crud_journals.delete_manual_journal(db, reference_id, deleted_by=get_user_identifier(user))
    return MutationResult(message="Journal entry deleted", data={"reference_id": reference_id, "entries_removed": removed})
