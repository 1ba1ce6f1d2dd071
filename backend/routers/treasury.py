from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, transaction
from schemas.common import MutationResult
from schemas.treasury import (
    TreasuryGroup, TreasuryGroupCreate, TreasuryGroupUpdate,
    Bank, BankCreate, BankUpdate, CashBox, CashBoxCreate, CashBoxUpdate,
)
from crud.treasury import TreasuryRegistry, banks, cash_boxes
from utils.auth_utils import get_current_user, get_user_identifier
from utils.branching import get_branch_id


def build_treasury_router(registry: TreasuryRegistry, prefix: str, group_prefix: str, tag: str,
                          schema, create_schema, update_schema) -> APIRouter:
    """Member and group routes for banks or cash boxes."""
    router = APIRouter(tags=[tag])

    @router.get(f"{group_prefix}/", response_model=List[TreasuryGroup])
    def read_groups(db: Session = Depends(get_db)):
        return registry.list_groups(db)

    @router.post(f"{group_prefix}/", response_model=MutationResult[TreasuryGroup], status_code=status.HTTP_201_CREATED)
    def create_group(
        group: TreasuryGroupCreate,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        with transaction(db):
            db_group = registry.create_group(db, group, created_by=get_user_identifier(user))
        return MutationResult(message=f"{registry.label} group created", data=TreasuryGroup.model_validate(db_group))

    @router.patch(f"{group_prefix}/{{group_id}}", response_model=MutationResult[TreasuryGroup])
    def update_group(
        group_id: int,
        group_update: TreasuryGroupUpdate,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        with transaction(db):
            db_group = registry.update_group(db, group_id, group_update, updated_by=get_user_identifier(user))
        return MutationResult(message=f"{registry.label} group updated", data=TreasuryGroup.model_validate(db_group))

    @router.delete(f"{group_prefix}/{{group_id}}", response_model=MutationResult[dict])
    def delete_group(
        group_id: int,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        with transaction(db):
            registry.delete_group(db, group_id, deleted_by=get_user_identifier(user))
        return MutationResult(message=f"{registry.label} group deleted", data={"id": group_id})

    @router.get(f"{prefix}/", response_model=List[schema])
    def read_items(include_inactive: bool = False, db: Session = Depends(get_db)):
        return registry.list(db, include_inactive=include_inactive)

    @router.get(f"{prefix}/{{item_id}}", response_model=schema)
    def read_item(item_id: int, db: Session = Depends(get_db)):
        return registry.to_dict(registry.get(db, item_id))

    @router.post(f"{prefix}/", response_model=MutationResult[schema], status_code=status.HTTP_201_CREATED)
    def create_item(
        item: create_schema,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
        branch_id: Optional[int] = Depends(get_branch_id),
    ):
        with transaction(db):
            db_item = registry.create(db, item, created_by=get_user_identifier(user), branch_id=branch_id)
            data = schema.model_validate(registry.to_dict(db_item))
        return MutationResult(message=f"{registry.label} created", data=data)

    @router.patch(f"{prefix}/{{item_id}}", response_model=MutationResult[schema])
    def update_item(
        item_id: int,
        item_update: update_schema,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        with transaction(db):
            db_item = registry.update(db, item_id, item_update, updated_by=get_user_identifier(user))
            data = schema.model_validate(registry.to_dict(db_item))
        return MutationResult(message=f"{registry.label} updated", data=data)

    @router.delete(f"{prefix}/{{item_id}}", response_model=MutationResult[dict])
    def delete_item(
        item_id: int,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        with transaction(db):
            registry.delete(db, item_id, deleted_by=get_user_identifier(user))
        return MutationResult(message=f"{registry.label} deleted", data={"id": item_id})

    return router


bank_router = build_treasury_router(
    banks, "/banks", "/bank-groups", "Banks", Bank, BankCreate, BankUpdate
)
cash_box_router = build_treasury_router(
    cash_boxes, "/cash-boxes", "/cashbox-groups", "Cash Boxes", CashBox, CashBoxCreate, CashBoxUpdate
)
