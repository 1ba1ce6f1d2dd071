"""
Banks and cash boxes.

Both are registered under a group and each gets its own child ledger account
under a parent account picked by the user. The account is created through the
chart of accounts so it follows the usual code allocation, and is deactivated
again when the bank or cash box is deleted.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from exceptions import ValidationError, IntegrityError, NotFoundError, ConflictError
from models.banks import Bank, BankGroup
from models.cash_boxes import CashBox, CashBoxGroup
from schemas.accounts import AccountCreate, AccountUpdate
from crud.accounts import create_account, update_account, deactivate_account

logger = logging.getLogger(__name__)


class TreasuryRegistry:
    """CRUD for one kind of settlement point (bank or cash box) and its groups."""

    def __init__(self, model, group_model, group_field: str, label: str):
        self.model = model
        self.group_model = group_model
        self.group_field = group_field
        self.label = label

    # Groups

    def list_groups(self, db: Session):
        return db.query(self.group_model).order_by(self.group_model.code).all()

    def get_group(self, db: Session, group_id: int):
        group = db.query(self.group_model).filter(self.group_model.id == group_id).first()
        if group is None:
            raise NotFoundError(f"{self.label} group {group_id} not found")
        return group

    def create_group(self, db: Session, group, created_by: Optional[str] = None):
        if not group.code or not group.name_ar:
            raise ValidationError("Group code and name are required", reason="code_and_name_required")
        if db.query(self.group_model.id).filter(self.group_model.code == group.code).first() is not None:
            raise ConflictError(f"{self.label} group code {group.code} already exists", reason="duplicate_group_code")

        db_group = self.group_model(**group.model_dump(), created_by=created_by)
        db.add(db_group)
        db.flush()
        logger.info(f"{self.label} group {db_group.code} created by {created_by}")
        return db_group

    def update_group(self, db: Session, group_id: int, group_update, updated_by: Optional[str] = None):
        db_group = self.get_group(db, group_id)
        update_data = group_update.model_dump(exclude_unset=True)
        if "name_ar" in update_data and not update_data["name_ar"]:
            raise ValidationError("Group name is required", reason="name_required")
        for key, value in update_data.items():
            setattr(db_group, key, value)
        db_group.updated_by = updated_by
        db.flush()
        return db_group

    def delete_group(self, db: Session, group_id: int, deleted_by: Optional[str] = None):
        db_group = self.get_group(db, group_id)
        members = db.query(self.model.id).filter(getattr(self.model, self.group_field) == group_id).first()
        if members is not None:
            raise ConflictError(f"{self.label} group {db_group.code} is not empty", reason="group_not_empty")
        db.delete(db_group)
        db.flush()
        logger.info(f"{self.label} group {db_group.code} deleted by {deleted_by}")

    # Members

    def _require_group(self, db: Session, group_id: int):
        if db.query(self.group_model.id).filter(self.group_model.id == group_id).first() is None:
            raise IntegrityError(f"{self.label} group {group_id} does not exist", reason="group_not_found")

    def to_dict(self, item) -> dict:
        return {
            "id": item.id,
            "code": item.code,
            "name_ar": item.name_ar,
            "name_en": item.name_en,
            self.group_field: getattr(item, self.group_field),
            "account_id": item.account_id,
            "account_code": item.account.code if item.account else None,
            "is_active": item.is_active,
        }

    def list(self, db: Session, include_inactive: bool = False) -> List[dict]:
        query = db.query(self.model).options(joinedload(self.model.account))
        if not include_inactive:
            query = query.filter(self.model.is_active == True)
        return [self.to_dict(item) for item in query.order_by(self.model.code).all()]

    def get(self, db: Session, item_id: int):
        item = db.query(self.model).filter(self.model.id == item_id).first()
        if item is None:
            raise NotFoundError(f"{self.label} {item_id} not found")
        return item

    def create(self, db: Session, item, created_by: Optional[str] = None, branch_id: Optional[int] = None):
        """
        Register a bank or cash box and open its ledger account under
        `parent_account_id`, inside the caller's transaction.
        """
        group_id = getattr(item, self.group_field)
        if not item.code or not item.name_ar:
            raise ValidationError(f"{self.label} code and name are required", reason="code_and_name_required")
        if group_id is None or item.parent_account_id is None:
            raise ValidationError(
                f"{self.label} needs a group and a parent account", reason="required_fields_missing"
            )
        self._require_group(db, group_id)
        if db.query(self.model.id).filter(self.model.code == item.code).first() is not None:
            raise ConflictError(f"{self.label} code {item.code} already exists", reason="duplicate_code")

        account = create_account(
            db,
            AccountCreate(name_ar=item.name_ar, name_en=item.name_en, parent_id=item.parent_account_id, branch_id=branch_id),
            created_by=created_by,
        )
        db_item = self.model(
            code=item.code,
            name_ar=item.name_ar,
            name_en=item.name_en,
            account_id=account.id,
            is_active=True,
            created_by=created_by,
            **{self.group_field: group_id},
        )
        db.add(db_item)
        db.flush()
        logger.info(f"{self.label} {db_item.code} created by {created_by} with account {account.code}")
        return db_item

    def update(self, db: Session, item_id: int, item_update, updated_by: Optional[str] = None):
        """Rename or regroup; a rename is mirrored on the ledger account."""
        db_item = self.get(db, item_id)
        update_data = item_update.model_dump(exclude_unset=True)
        if "name_ar" in update_data and not update_data["name_ar"]:
            raise ValidationError(f"{self.label} name is required", reason="name_required")
        if update_data.get(self.group_field) is not None:
            self._require_group(db, update_data[self.group_field])
        elif self.group_field in update_data:
            raise ValidationError(f"{self.label} needs a group", reason="required_fields_missing")

        for key, value in update_data.items():
            setattr(db_item, key, value)
        db_item.updated_by = updated_by

        names = {k: v for k, v in update_data.items() if k in ("name_ar", "name_en")}
        if names:
            update_account(db, db_item.account_id, AccountUpdate(**names), updated_by=updated_by)
        db.flush()
        logger.info(f"{self.label} {db_item.code} updated by {updated_by}: {sorted(update_data)}")
        return db_item

    def delete(self, db: Session, item_id: int, deleted_by: Optional[str] = None):
        """Remove the registration and deactivate its account (refused while it has postings)."""
        db_item = self.get(db, item_id)
        account_id = db_item.account_id
        code = db_item.code
        db.delete(db_item)
        db.flush()
        deactivate_account(db, account_id, deleted_by=deleted_by)
        logger.info(f"{self.label} {code} deleted by {deleted_by}")


banks = TreasuryRegistry(Bank, BankGroup, "bank_group_id", "Bank")
cash_boxes = TreasuryRegistry(CashBox, CashBoxGroup, "cash_box_group_id", "Cash box")
