from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from schemas.common import MutationResult
from schemas.journal_entries import JournalEntry
from schemas.vouchers import Voucher, VoucherCreate, VoucherUpdate, VoucherDetail, NextVoucherNo
from crud.vouchers import VoucherOrchestrator, receipt_vouchers, payment_vouchers
from utils.auth_utils import get_current_user, get_user_identifier
from utils.branching import get_branch_id


def voucher_detail(db: Session, orchestrator: VoucherOrchestrator, db_voucher) -> VoucherDetail:
    detail = VoucherDetail.model_validate(db_voucher)
    detail.entries = [JournalEntry.model_validate(entry) for entry in orchestrator.get_entries(db, db_voucher.id)]
    return detail


def build_voucher_router(orchestrator: VoucherOrchestrator, prefix: str, tag: str) -> APIRouter:
    """Routes for one voucher type; receipts and payments share the same shape."""
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("/", response_model=List[Voucher])
    def read_vouchers(
        search: Optional[str] = None,
        voucher_date: Optional[date] = None,
        all_dates: bool = False,
        skip: int = 0,
        limit: int = 100,
        db: Session = Depends(get_db),
    ):
        """Today's vouchers unless a date is given or `all_dates` is set."""
        return orchestrator.list(db, search=search, on_date=voucher_date, all_dates=all_dates, skip=skip, limit=limit)

    @router.get("/next-number", response_model=NextVoucherNo)
    def read_next_voucher_no(db: Session = Depends(get_db)):
        return NextVoucherNo(voucher_no=orchestrator.next_voucher_no(db))

    @router.get("/{voucher_id}", response_model=VoucherDetail)
    def read_voucher(voucher_id: int, db: Session = Depends(get_db)):
        return voucher_detail(db, orchestrator, orchestrator.get(db, voucher_id))

    @router.post("/", response_model=MutationResult[VoucherDetail], status_code=status.HTTP_201_CREATED)
    def create_voucher(
        voucher: VoucherCreate,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
        branch_id: Optional[int] = Depends(get_branch_id),
    ):
        db_voucher, warnings = orchestrator.create(
            db, voucher, created_by=get_user_identifier(user), branch_id=branch_id
        )
        return MutationResult(
            message=f"{orchestrator.label} created",
            warnings=warnings,
            data=voucher_detail(db, orchestrator, db_voucher),
        )

    @router.patch("/{voucher_id}", response_model=MutationResult[VoucherDetail])
    def update_voucher(
        voucher_id: int,
        voucher_update: VoucherUpdate,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        db_voucher, warnings = orchestrator.update(
            db, voucher_id, voucher_update, updated_by=get_user_identifier(user)
        )
        return MutationResult(
            message=f"{orchestrator.label} updated",
            warnings=warnings,
            data=voucher_detail(db, orchestrator, db_voucher),
        )

    @router.delete("/{voucher_id}", response_model=MutationResult[dict])
    def delete_voucher(
        voucher_id: int,
        db: Session = Depends(get_db),
        user: Optional[dict] = Depends(get_current_user),
    ):
        removed = orchestrator.delete(db, voucher_id, deleted_by=get_user_identifier(user))
        return MutationResult(
            message=f"{orchestrator.label} deleted",
            data={"id": voucher_id, "entries_removed": removed},
        )

    return router


receipt_router = build_voucher_router(receipt_vouchers, "/receipt-vouchers", "Receipt Vouchers")
payment_router = build_voucher_router(payment_vouchers, "/payment-vouchers", "Payment Vouchers")
