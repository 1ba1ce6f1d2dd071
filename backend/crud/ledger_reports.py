"""Read-only views over posted journal entries."""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.accounts import Account
from models.journal_entries import JournalEntry
from models.enums import FinancialStatement
from crud.accounts import require_account
from crud.currencies import require_currency
from crud.journal_entries import get_account_totals
from utils.money import to_decimal


def account_balance(db: Session, account_id: int, currency_id: int, as_of: Optional[date] = None) -> dict:
    require_account(db, account_id, active_only=False)
    require_currency(db, currency_id, active_only=False)
    total_debit, total_credit = get_account_totals(db, account_id, currency_id, as_of=as_of)
    return {
        "account_id": account_id,
        "currency_id": currency_id,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "balance": total_debit - total_credit,
    }


def trial_balance(db: Session, currency_id: int, as_of: Optional[date] = None) -> dict:
    """Per-account totals in one currency, split into balance sheet and income statement sections."""
    require_currency(db, currency_id, active_only=False)

    query = db.query(
        Account,
        func.coalesce(func.sum(JournalEntry.debit), 0),
        func.coalesce(func.sum(JournalEntry.credit), 0),
    ).join(JournalEntry, JournalEntry.account_id == Account.id).filter(JournalEntry.currency_id == currency_id)
    if as_of is not None:
        query = query.filter(JournalEntry.entry_date <= as_of)
    rows = query.group_by(Account.id).order_by(Account.code).all()

    sections = {
        statement: {"financial_statement": statement, "rows": [], "total_debit": Decimal(0), "total_credit": Decimal(0)}
        for statement in FinancialStatement
    }
    for account, debit, credit in rows:
        debit, credit = to_decimal(debit), to_decimal(credit)
        section = sections[account.financial_statement]
        section["rows"].append({
            "account_id": account.id,
            "code": account.code,
            "name_ar": account.name_ar,
            "nature": account.nature,
            "financial_statement": account.financial_statement,
            "total_debit": debit,
            "total_credit": credit,
            "balance": debit - credit,
        })
        section["total_debit"] += debit
        section["total_credit"] += credit

    return {
        "currency_id": currency_id,
        "as_of": as_of,
        "sections": list(sections.values()),
        "total_debit": sum((s["total_debit"] for s in sections.values()), Decimal(0)),
        "total_credit": sum((s["total_credit"] for s in sections.values()), Decimal(0)),
    }


def account_statement(
    db: Session,
    account_id: int,
    currency_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    """Postings of one account in date order with a running debit-minus-credit balance."""
    require_account(db, account_id, active_only=False)
    require_currency(db, currency_id, active_only=False)

    opening = Decimal(0)
    if start_date is not None:
        debit, credit = get_account_totals(db, account_id, currency_id, before=start_date)
        opening = debit - credit

    query = db.query(JournalEntry).filter(
        JournalEntry.account_id == account_id,
        JournalEntry.currency_id == currency_id,
    )
    if start_date is not None:
        query = query.filter(JournalEntry.entry_date >= start_date)
    if end_date is not None:
        query = query.filter(JournalEntry.entry_date <= end_date)

    balance = opening
    lines = []
    for entry in query.order_by(JournalEntry.entry_date, JournalEntry.id).all():
        debit, credit = to_decimal(entry.debit), to_decimal(entry.credit)
        balance += debit - credit
        lines.append({
            "entry_id": entry.id,
            "entry_date": entry.entry_date,
            "reference_type": entry.reference_type,
            "reference_id": entry.reference_id,
            "notes": entry.notes,
            "debit": debit,
            "credit": credit,
            "balance": balance,
        })

    return {
        "account_id": account_id,
        "currency_id": currency_id,
        "start_date": start_date,
        "end_date": end_date,
        "opening_balance": opening,
        "lines": lines,
        "closing_balance": balance,
    }
