"""Payment reminder routes for outstanding caterer balances."""

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from app.api.errors import not_found
from app.core.rate_limit import limiter
from app.core.responses import list_response
from app.db.session import DbSession
from app.models.caterer import Caterer, Distribution, PaymentReminder, ReminderStatus
from app.schemas.caterer import ReminderCreate, ReminderResponse, ReminderUpdate
from app.services.caterer_billing_service import CatererBillingService

router = APIRouter()


def _get_reminder(db, reminder_id: int) -> PaymentReminder:
    reminder = db.query(PaymentReminder).filter(PaymentReminder.id == reminder_id).first()
    if not reminder:
        raise not_found("Reminder")
    return reminder


def _serialize(reminder: PaymentReminder, today: date) -> dict:
    data = ReminderResponse.model_validate(reminder).model_dump(mode="json")
    data["computed_status"] = reminder.computed_status(today)
    data["caterer_name"] = reminder.caterer.name if reminder.caterer else None
    data["bill_number"] = reminder.distribution.bill_number if reminder.distribution else None
    return data


@router.get("/")
@limiter.limit("60/minute")
def list_reminders(
    request: Request,
    db: DbSession,
    caterer_id: Optional[int] = None,
    include_resolved: bool = False,
    unread_only: bool = False,
    due_within_days: Optional[int] = Query(None, ge=0, le=365),
):
    """Reminders ordered by due date, each with an urgency label.

    ``due_within_days`` narrows the list to the notification feed: reminders
    already overdue or falling due between today and that many days ahead.
    """
    today = date.today()
    query = db.query(PaymentReminder)
    if caterer_id is not None:
        query = query.filter(PaymentReminder.caterer_id == caterer_id)
    if not include_resolved:
        query = query.filter(PaymentReminder.status != ReminderStatus.RESOLVED.value)
    if unread_only:
        query = query.filter(PaymentReminder.is_read.is_(False))
    if due_within_days is not None:
        query = query.filter(PaymentReminder.original_due_date <= today + timedelta(days=due_within_days))
    reminders = query.order_by(PaymentReminder.original_due_date.asc(), PaymentReminder.id.asc()).all()
    return list_response([_serialize(r, today) for r in reminders])


@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_reminder(request: Request, body: ReminderCreate, db: DbSession):
    if not db.get(Caterer, body.caterer_id):
        raise not_found("Caterer")
    if body.distribution_id is not None:
        distribution = db.get(Distribution, body.distribution_id)
        if distribution is None or distribution.caterer_id != body.caterer_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Distribution not found for this caterer"
            )
    reminder = CatererBillingService(db).create_reminder(body)
    db.commit()
    db.refresh(reminder)
    return _serialize(reminder, date.today())


@router.patch("/{reminder_id}")
@limiter.limit("30/minute")
def update_reminder(request: Request, reminder_id: int, body: ReminderUpdate, db: DbSession):
    """Reschedule or change status; setting ``sent`` rolls the next reminder forward."""
    reminder = _get_reminder(db, reminder_id)
    update_data = body.model_dump(exclude_unset=True)

    if update_data.get("status") == ReminderStatus.SENT.value and "next_reminder_date" not in update_data:
        CatererBillingService(db).mark_sent(reminder)
        update_data.pop("status")
    for field, value in update_data.items():
        setattr(reminder, field, value)
    if reminder.status == ReminderStatus.RESOLVED.value:
        reminder.next_reminder_date = None

    db.commit()
    db.refresh(reminder)
    return _serialize(reminder, date.today())


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_reminder(request: Request, reminder_id: int, db: DbSession):
    reminder = _get_reminder(db, reminder_id)
    db.delete(reminder)
    db.commit()


@router.post("/{reminder_id}/read")
@limiter.limit("60/minute")
def mark_read(request: Request, reminder_id: int, db: DbSession):
    reminder = _get_reminder(db, reminder_id)
    reminder.is_read = True
    db.commit()
    db.refresh(reminder)
    return _serialize(reminder, date.today())
