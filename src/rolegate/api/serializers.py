"""
rolegate.api.serializers

Response shapes for persisted rows.

Responsibilities:
- Turn ORM rows into JSON-ready dicts.
- Leave out every secret column (`password_hash`, `code_hash`).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from rolegate.db.models import (
    Agency,
    Booking,
    Hospital,
    Notification,
    Patient,
    QrCode,
    Review,
    Trip,
    User,
    Vaccine,
)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def user_out(u: User) -> dict[str, Any]:
    return {
        "id": u.id,
        "name": u.name,
        "last_name": u.last_name,
        "phone": u.phone,
        "email": u.email,
        "state": u.state,
        "is_active": u.is_active,
        "created_at": _iso(u.created_at),
        "last_login": _iso(u.last_login),
    }


def agency_out(a: Agency) -> dict[str, Any]:
    return {
        "id": a.id,
        "name": a.name,
        "state": a.state,
        "city": a.city,
        "phone": a.phone,
        "description": a.description,
        "logo_url": a.logo_url,
        "bg_url": a.bg_url,
        "trip_limit": a.trip_limit,
        "status": a.status.value,
        "created_at": _iso(a.created_at),
        "last_login": _iso(a.last_login),
    }


def hospital_out(h: Hospital) -> dict[str, Any]:
    return {
        "id": h.id,
        "name": h.name,
        "email": h.email,
        "phone": h.phone,
        "address": h.address,
        "created_at": _iso(h.created_at),
    }


def trip_out(t: Trip) -> dict[str, Any]:
    return {
        "id": t.id,
        "agency_id": t.agency_id,
        "title": t.title,
        "description": t.description,
        "state": t.state,
        "city": t.city,
        "price": t.price,
        "start_date": _iso(t.start_date),
        "end_date": _iso(t.end_date),
        "images": list(t.images or []),
        "video_url": t.video_url,
        "itinerary": t.itinerary,
        "min_votes": t.min_votes,
        "max_seats": t.max_seats,
        "status": t.status.value,
        "created_at": _iso(t.created_at),
    }


def booking_out(b: Booking) -> dict[str, Any]:
    return {
        "id": b.id,
        "user_id": b.user_id,
        "trip_id": b.trip_id,
        "seats": b.seats,
        "notes": b.notes,
        "status": b.status.value,
        "created_at": _iso(b.created_at),
    }


def review_out(r: Review) -> dict[str, Any]:
    return {
        "id": r.id,
        "kind": r.kind.value,
        "trip_id": r.trip_id,
        "agency_id": r.agency_id,
        "rating": r.rating,
        "comment": r.comment,
        "created_at": _iso(r.created_at),
    }


def notification_out(n: Notification) -> dict[str, Any]:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "is_read": n.is_read,
        "created_at": _iso(n.created_at),
    }


def qr_out(q: QrCode) -> dict[str, Any]:
    return {
        "id": q.id,
        "user_id": q.user_id,
        "label": q.label,
        "kind": q.kind,
        "content": q.content,
        "style": dict(q.style or {}),
        "scan_count": q.scan_count,
        "is_active": q.is_active,
        "created_at": _iso(q.created_at),
        "updated_at": _iso(q.updated_at),
    }


def patient_out(p: Patient) -> dict[str, Any]:
    return {
        "id": p.id,
        "hospital_id": p.hospital_id,
        "child_name": p.child_name,
        "mother_name": p.mother_name,
        "mother_phone": p.mother_phone,
        "birth_date": _iso(p.birth_date),
        "gender": p.gender,
        "notes": p.notes,
        "created_at": _iso(p.created_at),
    }


def vaccine_out(v: Vaccine) -> dict[str, Any]:
    return {
        "id": v.id,
        "patient_id": v.patient_id,
        "name": v.name,
        "code": v.code,
        "due_date": _iso(v.due_date),
        "status": v.status.value,
        "completed_date": _iso(v.completed_date),
        "notes": v.notes,
    }
