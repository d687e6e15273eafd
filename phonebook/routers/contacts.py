# phonebook/routers/contacts.py

import json
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from jsonschema import Draft7Validator
from sqlalchemy.orm import Session

from phonebook.database import get_db
from phonebook.schemas.contact import ContactCreate, ContactRead
from phonebook.services.cache import Cache
from phonebook.services.cache_factory import get_cache
from phonebook.services import contacts_service as svc

logger = logging.getLogger(__name__)

# Use a fixed prefix so routes live under /contacts
router = APIRouter(prefix="/contacts", tags=["contacts"])

# Load and prepare schema once at import time
schema_path = Path(__file__).resolve().parents[1] / "schemas" / "contact_schema.json"
with schema_path.open("r", encoding="utf-8") as f:
    contact_schema = json.load(f)

json_validator = Draft7Validator(contact_schema)


async def _read_json(request: Request):
    try:
        return await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid JSON format")


def _validation_errors(payload) -> List[str]:
    errors = sorted(json_validator.iter_errors(payload), key=lambda e: list(e.path))
    return [e.message for e in errors]


def _parse_contact_id(raw: str) -> int:
    try:
        contact_id = int(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid contact id")
    if contact_id < 1:
        raise HTTPException(status_code=400, detail="Invalid contact id")
    return contact_id


@router.post("", status_code=201)
async def create_contact(request: Request, db: Session = Depends(get_db), cache: Cache = Depends(get_cache)):
    """
    POST /contacts
    Validates the payload against the contact JSON schema, inserts the row,
    then drops the cached listing page(s).

    Status codes:
      - 201: Created, no body (Location points at the new id)
      - 400: Not JSON, or schema validation failed (validationErrors list)
      - 500: Database error
    """
    payload = await _read_json(request)
    validation_errors = _validation_errors(payload)
    if validation_errors:
        return JSONResponse(status_code=400, content={"validationErrors": validation_errors})

    data = ContactCreate(**payload)
    contact_id = await run_in_threadpool(svc.create_contact, db, cache, data)
    return Response(status_code=201, headers={"Location": f"/contacts/{contact_id}"})


@router.put("")
@router.put("/")
@router.delete("")
@router.delete("/")
def missing_contact_id():
    # PUT/DELETE without an id never reach the database
    raise HTTPException(status_code=400, detail="Missing contact id")


@router.put("/{contact_id}")
async def update_contact(
    contact_id: str,
    request: Request,
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    """
    PUT /contacts/{id}
    Replaces all fields of a contact. The id is checked before the body is read.

    Status codes:
      - 200: Updated (also when no row matched), no body
      - 400: Missing or malformed id, not JSON, or schema validation failed
      - 500: Database error
    """
    cid = _parse_contact_id(contact_id)
    payload = await _read_json(request)
    validation_errors = _validation_errors(payload)
    if validation_errors:
        return JSONResponse(status_code=400, content={"validationErrors": validation_errors})

    await run_in_threadpool(svc.update_contact, db, cache, cid, ContactCreate(**payload))
    return Response(status_code=200)


@router.get("", response_model=List[ContactRead])
def list_contacts(
    page: Optional[str] = None,
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    """
    GET /contacts?page=N
    One page of contacts in id order, served cache-aside (see contacts_service.list_contacts).
    A missing, malformed or non-positive page is treated as page 1.
    """
    return svc.list_contacts(db, cache, page)


@router.get("/search", response_model=List[ContactRead])
def search_contacts(q: Optional[str] = "", db: Session = Depends(get_db)):
    """
    GET /contacts/search?q=Q
    Case-insensitive substring search on first and last name; empty q matches everything.
    Always served from the database.
    """
    return svc.search_contacts(db, q)


@router.delete("/{contact_id}")
def delete_contact(contact_id: str, db: Session = Depends(get_db), cache: Cache = Depends(get_cache)):
    """
    DELETE /contacts/{id}

    Status codes:
      - 200: Deleted (also when no row matched), no body
      - 400: Malformed id
      - 500: Database error
    """
    svc.delete_contact(db, cache, _parse_contact_id(contact_id))
    return Response(status_code=200)
