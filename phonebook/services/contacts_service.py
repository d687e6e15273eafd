# phonebook/services/contacts_service.py

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from phonebook.config import (
    CACHE_INVALIDATION,
    CONTACTS_CACHE_PREFIX,
    CONTACTS_CACHE_TTL_SECONDS,
    CONTACTS_PAGE_SIZE,
)
from phonebook.models.contact import Contact
from phonebook.schemas.contact import ContactCreate
from phonebook.services.cache import Cache, LookupStatus, lookup

logger = logging.getLogger(__name__)

INVALIDATE_ALL_PAGES = "all_pages"

# Largest OFFSET the database accepts (signed 64-bit)
MAX_SQL_OFFSET = 2**63 - 1


def normalize_page(page: Any) -> int:
    """Page numbers are 1-based; anything missing, malformed or below 1 means page 1."""
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    return max(1, value)


def page_cache_key(page: int) -> str:
    return f"{CONTACTS_CACHE_PREFIX}{page}"


def serialize_contacts(contacts: List[Dict[str, Any]]) -> str:
    return json.dumps(contacts, separators=(",", ":"), ensure_ascii=False)


def deserialize_contacts(payload: str) -> List[Dict[str, Any]]:
    """Raises ValueError when the payload is not a JSON array."""
    contacts = json.loads(payload)
    if not isinstance(contacts, list):
        raise ValueError(f"cached page is not a JSON array: {type(contacts).__name__}")
    return contacts


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------

def fetch_page(db: Session, page: int, page_size: int = CONTACTS_PAGE_SIZE) -> List[Dict[str, Any]]:
    """One parameterized SELECT: `page_size` rows at offset (page - 1) * page_size, by id ascending."""
    offset = (page - 1) * page_size
    if offset > MAX_SQL_OFFSET:
        # Past any row the table can hold
        return []
    stmt = select(Contact).order_by(Contact.id).limit(page_size).offset(offset)
    return [c.to_dict() for c in db.execute(stmt).scalars().all()]


def _execute_write(db: Session, stmt):
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return result


# ---------------------------------------------------------------------------
# Read path (cache-aside)
# ---------------------------------------------------------------------------

def list_contacts(
    db: Session,
    cache: Cache,
    page: Any = 1,
    page_size: int = CONTACTS_PAGE_SIZE,
    ttl_seconds: int = CONTACTS_CACHE_TTL_SECONDS,
) -> List[Dict[str, Any]]:
    """
    Cache-aside listing of one page of contacts.

    - HIT:   return the cached page as-is; the Store is not consulted.
    - MISS:  query the Store, serialize, cache under the page key with TTL, return.
    - ERROR: cache unreachable; query the Store and return without writing back.

    An entry that cannot be decoded is treated as a MISS and overwritten.

    A failed cache write never fails the read. Store errors propagate.

    Known race: a miss that queries the Store concurrently with a write may
    re-populate the page with pre-write rows after that write's invalidation.
    The entry then stays stale for at most `ttl_seconds`.
    """
    page = normalize_page(page)
    key = page_cache_key(page)

    cached = lookup(cache, key)
    status = cached.status
    if status is LookupStatus.HIT:
        try:
            contacts = deserialize_contacts(cached.value)
            logger.debug("Cache hit for key: %s", key)
            return contacts
        except ValueError as e:
            # Corrupt entry: re-query and overwrite it
            logger.warning("Unreadable cache value for key %s, refreshing from database: %s", key, e)
            status = LookupStatus.MISS
    elif status is LookupStatus.ERROR:
        logger.warning("Cache lookup failed for key %s, falling back to database: %s", key, cached.error)
    else:
        logger.debug("Cache miss for key: %s", key)

    contacts = fetch_page(db, page, page_size=page_size)

    if status is LookupStatus.MISS:
        try:
            cache.set(key, serialize_contacts(contacts), ttl_seconds=ttl_seconds)
            logger.info("Data cached for key: %s", key)
        except Exception as e:
            logger.warning("Failed to set cache for key: %s, err: %s", key, e)

    return contacts


def search_contacts(db: Session, query: Optional[str]) -> List[Dict[str, Any]]:
    """Case-insensitive substring match on first or last name. Never cached."""
    pattern = f"%{query or ''}%"
    stmt = (
        select(Contact)
        .where(or_(Contact.first_name.ilike(pattern), Contact.last_name.ilike(pattern)))
        .order_by(Contact.id)
    )
    return [c.to_dict() for c in db.execute(stmt).scalars().all()]


# ---------------------------------------------------------------------------
# Write path (mutate, then invalidate)
# ---------------------------------------------------------------------------

def invalidate_contact_pages(cache: Cache, strategy: Optional[str] = None) -> None:
    """
    Drop cached listing pages after a successful write.

    "first_page" only deletes contacts_page_1: other pages may serve stale rows
    until their TTL runs out. "all_pages" deletes every key under the prefix.
    Failures are logged and swallowed.
    """
    strategy = strategy or CACHE_INVALIDATION
    try:
        if strategy == INVALIDATE_ALL_PAGES:
            removed = cache.delete_prefix(CONTACTS_CACHE_PREFIX)
            logger.debug("Invalidated %d cached contact pages", removed)
        else:
            cache.delete(page_cache_key(1))
            logger.debug("Invalidated cache key: %s", page_cache_key(1))
    except Exception:
        logger.exception("Failed to invalidate contacts cache (strategy=%s)", strategy)


def create_contact(db: Session, cache: Cache, data: ContactCreate, strategy: Optional[str] = None) -> int:
    contact = Contact(
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        address=data.address,
    )
    db.add(contact)
    try:
        db.flush()  # the INSERT; the database assigns the id here
        contact_id = contact.id
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    invalidate_contact_pages(cache, strategy)
    return contact_id


def update_contact(
    db: Session,
    cache: Cache,
    contact_id: int,
    data: ContactCreate,
    strategy: Optional[str] = None,
) -> None:
    stmt = (
        update(Contact)
        .where(Contact.id == contact_id)
        .values(
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            address=data.address,
        )
    )
    result = _execute_write(db, stmt)
    if not result.rowcount:
        logger.info("Update matched no contact with id %s", contact_id)

    invalidate_contact_pages(cache, strategy)


def delete_contact(db: Session, cache: Cache, contact_id: int, strategy: Optional[str] = None) -> None:
    result = _execute_write(db, delete(Contact).where(Contact.id == contact_id))
    if not result.rowcount:
        logger.info("Delete matched no contact with id %s", contact_id)

    invalidate_contact_pages(cache, strategy)
