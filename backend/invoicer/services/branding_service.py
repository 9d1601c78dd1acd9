"""
Branding service: user branding, template settings, company profile and the
invoice template catalog.

Branding and company profile are one row per owner (unique owner_id). Saves
are upserts; a concurrent duplicate insert loses on the unique constraint and
is retried as an update.
"""
import logging
import re
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from invoicer.exceptions import PersistenceError, ValidationError
from invoicer.models import CompanyProfile, InvoiceTemplate, UserBranding
from invoicer.services.ownership import require_owner
from invoicer.services.template_settings import (
    TemplateSettings,
    dump_template_settings,
    merge_template_settings,
    parse_template_settings,
)

logger = logging.getLogger(__name__)

COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

DEFAULT_PRIMARY_COLOR = "#2563EB"
DEFAULT_SECONDARY_COLOR = "#DC2626"
DEFAULT_FONT_FAMILY = "Inter"
DEFAULT_TEMPLATE_ID = "modern"

BRANDING_FIELDS = ("primary_color", "secondary_color", "font_family", "template_id", "logo_url")
COMPANY_FIELDS = ("company_name", "company_address", "company_phone", "company_email", "website", "tax_id")

TEMPLATE_CATALOG = [
    {
        "id": "modern",
        "name": "Modern",
        "description": "Colored header band, bold totals and shaded item rows.",
        "is_premium": False,
    },
    {
        "id": "classic",
        "name": "Classic",
        "description": "Serif letterhead layout with ruled item table.",
        "is_premium": False,
    },
    {
        "id": "minimal",
        "name": "Minimal",
        "description": "Plain black-and-white layout without header band.",
        "is_premium": False,
    },
]


def _commit(db: Session, what: str, owner_id) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Saving %s failed for owner %s: %s", what, owner_id, e)
        raise PersistenceError(f"Could not save {what}", entity=what) from e


# ---------- user branding ----------

def _find_branding(db: Session, owner_id: UUID) -> Optional[UserBranding]:
    return db.query(UserBranding).filter(UserBranding.owner_id == owner_id).first()


def get_user_branding(db: Session, owner_id: UUID) -> UserBranding:
    """Owner's branding row; created with defaults on first access."""
    require_owner(owner_id)
    branding = _find_branding(db, owner_id)
    if branding:
        return branding
    branding = UserBranding(
        owner_id=owner_id,
        primary_color=DEFAULT_PRIMARY_COLOR,
        secondary_color=DEFAULT_SECONDARY_COLOR,
        font_family=DEFAULT_FONT_FAMILY,
        template_id=DEFAULT_TEMPLATE_ID,
    )
    db.add(branding)
    try:
        db.commit()
    except IntegrityError:
        # another request created it first
        db.rollback()
        existing = _find_branding(db, owner_id)
        if existing is None:
            raise PersistenceError("Could not create branding", entity="branding")
        return existing
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Creating default branding failed for owner %s: %s", owner_id, e)
        raise PersistenceError("Could not create branding", entity="branding") from e
    db.refresh(branding)
    logger.info("Created default branding for owner %s", owner_id)
    return branding


def _validate_branding_fields(db: Session, fields: Mapping[str, Any]) -> Dict[str, Any]:
    clean: Dict[str, Any] = {}
    for key in BRANDING_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if key in ("primary_color", "secondary_color"):
            if not isinstance(value, str) or not COLOR_RE.match(value.strip()):
                raise ValidationError(
                    f"{key.replace('_', ' ').capitalize()} must be a hex color like #RRGGBB", entity="branding"
                )
            value = value.strip().upper()
        elif key == "template_id":
            known = {t.id for t in list_invoice_templates(db)}
            if value not in known:
                raise ValidationError(f"Unknown invoice template: {value}", entity="branding")
        elif key == "font_family":
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("Font family cannot be empty", entity="branding")
            value = value.strip()
        clean[key] = value
    return clean


def save_user_branding(db: Session, owner_id: UUID, fields: Mapping[str, Any]) -> UserBranding:
    """Upsert branding. Only the given fields change."""
    require_owner(owner_id)
    clean = _validate_branding_fields(db, fields)
    branding = get_user_branding(db, owner_id)
    for key, value in clean.items():
        setattr(branding, key, value)
    _commit(db, "branding", owner_id)
    db.refresh(branding)
    return branding


def set_logo_path(db: Session, owner_id: UUID, path: str) -> UserBranding:
    return save_user_branding(db, owner_id, {"logo_url": path})


# ---------- template settings ----------

def get_template_settings(db: Session, owner_id: UUID) -> TemplateSettings:
    """Defaults merged with the owner's persisted settings."""
    require_owner(owner_id)
    branding = _find_branding(db, owner_id)
    return parse_template_settings(branding.template_settings if branding else None)


def save_template_settings(db: Session, owner_id: UUID, overrides: Mapping[str, Any]) -> TemplateSettings:
    """
    Merge overrides over the persisted settings (not the defaults) and store
    the full result. Returns the merged settings.
    """
    require_owner(owner_id)
    current = get_template_settings(db, owner_id)
    merged = merge_template_settings(current, overrides)
    branding = get_user_branding(db, owner_id)
    branding.template_settings = dump_template_settings(merged)
    _commit(db, "template_settings", owner_id)
    logger.info("Saved template settings for owner %s", owner_id)
    return merged


# ---------- company profile ----------

def get_company_profile(db: Session, owner_id: UUID) -> Optional[CompanyProfile]:
    require_owner(owner_id)
    return db.query(CompanyProfile).filter(CompanyProfile.owner_id == owner_id).first()


def _clean_company_fields(fields: Mapping[str, Any], require_name: bool) -> Dict[str, Any]:
    clean: Dict[str, Any] = {}
    for key in COMPANY_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if isinstance(value, str):
            value = value.strip() or None
        clean[key] = value
    if "company_name" in clean or require_name:
        if not clean.get("company_name"):
            raise ValidationError("Company name is required", entity="company_profile")
    return clean


def save_company_profile(db: Session, owner_id: UUID, fields: Mapping[str, Any]) -> CompanyProfile:
    """
    Upsert the owner's company profile. company_name is required on create
    and may not be blanked on update.
    """
    require_owner(owner_id)
    profile = get_company_profile(db, owner_id)
    clean = _clean_company_fields(fields, require_name=profile is None)

    if profile is None:
        profile = CompanyProfile(owner_id=owner_id, **clean)
        db.add(profile)
        try:
            db.commit()
        except IntegrityError:
            # lost an insert race on owner_id; apply as an update instead
            db.rollback()
            profile = get_company_profile(db, owner_id)
            if profile is None:
                raise PersistenceError("Could not save company profile", entity="company_profile")
            for key, value in clean.items():
                setattr(profile, key, value)
            _commit(db, "company_profile", owner_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Saving company profile failed for owner %s: %s", owner_id, e)
            raise PersistenceError("Could not save company profile", entity="company_profile") from e
    else:
        for key, value in clean.items():
            setattr(profile, key, value)
        _commit(db, "company_profile", owner_id)

    db.refresh(profile)
    return profile


# ---------- template catalog ----------

def seed_invoice_templates(db: Session) -> int:
    """Insert missing catalog rows. Returns the number inserted."""
    existing = {row.id for row in db.query(InvoiceTemplate.id).all()}
    missing = [t for t in TEMPLATE_CATALOG if t["id"] not in existing]
    if not missing:
        return 0
    db.add_all([InvoiceTemplate(**t) for t in missing])
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return 0
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError("Could not seed invoice templates", entity="invoice_template") from e
    logger.info("Seeded %d invoice template(s)", len(missing))
    return len(missing)


def list_invoice_templates(db: Session) -> List[InvoiceTemplate]:
    seed_invoice_templates(db)
    order = {t["id"]: i for i, t in enumerate(TEMPLATE_CATALOG)}
    rows = db.query(InvoiceTemplate).all()
    return sorted(rows, key=lambda t: (order.get(t.id, len(order)), t.name))
