from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from pharmaportal.errors import InvalidDocKey, InvalidInput
from pharmaportal.model.base import utc_now
from pharmaportal.model.profile import DOC_COLUMNS, DOC_KEYS, Profile

EDITABLE_FIELDS: tuple[str, ...] = ("pharmacy_name", "license_number", "phone", "address", "lang")

DEFAULT_LANG = "en"


def file_url(blob_id: int) -> str:
    return f"/api/files/{blob_id}"


def get_profile(session: Session, owner_id: int) -> Profile | None:
    return session.exec(select(Profile).where(Profile.owner_id == int(owner_id))).first()


def get_or_create_profile(session: Session, owner_id: int) -> Profile:
    """
    Retorna o profile da conta, criando-o se não existir (idempotente).

    Seguro sob concorrência: owner_id é único; quem perder a corrida do INSERT
    recebe IntegrityError, faz rollback e lê o registro criado pelo vencedor.
    """
    profile = get_profile(session, owner_id)
    if profile:
        return profile

    profile = Profile(
        owner_id=int(owner_id),
        pharmacy_name="",
        license_number="",
        phone="",
        address="",
        lang=DEFAULT_LANG,
    )
    session.add(profile)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        existing = get_profile(session, owner_id)
        if existing is None:
            raise
        return existing
    session.refresh(profile)
    return profile


def update_profile(session: Session, owner_id: int, fields: dict[str, Any]) -> Profile:
    """
    Atualização parcial: só os campos presentes em `fields` são alterados.

    Raises:
        InvalidInput: Se `fields` tiver campo não editável
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise InvalidInput(f"unknown fields: {', '.join(sorted(unknown))}")

    profile = get_or_create_profile(session, owner_id)
    for name, value in fields.items():
        setattr(profile, name, value)
    profile.updated_at = utc_now()
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def set_doc_ref(session: Session, owner_id: int, doc_key: str, blob_id: int) -> Optional[int]:
    """
    Troca a referência do documento `doc_key` e retorna o blob_id anterior (ou None).

    A linha do profile fica bloqueada (FOR UPDATE) durante a troca, para que
    uploads simultâneos do mesmo documento não percam o id antigo.

    Raises:
        InvalidDocKey: Se doc_key não for uma das chaves fixas
    """
    column = DOC_COLUMNS.get(doc_key)
    if column is None:
        raise InvalidDocKey()

    get_or_create_profile(session, owner_id)
    profile = session.exec(
        select(Profile)
        .where(Profile.owner_id == int(owner_id))
        .with_for_update()
        .execution_options(populate_existing=True)
    ).one()

    old_blob_id = getattr(profile, column)
    setattr(profile, column, blob_id)
    profile.updated_at = utc_now()
    session.add(profile)
    session.commit()
    return old_blob_id


def doc_refs(profile: Profile) -> dict[str, Optional[int]]:
    return {key: getattr(profile, column) for key, column in DOC_COLUMNS.items()}


def serialize_profile(profile: Profile) -> dict[str, Any]:
    """Formato de resposta de GET /api/profile (chaves em camelCase)."""
    refs = doc_refs(profile)
    docs = {}
    for key in DOC_KEYS:
        blob_id = refs[key]
        docs[key] = {"id": str(blob_id), "url": file_url(blob_id)} if blob_id else None
    return {
        "pharmacyName": profile.pharmacy_name,
        "licenseNumber": profile.license_number,
        "phone": profile.phone,
        "address": profile.address,
        "lang": profile.lang,
        "docs": docs,
    }
