from typing import Optional

from sqlmodel import Field
from sqlalchemy import UniqueConstraint

from pharmaportal.model.base import BaseModel

# doc key (nome usado na API) -> coluna do Profile
DOC_COLUMNS: dict[str, str] = {
    "drugLicense": "drug_license_id",
    "gstCertificate": "gst_certificate_id",
    "pharmacistRegistration": "pharmacist_registration_id",
}
DOC_KEYS: tuple[str, ...] = tuple(DOC_COLUMNS)


class Profile(BaseModel, table=True):
    """Modelo Profile - dados da farmácia e referências aos documentos enviados."""

    __tablename__ = "profile"

    owner_id: int = Field(foreign_key="account.id", index=True, nullable=False)
    pharmacy_name: Optional[str] = None
    license_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    lang: Optional[str] = None

    drug_license_id: Optional[int] = Field(default=None, foreign_key="blob.id", nullable=True)
    gst_certificate_id: Optional[int] = Field(default=None, foreign_key="blob.id", nullable=True)
    pharmacist_registration_id: Optional[int] = Field(default=None, foreign_key="blob.id", nullable=True)

    # Um profile por account (get-or-create concorrente depende disso)
    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_profile_owner"),
    )
