"""Business domain service."""

from typing import Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.accounts import ChartOfAccountsService
from ledgerpost.domain.entities import Business as BusinessEntity
from ledgerpost.domain.errors import ConflictError, ValidationError


class BusinessService:
    """Service for managing businesses."""

    def __init__(self, db: Database):
        self.db = db

    def create_business(self, name: str, seed_chart: bool = True) -> int:
        """Create a business, optionally with the default chart of accounts.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a business with the same name exists
        """
        if not name or not name.strip():
            raise ValidationError("Business name must not be empty")
        if any(biz.name == name.strip() for biz in self.db.list_businesses()):
            raise ConflictError(f"Business '{name.strip()}' already exists")
        business_id = self.db.create_business(name.strip())
        if seed_chart:
            ChartOfAccountsService(self.db).seed_default_chart(business_id)
        return business_id

    def get_business(self, business_id: int) -> Optional[BusinessEntity]:
        return self.db.get_business(business_id)

    def list_businesses(self) -> list[BusinessEntity]:
        return self.db.list_businesses()
