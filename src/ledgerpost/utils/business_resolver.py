"""Utility for resolving business names to IDs."""

from ledgerpost.domain.business import BusinessService


def resolve_business(business_service: BusinessService, business: str | int) -> int:
    """Resolve business name or ID to business ID.

    Args:
        business_service: BusinessService instance
        business: Business name, or ID as int or numeric string

    Returns:
        Business ID

    Raises:
        ValueError: If business is not found
    """
    if isinstance(business, int) or str(business).strip().isdigit():
        business_id = int(business)
        if business_service.get_business(business_id) is None:
            raise ValueError(f"Business ID {business_id} not found")
        return business_id

    for biz in business_service.list_businesses():
        if biz.name == business:
            return biz.id

    raise ValueError(f"Business '{business}' not found")
