from enum import Enum


class ProductStatus(str, Enum):
    """
    Visibility of a product in the storefront.

    DRAFT: Only visible to admins
    PUBLISHED: Listed in the catalog and purchasable
    """
    DRAFT = "draft"
    PUBLISHED = "published"

    @classmethod
    def from_string(cls, value: str | None) -> 'ProductStatus':
        """Anything other than an explicit 'draft' publishes the product."""
        if value is not None and value.strip().lower() == cls.DRAFT.value:
            return cls.DRAFT
        return cls.PUBLISHED
