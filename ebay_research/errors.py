# ebay_research/errors.py

"""Exception types raised at the tool's input boundaries."""


class EbayResearchError(Exception):
    """Base exception for the ebay_research package."""


class InvalidPriceSampleError(EbayResearchError, ValueError):
    """A price sample contained a non-numeric or non-positive value."""

    def __init__(self, index: int, value: object, reason: str) -> None:
        self.index = index
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid price at index {index} ({value!r}): {reason}"
        )


class InvalidCountError(EbayResearchError, ValueError):
    """A listing count was negative or not an integer."""


class UnknownProductError(EbayResearchError, LookupError):
    """A snapshot referenced a product id that is not in the store."""

    def __init__(self, product_id: int) -> None:
        self.product_id = product_id
        super().__init__(f"Unknown product id: {product_id}")


class ConfigurationError(EbayResearchError):
    """A required setting (credential, spreadsheet id) is missing."""


class OutOfOrderSnapshotError(EbayResearchError, ValueError):
    """A snapshot was timestamped before the product's latest one."""

    def __init__(self, product_id: int, recorded_at: str, latest: str) -> None:
        self.product_id = product_id
        self.recorded_at = recorded_at
        self.latest = latest
        super().__init__(
            f"Snapshot for product {product_id} at {recorded_at} "
            f"predates the latest one at {latest}"
        )
