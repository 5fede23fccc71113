# ebay_research/models/product.py

"""Catalog product model shared by the sheet reader and the store."""

from dataclasses import dataclass
from datetime import datetime

from ebay_research.models.snapshot import Measurement


@dataclass
class Product:
    """One catalog row: a camera/lens tracked through two eBay searches.

    ``row_number`` is the spreadsheet row and the stable identity used for
    upserts.  ``id`` is only set once the product lives in the store.
    """

    row_number: int
    product_name: str
    category: str = ""
    maker: str = ""
    active_url: str = ""
    sold_url: str = ""
    no: str = ""
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RowUpdate:
    """A freshly fetched measurement destined for one sheet row."""

    row_number: int
    product_name: str
    measurement: Measurement
