# ebay_research/clients/sheets_client.py

"""Google Sheets access for the product catalog worksheet.

Layout (row 1 is the header, data starts at row 2)::

    A No          F sold URL          K avg price (JPY)
    B category    G active count      L min price (USD)
    C maker       H sold count        M max price (USD)
    D name        I balance           N updated at
    E active URL  J avg price (USD)
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from ebay_research.analysis.rounding import round_half_up
from ebay_research.config.settings import Settings
from ebay_research.models.product import Product, RowUpdate

logger = logging.getLogger("ebay_research.sheets")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

HEADER_ROW = 1
DATA_START_ROW = 2

HEADERS = [
    "No", "Category", "Maker", "Product name",
    "eBay active URL", "eBay sold URL",
    "Active", "Sold", "Balance",
    "Avg price (USD)", "Avg price (JPY)",
    "Min price (USD)", "Max price (USD)",
    "Updated at",
]

VALUE_INPUT_OPTION = "USER_ENTERED"


def _round2(value: float | None) -> float | str:
    return round_half_up(value, 2) if value is not None else ""


def _cell(value: Any) -> Any:
    return "" if value is None else value


class GoogleSheetsClient:
    """Reads catalog rows and writes fetched figures back in batches."""

    def __init__(
        self,
        spreadsheet_id: str | None = None,
        sheet_name: str | None = None,
        credentials_path: str | None = None,
        service: Any = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id or Settings.GOOGLE_SPREADSHEET_ID
        self.sheet_name = sheet_name or Settings.GOOGLE_SHEET_NAME
        self.credentials_path = (
            credentials_path or Settings.GOOGLE_CREDENTIALS_PATH
        )
        self._clock = clock
        self.service = service or self._build_service()

    def _build_service(self) -> Any:
        creds = Credentials.from_service_account_file(
            self.credentials_path, scopes=SCOPES,
        )
        logger.debug("Authorised service account from %s", self.credentials_path)
        return build("sheets", "v4", credentials=creds, cache_discovery=False)

    @property
    def _values(self) -> Any:
        return self.service.spreadsheets().values()

    def _get(self, a1_range: str) -> list[list[Any]]:
        result = self._values.get(
            spreadsheetId=self.spreadsheet_id,
            range=f"{self.sheet_name}!{a1_range}",
        ).execute()
        rows: list[list[Any]] = result.get("values", [])
        return rows

    def _batch_update(self, data: list[dict[str, Any]]) -> dict[str, Any]:
        if not data:
            return {}
        body = {"valueInputOption": VALUE_INPUT_OPTION, "data": data}
        result: dict[str, Any] = self._values.batchUpdate(
            spreadsheetId=self.spreadsheet_id, body=body,
        ).execute()
        logger.info("Wrote %d row range(s) to sheet", len(data))
        return result

    # ── Reads ────────────────────────────────────────────

    @staticmethod
    def _parse_row(row: Sequence[Any], row_number: int) -> Product | None:
        if not row or row[0] in (None, ""):
            return None
        cells = [str(_cell(c)) for c in row] + [""] * (6 - len(row))
        return Product(
            row_number=row_number,
            no=cells[0],
            category=cells[1],
            maker=cells[2],
            product_name=cells[3],
            active_url=cells[4],
            sold_url=cells[5],
        )

    def _parse_rows(
        self, rows: list[list[Any]], first_row: int,
    ) -> list[Product]:
        products = []
        for offset, row in enumerate(rows):
            product = self._parse_row(row, first_row + offset)
            if product is not None:
                products.append(product)
        return products

    def read_all_products(self) -> list[Product]:
        rows = self._get(f"A{DATA_START_ROW}:F")
        return self._parse_rows(rows, DATA_START_ROW)

    def read_products(self, start_row: int, end_row: int) -> list[Product]:
        """Products in the inclusive sheet row range."""
        rows = self._get(f"A{start_row}:F{end_row}")
        return self._parse_rows(rows, start_row)

    def read_products_by_maker(self, maker: str) -> list[Product]:
        wanted = maker.upper()
        return [
            p for p in self.read_all_products() if p.maker.upper() == wanted
        ]

    def read_products_by_category(self, category: str) -> list[Product]:
        return [p for p in self.read_all_products() if p.category == category]

    def total_rows(self) -> int:
        """Data rows below the header."""
        rows = self._get("A:A")
        return max(len(rows) - HEADER_ROW, 0)

    # ── Writes ───────────────────────────────────────────

    def batch_update_counts(
        self, updates: Sequence[RowUpdate],
    ) -> dict[str, Any]:
        """Write active/sold/balance (columns G:I)."""
        data = [
            {
                "range": f"{self.sheet_name}!G{u.row_number}:I{u.row_number}",
                "values": [[
                    _cell(u.measurement.active_count),
                    _cell(u.measurement.sold_count),
                    _round2(u.measurement.balance),
                ]],
            }
            for u in updates
        ]
        return self._batch_update(data)

    def batch_update_all_data(
        self, updates: Sequence[RowUpdate],
    ) -> dict[str, Any]:
        """Write counts, prices and an update timestamp (columns G:N)."""
        stamp = self._clock().strftime("%Y-%m-%d %H:%M")
        data = []
        for u in updates:
            m = u.measurement
            data.append({
                "range": f"{self.sheet_name}!G{u.row_number}:N{u.row_number}",
                "values": [[
                    _cell(m.active_count),
                    _cell(m.sold_count),
                    _round2(m.balance),
                    _round2(m.avg_price_usd),
                    _cell(m.avg_price_jpy),
                    _round2(m.min_price_usd),
                    _round2(m.max_price_usd),
                    stamp,
                ]],
            })
        return self._batch_update(data)

    def setup_headers(self) -> None:
        self._values.update(
            spreadsheetId=self.spreadsheet_id,
            range=f"{self.sheet_name}!A1:N1",
            valueInputOption=VALUE_INPUT_OPTION,
            body={"values": [HEADERS]},
        ).execute()
        logger.info("Header row written to %s", self.sheet_name)
