"""Google Sheets store.

The spreadsheet is the system of record:

- ``Inventory``: one row per book (columns A-M, see INVENTORY_HEADERS)
- ``Locations``: one row per member (columns A-F)
- ``Journal-{card}``: one tab per member's reading journal (columns A-F)

Updates find a row by reading the whole tab and then write to that row's
sheet position. Nothing stops another writer from inserting or deleting rows
in between; the sheet offers no row locking.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import Config, get_config
from ..db.schemas import Book, JournalEntry, Member
from ..errors import ConfigurationError, NotFoundError, TransientStoreError
from .base import LibraryStore, normalize_isbn

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Rows read per tab; also the extent of the location constraint
MAX_ROWS = 1000

INVENTORY = "Inventory"
LOCATIONS = "Locations"

INVENTORY_HEADERS = [
    "ISBN",
    "Cover",
    "Title",
    "Authors",
    "Reading Level",
    "Location",
    "Publishers",
    "Pages",
    "Genres",
    "Language",
    "Notes",
    "RequestedBy",
    "Description",
]
LOCATION_HEADERS = [
    "First Name",
    "Last Name",
    "Last Name Initial",
    "City",
    "Neighborhood",
    "Library Card Number",
]
JOURNAL_HEADERS = ["ISBN", "Title", "Date Added", "Notes", "Finished", "Order"]

LOCATION_COLUMN = "F"
REQUESTED_BY_COLUMN = "L"
LOCATION_RANGE_FORMULA = "=Locations!$A$2:$A"

JOURNAL_COLUMNS = {"notes": "D", "finished": "E", "order": "F"}

IMAGE_FORMULA = re.compile(r'=IMAGE\("([^"]+)"', re.IGNORECASE)


def column_letter(index: int) -> str:
    """Convert a zero-based column index to its A1 letter (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def column_index(letter: str) -> int:
    """Convert an A1 column letter to its zero-based index."""
    index = 0
    for char in letter.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def journal_title(card_number: int) -> str:
    """Name of the tab holding a member's reading journal."""
    return f"Journal-{card_number}"


def encode_cover(url: str) -> str:
    """Wrap a cover URL in the sheet's image formula."""
    return f'=IMAGE("{url}")' if url else ""


def decode_cover(value: Any) -> str:
    """Extract the URL from an image formula; plain values pass through."""
    text = _cell_text(value)
    match = IMAGE_FORMULA.match(text)
    return match.group(1) if match else text


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _is_blank(value: Any) -> bool:
    return _cell_text(value) == ""


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _cell_text(value).upper() in ("TRUE", "YES", "1")


def _parse_int(value: Any) -> Optional[int]:
    try:
        return int(float(_cell_text(value)))
    except (ValueError, OverflowError):
        return None


@dataclass
class TableRow:
    """A data row of a tab, with its 1-based sheet row number."""

    row_number: int
    cells: list[Any]
    headers: list[str] = field(default_factory=list)

    def cell(self, index: int) -> Any:
        return self.cells[index] if index < len(self.cells) else ""

    def get(self, *names: str) -> Any:
        """Value under the first header that matches one of ``names``."""
        lowered = [h.strip().lower() for h in self.headers]
        for name in names:
            if name.lower() in lowered:
                return self.cell(lowered.index(name.lower()))
        return ""

    @property
    def record(self) -> dict[str, Any]:
        return {header: self.cell(i) for i, header in enumerate(self.headers)}


class SheetsClient:
    """Tabular operations against one spreadsheet."""

    def __init__(self, service, spreadsheet_id: str):
        """Initialize client.

        Args:
            service: Sheets v4 service resource (``googleapiclient`` build)
            spreadsheet_id: ID of the spreadsheet
        """
        self._service = service
        self.spreadsheet_id = spreadsheet_id

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "SheetsClient":
        """Build an authenticated client from service-account settings."""
        config = config or get_config()
        if not config.sheet_id:
            raise ConfigurationError("SHEET_ID not set")
        if not config.has_google_credentials():
            raise ConfigurationError("GOOGLE_CLIENT_EMAIL and GOOGLE_PRIVATE_KEY must be set")

        credentials = service_account.Credentials.from_service_account_info(
            {
                "client_email": config.google_client_email,
                "private_key": config.google_private_key,
                "token_uri": TOKEN_URI,
            },
            scopes=SCOPES,
        )
        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(service, config.sheet_id)

    def _execute(self, request) -> dict:
        """Execute an API request, translating HTTP and transport failures."""
        try:
            return request.execute() or {}
        except HttpError as e:
            raise TransientStoreError(f"Sheets API error: {e}", status=e.resp.status) from e
        except (OSError, auth_exceptions.TransportError, auth_exceptions.RefreshError) as e:
            raise TransientStoreError(f"Sheets API unreachable: {e}") from e

    @staticmethod
    def _is_missing_range(error: TransientStoreError) -> bool:
        return error.status == 400 or "Unable to parse range" in str(error)

    # ========================================================================
    # Reads
    # ========================================================================

    def try_read_table(
        self, name: str, key_column: Optional[str] = None
    ) -> Optional[list[TableRow]]:
        """Read a tab into rows keyed by its header row.

        Fully blank rows are skipped. With ``key_column``, rows whose value in
        that column is blank are skipped too.

        Returns:
            Rows in sheet order, or None if the tab does not exist
        """
        values = self._service.spreadsheets().values()
        try:
            response = self._execute(
                values.get(
                    spreadsheetId=self.spreadsheet_id,
                    range=f"{name}!A1:Z{MAX_ROWS}",
                    valueRenderOption="FORMULA",
                )
            )
        except TransientStoreError as e:
            if self._is_missing_range(e):
                logger.info('Sheet "%s" not found', name)
                return None
            raise

        raw = response.get("values", [])
        if not raw:
            return []

        headers = [_cell_text(h) for h in raw[0]]
        rows = []
        for offset, cells in enumerate(raw[1:]):
            if not cells or all(_is_blank(c) for c in cells):
                continue
            row = TableRow(row_number=offset + 2, cells=list(cells), headers=headers)
            if key_column and _is_blank(row.get(key_column)):
                continue
            rows.append(row)
        return rows

    def read_table(self, name: str, key_column: Optional[str] = None) -> list[TableRow]:
        """Like try_read_table, but a missing tab reads as empty."""
        return self.try_read_table(name, key_column) or []

    def read_range(self, a1_range: str) -> list[list[Any]]:
        response = self._execute(
            self._service.spreadsheets()
            .values()
            .get(spreadsheetId=self.spreadsheet_id, range=a1_range)
        )
        return response.get("values", [])

    def get_validation_list(self, table: str, column: str) -> list[str]:
        """Resolve the data-validation list attached to a column.

        Handles lists sourced from a range in another tab (ONE_OF_RANGE)
        and literal lists (ONE_OF_LIST).

        Returns:
            Valid values, or [] if no rule is configured or resolution fails
        """
        try:
            response = self._execute(
                self._service.spreadsheets().get(
                    spreadsheetId=self.spreadsheet_id,
                    includeGridData=True,
                    ranges=[f"{table}!{column}:{column}"],
                )
            )

            sheets = response.get("sheets") or []
            if not sheets:
                return []

            grid = (sheets[0].get("data") or [{}])[0]
            for row in grid.get("rowData", []):
                cell = (row.get("values") or [{}])[0]
                validation = cell.get("dataValidation")
                if not validation:
                    continue

                condition = validation.get("condition", {})
                condition_values = condition.get("values", [])

                if condition.get("type") == "ONE_OF_RANGE" and condition_values:
                    formula = condition_values[0].get("userEnteredValue", "")
                    if formula.startswith("="):
                        source = formula[1:].replace("$", "")
                        flat = [v for r in self.read_range(source) for v in r]
                        return [_cell_text(v) for v in flat if not _is_blank(v)]

                if condition.get("type") == "ONE_OF_LIST":
                    return [
                        v["userEnteredValue"]
                        for v in condition_values
                        if v.get("userEnteredValue")
                    ]

            return []
        except TransientStoreError as e:
            logger.error("Error fetching validation rules for %s!%s: %s", table, column, e)
            return []

    def sheet_id(self, title: str) -> Optional[int]:
        """Internal identifier of a tab, or None if absent."""
        response = self._execute(
            self._service.spreadsheets().get(
                spreadsheetId=self.spreadsheet_id, fields="sheets.properties"
            )
        )
        for sheet in response.get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == title:
                return properties.get("sheetId")
        return None

    # ========================================================================
    # Writes
    # ========================================================================

    def write_cells(self, table: str, updates: list[tuple[int, str, Any]]) -> None:
        """Write several cells in one call.

        Args:
            table: Tab name
            updates: (row number, column letter, value) triples
        """
        data = [
            {"range": f"{table}!{column}{row}", "values": [[value]]}
            for row, column, value in updates
        ]
        self._execute(
            self._service.spreadsheets()
            .values()
            .batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"valueInputOption": "RAW", "data": data},
            )
        )

    def append_row(self, table: str, values: list[Any], input_option: str = "RAW") -> None:
        """Append one row after the last row of a tab.

        ``USER_ENTERED`` lets the sheet evaluate formulas such as =IMAGE().
        """
        last = column_letter(len(values) - 1)
        self._execute(
            self._service.spreadsheets()
            .values()
            .append(
                spreadsheetId=self.spreadsheet_id,
                range=f"{table}!A:{last}",
                valueInputOption=input_option,
                insertDataOption="INSERT_ROWS",
                body={"values": [values]},
            )
        )

    def set_range_validation(self, sheet_id: int, column: str, formula: str) -> None:
        """Constrain a column (below the header) to values from a range.

        The rule is not strict so legacy values outside the list survive.
        """
        index = column_index(column)
        request = {
            "setDataValidation": {
                "range": {
                    "sheetId": sheet_id,
                    "startRowIndex": 1,
                    "endRowIndex": MAX_ROWS,
                    "startColumnIndex": index,
                    "endColumnIndex": index + 1,
                },
                "rule": {
                    "condition": {
                        "type": "ONE_OF_RANGE",
                        "values": [{"userEnteredValue": formula}],
                    },
                    "showCustomUi": True,
                    "strict": False,
                },
            }
        }
        self._execute(
            self._service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id, body={"requests": [request]}
            )
        )

    def add_sheet(self, title: str, headers: list[str]) -> bool:
        """Create a tab with a header row.

        Returns:
            True if created, False if it already existed
        """
        try:
            self._execute(
                self._service.spreadsheets().batchUpdate(
                    spreadsheetId=self.spreadsheet_id,
                    body={"requests": [{"addSheet": {"properties": {"title": title}}}]},
                )
            )
        except TransientStoreError as e:
            if "already exists" in str(e):
                logger.info("Sheet %s already exists", title)
                return False
            raise

        last = column_letter(len(headers) - 1)
        self._execute(
            self._service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=f"{title}!A1:{last}1",
                valueInputOption="RAW",
                body={"values": [headers]},
            )
        )
        return True


class SheetsStore(LibraryStore):
    """Library store over the Google Sheets layout."""

    name = "sheets"

    def __init__(self, client: Optional[SheetsClient] = None):
        self.client = client or SheetsClient.from_config()

    # ========================================================================
    # Inventory
    # ========================================================================

    @staticmethod
    def _row_to_book(row: TableRow) -> Book:
        return Book(
            isbn=row.get("ISBN"),
            cover=decode_cover(row.get("Cover")),
            title=row.get("Title"),
            authors=row.get("Authors", "Author"),
            reading_level=row.get("Reading Level", "Level"),
            location=row.get("Location"),
            publishers=row.get("Publishers"),
            pages=row.get("Pages"),
            genres=row.get("Genres"),
            language=row.get("Language"),
            notes=row.get("Notes"),
            requested_by=row.get("RequestedBy", "Requested By"),
            description=row.get("Description"),
        )

    def list_books(self) -> list[Book]:
        return [self._row_to_book(r) for r in self.client.read_table(INVENTORY, "ISBN")]

    def _find_book_row(self, isbn: str) -> TableRow:
        target = normalize_isbn(isbn)
        for row in self.client.read_table(INVENTORY, "ISBN"):
            if normalize_isbn(row.get("ISBN")) == target:
                return row
        raise NotFoundError(f"Book with ISBN {target} not found")

    def insert_book(self, book: Book) -> None:
        # USER_ENTERED evaluates the cover formula; the quote keeps the ISBN text
        row = [
            f"'{book.isbn}",
            encode_cover(book.cover),
            book.title,
            book.authors,
            book.reading_level,
            book.location,
            book.publishers,
            book.pages,
            book.genres,
            book.language,
            book.notes,
            book.requested_by,
            book.description,
        ]
        self.client.append_row(INVENTORY, row, input_option="USER_ENTERED")

    def update_location(self, isbn: str, location: str) -> None:
        row = self._find_book_row(isbn)
        self.client.write_cells(
            INVENTORY,
            [
                (row.row_number, LOCATION_COLUMN, location),
                (row.row_number, REQUESTED_BY_COLUMN, ""),
            ],
        )

    def set_requested_by(self, isbn: str, requested_by: str) -> None:
        row = self._find_book_row(isbn)
        self.client.write_cells(
            INVENTORY, [(row.row_number, REQUESTED_BY_COLUMN, requested_by)]
        )

    # ========================================================================
    # Members
    # ========================================================================

    def list_members(self) -> list[Member]:
        members = []
        for row in self.client.read_table(LOCATIONS):
            first_name = _cell_text(row.cell(0))
            card_number = _parse_int(row.cell(5))
            if not first_name or not card_number or card_number < 1:
                continue
            members.append(
                Member(
                    first_name=first_name,
                    last_name=_cell_text(row.cell(1)),
                    last_name_initial=_cell_text(row.cell(2)),
                    city=_cell_text(row.cell(3)),
                    neighborhood=_cell_text(row.cell(4)),
                    library_card_number=card_number,
                )
            )
        return members

    def member_names(self) -> list[str]:
        names = (_cell_text(row.cell(0)) for row in self.client.read_table(LOCATIONS))
        return [name for name in names if name]

    def insert_member(self, member: Member) -> None:
        self.client.append_row(
            LOCATIONS,
            [
                member.first_name,
                member.last_name,
                member.last_name_initial,
                member.city,
                member.neighborhood,
                member.library_card_number,
            ],
        )

    def location_choices(self) -> list[str]:
        return self.client.get_validation_list(INVENTORY, LOCATION_COLUMN)

    def refresh_location_choices(self) -> None:
        sheet_id = self.client.sheet_id(INVENTORY)
        if sheet_id is None:
            raise ConfigurationError(f"{INVENTORY} sheet not found")
        self.client.set_range_validation(sheet_id, LOCATION_COLUMN, LOCATION_RANGE_FORMULA)

    # ========================================================================
    # Journals
    # ========================================================================

    def ensure_journal(self, card_number: int) -> None:
        title = journal_title(card_number)
        if self.client.add_sheet(title, JOURNAL_HEADERS):
            logger.info("Created reading journal sheet %s", title)

    def _journal_rows(self, card_number: int) -> Optional[list[TableRow]]:
        rows = self.client.try_read_table(journal_title(card_number))
        if rows is None:
            return None
        return [r for r in rows if not _is_blank(r.cell(0))]

    @staticmethod
    def _row_to_entry(row: TableRow) -> JournalEntry:
        return JournalEntry(
            isbn=normalize_isbn(row.cell(0)),
            title=_cell_text(row.cell(1)),
            date_added=_cell_text(row.cell(2)),
            notes=_cell_text(row.cell(3)),
            finished=_parse_bool(row.cell(4)),
            order=_parse_int(row.cell(5)),
        )

    def list_journal(self, card_number: int) -> Optional[list[JournalEntry]]:
        rows = self._journal_rows(card_number)
        if rows is None:
            return None
        return [self._row_to_entry(r) for r in rows]

    def insert_journal_entry(self, card_number: int, entry: JournalEntry) -> None:
        self.client.append_row(
            journal_title(card_number),
            [
                entry.isbn,
                entry.title,
                entry.date_added,
                entry.notes,
                entry.finished,
                "" if entry.order is None else entry.order,
            ],
        )

    def update_journal_entry(self, card_number: int, isbn: str, **changes) -> bool:
        unknown = set(changes) - set(JOURNAL_COLUMNS)
        if unknown:
            raise ValueError(f"Journal fields are not editable: {', '.join(sorted(unknown))}")

        target = normalize_isbn(isbn)
        for row in self._journal_rows(card_number) or []:
            if normalize_isbn(row.cell(0)) == target:
                self.client.write_cells(
                    journal_title(card_number),
                    [
                        (row.row_number, JOURNAL_COLUMNS[name], value)
                        for name, value in changes.items()
                    ],
                )
                return True
        return False

    def update_journal_order(self, card_number: int, orders: dict[str, int]) -> list[str]:
        updates = []
        matched = []
        for row in self._journal_rows(card_number) or []:
            isbn = normalize_isbn(row.cell(0))
            if isbn in orders:
                updates.append((row.row_number, JOURNAL_COLUMNS["order"], orders[isbn]))
                matched.append(isbn)
        if updates:
            self.client.write_cells(journal_title(card_number), updates)
        return matched
