"""Statement parsing: CSV rows and tokenized text lines to candidates.

Byte-level PDF text extraction happens upstream; this module only
interprets text that has already been split into lines.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from budget_engine.config import settings
from budget_engine.exceptions import StatementParseError
from budget_engine.logger import get_logger
from budget_engine.schemas.transaction import StatementTransaction, TransactionType

logger = get_logger(__name__)

MIN_LINE_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 3
FOOTER_MAX_LENGTH = 80
SEPARATOR_MIN_LENGTH = 20

DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%d-%m-%Y",
    "%m/%d/%y",
    "%d/%m/%y",
    "%m-%d-%y",
    "%d-%m-%y",
)

# Year-first is tried first so "2025-01-15" is never read as "25-01-15"
DATE_PATTERNS = (
    re.compile(r"(?<!\d)\d{4}[/-]\d{1,2}[/-]\d{1,2}(?!\d)"),
    re.compile(r"(?<!\d)\d{1,2}[/-]\d{1,2}[/-](?:\d{4}|\d{2})(?!\d)"),
)
AMOUNT_PATTERN = re.compile(r"\(?[+-]?\$?\d[\d,]*\.\d{2}\)?(?!\d)")

HEADER_KEYWORDS = (
    "date",
    "description",
    "amount",
    "balance",
    "transaction",
    "statement",
    "account",
    "page",
    "from",
    "to",
    "account number",
)
FOOTER_KEYWORDS = ("page", "total", "ending balance", "continued", "summary")

PAGE_NUMBER_PATTERN = re.compile(r"^page\s+\d+", re.IGNORECASE)
PAGE_OF_PATTERN = re.compile(r"^\d+\s+of\s+\d+", re.IGNORECASE)
SEPARATOR_PATTERN = re.compile(r"^[\d\s\-.,]+$")

SUPPORTED_FILE_TYPES = ("csv", "text", "txt", "pdf")


def _contains_word(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def _starts_word(text: str, keyword: str) -> bool:
    """Keyword at the start of a word; suffixes like plurals still match."""
    return re.search(rf"\b{re.escape(keyword)}", text) is not None


def parse_statement_date(value: str) -> date | None:
    """Parse a statement date using the first format that fits."""
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_amount(value: str) -> Decimal:
    """Parse a money string; parentheses mean negative.

    Raises:
        ValueError: If no number can be read.
    """
    text = value.strip()
    negative = text.startswith("(") and text.endswith(")")
    cleaned = re.sub(r"[^0-9.\-]", "", text)
    if not cleaned:
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    return -abs(amount) if negative else amount


def _candidate(txn_date: date, signed_amount: Decimal, description: str) -> StatementTransaction:
    return StatementTransaction(
        txn_date=txn_date,
        amount=abs(signed_amount),
        description=description,
        type=TransactionType.INCOME if signed_amount >= 0 else TransactionType.SPENDING,
    )


def parse_csv_statement(text: str) -> list[StatementTransaction]:
    """Parse CSV statement text with date, amount, description columns.

    The first non-blank line is treated as a header when it mentions
    "date". Rows that cannot be read are logged and skipped.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    start_index = 1 if "date" in lines[0].lower() else 0
    transactions: list[StatementTransaction] = []

    for line_number, row in enumerate(csv.reader(lines[start_index:]), start=start_index + 1):
        if len(row) < 3:
            logger.debug("Skipping CSV row with too few columns", line_number=line_number, columns=len(row))
            continue

        description = row[2].strip()
        txn_date = parse_statement_date(row[0])
        if txn_date is None:
            logger.warning("Skipping CSV row with invalid date", line_number=line_number, raw_date=row[0])
            continue

        try:
            amount = parse_amount(row[1])
        except ValueError as e:
            logger.warning(
                "Skipping CSV row with invalid amount",
                line_number=line_number,
                raw_amount=row[1],
                error=str(e),
            )
            continue

        if not description:
            logger.debug("Skipping CSV row without description", line_number=line_number)
            continue

        transactions.append(_candidate(txn_date, amount, description))

    logger.info("CSV statement parsed", rows=len(lines) - start_index, transactions=len(transactions))
    return transactions


def is_header_or_footer(line: str) -> bool:
    """True for column headers, page footers, page numbers and separator rows."""
    lower = line.lower()

    header_matches = sum(1 for keyword in HEADER_KEYWORDS if _contains_word(lower, keyword))
    if header_matches >= 2:
        return True

    if len(line) < FOOTER_MAX_LENGTH and any(_contains_word(lower, keyword) for keyword in FOOTER_KEYWORDS):
        return True

    if PAGE_NUMBER_PATTERN.match(line) or PAGE_OF_PATTERN.match(line):
        return True

    return len(line) > SEPARATOR_MIN_LENGTH and SEPARATOR_PATTERN.match(line) is not None


def _find_date(line: str) -> date | None:
    for pattern in DATE_PATTERNS:
        for match in pattern.finditer(line):
            parsed = parse_statement_date(match.group())
            if parsed is not None:
                return parsed
    return None


def _signed_amount(token: str, line: str) -> Decimal:
    amount = parse_amount(token)
    explicit_sign = token.lstrip("($").startswith(("+", "-")) or token.startswith("(")
    if explicit_sign:
        return amount

    lower = line.lower()
    if any(_starts_word(lower, keyword) for keyword in settings.debit_keywords):
        return -abs(amount)
    if any(_starts_word(lower, keyword) for keyword in settings.credit_keywords):
        return abs(amount)
    return amount


def _strip_tokens(line: str) -> str:
    for pattern in DATE_PATTERNS:
        line = pattern.sub("", line)
    line = AMOUNT_PATTERN.sub("", line)
    return re.sub(r"\s+", " ", line).strip()


def extract_transactions_from_lines(lines: Iterable[str]) -> list[StatementTransaction]:
    """Extract candidates from tokenized statement lines.

    Each line needs a date and a money amount; the last amount on the line
    is used since earlier ones are usually running balances.
    """
    transactions: list[StatementTransaction] = []

    for raw_line in lines:
        line = raw_line.strip()
        if len(line) < MIN_LINE_LENGTH or is_header_or_footer(line):
            continue

        txn_date = _find_date(line)
        amounts = AMOUNT_PATTERN.findall(line)
        if txn_date is None or not amounts:
            continue

        try:
            amount = _signed_amount(amounts[-1], line)
        except ValueError as e:
            logger.warning("Skipping statement line with invalid amount", line=line, error=str(e))
            continue

        description = _strip_tokens(line)
        if len(description) < MIN_DESCRIPTION_LENGTH:
            continue

        transactions.append(_candidate(txn_date, amount, description))

    return transactions


def parse_statement(content: bytes | str, file_type: str) -> list[StatementTransaction]:
    """Parse a statement document into candidates.

    ``csv`` content is read as rows; ``text``/``txt``/``pdf`` content must
    already be extracted text and is read line by line.

    Raises:
        StatementParseError: If the content cannot be decoded, is a raw PDF
            or the file type is not supported.
    """
    kind = file_type.lower().lstrip(".")
    if kind not in SUPPORTED_FILE_TYPES:
        raise StatementParseError(f"Unsupported file type: {file_type}")

    if isinstance(content, bytes):
        if content.startswith(b"%PDF"):
            raise StatementParseError("PDF bytes must be converted to text before parsing")
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise StatementParseError(f"Statement is not valid UTF-8: {e}") from e
    else:
        text = content.removeprefix("\ufeff")

    logger.info("Parsing statement", file_type=kind, size=len(text))

    if kind == "csv":
        return parse_csv_statement(text)
    return extract_transactions_from_lines(text.splitlines())
