"""Receipt image parsing through a vision LLM"""
import base64
import binascii
import re
from decimal import Decimal, ROUND_HALF_UP
from functools import lru_cache
from typing import Tuple
from loguru import logger
from pydantic_ai import Agent, BinaryContent, RunContext

from ..core.config import settings
from ..models.bill_models import ParsedItem, ParsedReceipt
from .llm_factory import get_model

_DATA_URL_RE = re.compile(r"^data:(image/[\w+-]+);base64,(.+)$", re.DOTALL)

RECEIPT_PROMPT = """
Analyze this receipt image and extract the line items with their prices.

Rules:
- Include only actual menu items/products, not subtotals or totals
- Price should be a number, not a string
- If tax is listed, include it
- If tip is listed, include it (often not on receipt)
- If subtotal is listed, include it
- Omit fields that aren't on the receipt
"""


class ReceiptError(Exception):
    """Base class for receipt parsing failures."""


class InvalidImageError(ReceiptError):
    """The uploaded image could not be accepted."""


class ReceiptParsingError(ReceiptError):
    """The model could not turn the image into a receipt."""


def decode_image_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a ``data:image/...;base64,...`` URL into media type and raw bytes.

    Raises:
        InvalidImageError: if the URL is malformed or the media type is not allowed
    """
    match = _DATA_URL_RE.match(data_url or "")
    if not match:
        raise InvalidImageError("Invalid image format")

    media_type, payload = match.group(1), match.group(2)
    if media_type not in settings.allowed_image_types:
        raise InvalidImageError(f"Image type {media_type} not allowed")

    try:
        return media_type, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise InvalidImageError("Invalid image format") from e


def _round_to_cents(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def clean_parsed_receipt(receipt: ParsedReceipt) -> ParsedReceipt:
    """Drop unusable items and amounts, trim names and round prices to cents."""
    items = []
    for item in receipt.items:
        name = item.name.strip()
        if not name or item.price is None or not item.price > 0:
            logger.warning(f"Dropping receipt item without a usable name or price: {item!r}")
            continue
        items.append(ParsedItem(name=name, price=_round_to_cents(item.price)))

    update = {"items": items}
    for field in ("subtotal", "tax", "tip"):
        amount = getattr(receipt, field)
        if amount is not None and not amount >= 0:
            logger.warning(f"Dropping unusable receipt {field}: {amount}")
            update[field] = None

    return receipt.model_copy(update=update)


class ReceiptParserService:
    def __init__(self, model_name: str = None):
        """Initialize the receipt parser agent"""
        self.model_name = model_name or settings.receipt_model_name
        self.agent = Agent(
            get_model(self.model_name),
            output_type=ParsedReceipt,
            output_retries=3,
        )

        @self.agent.instructions
        def receipt_system_prompt(ctx: RunContext[None]) -> str:
            return RECEIPT_PROMPT

        logger.info(f"Receipt parser initialized with model {self.model_name}")

    async def parse_receipt(self, image_bytes: bytes, media_type: str) -> ParsedReceipt:
        """
        Extract line items, tax and tip from a receipt image.

        Raises:
            ReceiptParsingError: if the model call fails or returns nothing usable
        """
        logger.info(f"Parsing receipt image ({media_type}, {len(image_bytes)} bytes)")
        try:
            result = await self.agent.run(
                [
                    "Extract the items from this receipt.",
                    BinaryContent(data=image_bytes, media_type=media_type),
                ],
                model_settings={"max_tokens": settings.receipt_max_tokens},
            )
        except Exception as e:
            logger.error(f"Receipt parsing error: {e}")
            raise ReceiptParsingError("Failed to process receipt. Please try again.") from e

        receipt = clean_parsed_receipt(result.output)
        logger.info(f"Parsed {len(receipt.items)} item(s) from receipt")
        return receipt


@lru_cache
def get_receipt_parser() -> ReceiptParserService:
    """Lazily built parser shared by all requests."""
    return ReceiptParserService()
