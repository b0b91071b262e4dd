from fastapi import APIRouter, File, UploadFile, HTTPException, Depends
from loguru import logger

from ....models.bill_models import ParsedReceipt
from ....models.response_models import (
    CalculateSplitRequest,
    CalculateSplitResponse,
    HealthResponse,
    NextColorRequest,
    NextColorResponse,
    ParseReceiptRequest,
    TipRequest,
    TipResponse,
)
from ....services.calculations import (
    calculate_split,
    calculate_tip_from_percent,
    get_next_color,
    round_totals_to_cents,
)
from ....services.receipt_parser import (
    InvalidImageError,
    ReceiptParserService,
    ReceiptParsingError,
    decode_image_data_url,
    get_receipt_parser,
)
from ....core.config import settings

router = APIRouter()


@router.post("/split", response_model=CalculateSplitResponse)
async def split_bill(request: CalculateSplitRequest):
    """
    Calculate each person's share of the bill
    """
    try:
        summary = calculate_split(
            items=request.items,
            people=request.people,
            tax=request.tax,
            tip_amount=request.tip_amount,
        )
        logger.info(
            f"Split {len(request.items)} item(s) between {len(request.people)} people, "
            f"total bill ${summary.total_bill:.2f}"
        )

        return CalculateSplitResponse(
            success=True,
            message="Split calculated successfully",
            summary=summary,
            rounded_totals=round_totals_to_cents(summary),
        )

    except Exception as e:
        logger.error(f"Error calculating split: {e}")
        return CalculateSplitResponse(
            success=False,
            message="Failed to calculate split",
            error=str(e)
        )


@router.post("/tip", response_model=TipResponse)
async def tip_from_percent(request: TipRequest):
    """
    Tip as a percentage of the pre-tax subtotal
    """
    return TipResponse(
        tip_amount=calculate_tip_from_percent(request.subtotal, request.tax, request.percent)
    )


@router.post("/next-color", response_model=NextColorResponse)
async def next_color(request: NextColorRequest):
    return NextColorResponse(color=get_next_color(request.people))


async def _parse(parser: ReceiptParserService, image_bytes: bytes, media_type: str) -> ParsedReceipt:
    try:
        return await parser.parse_receipt(image_bytes, media_type)
    except ReceiptParsingError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/parse-receipt", response_model=ParsedReceipt)
async def parse_receipt(
    request: ParseReceiptRequest,
    parser: ReceiptParserService = Depends(get_receipt_parser),
):
    """
    Read line items from a base64 data URL image
    """
    if not request.image:
        raise HTTPException(status_code=400, detail="No image provided")

    try:
        media_type, image_bytes = decode_image_data_url(request.image)
    except InvalidImageError as e:
        logger.warning(f"Rejected receipt image: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return await _parse(parser, image_bytes, media_type)


@router.post("/upload-receipt", response_model=ParsedReceipt)
async def upload_receipt(
    file: UploadFile = File(...),
    parser: ReceiptParserService = Depends(get_receipt_parser),
):
    """
    Read line items from an uploaded receipt image
    """
    if file.content_type not in settings.allowed_image_types:
        raise HTTPException(
            status_code=400,
            detail=f"File type {file.content_type} not allowed"
        )

    image_bytes = await file.read()
    if len(image_bytes) > settings.max_file_size:
        raise HTTPException(
            status_code=400,
            detail="File size exceeds maximum allowed size"
        )

    return await _parse(parser, image_bytes, file.content_type)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        message="Tabsplit API is running",
        version=settings.app_version
    )
