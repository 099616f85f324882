"""Trade confirmation extraction via Gemini structured output."""

from __future__ import annotations

import json
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from splitpay.adapters.extraction.logger import ExtractionLogger
from splitpay.core.config import (
    DEFAULT_EXTRACTION_MODEL,
    SplitpayConfig,
    require_google_api_key,
)
from splitpay.errors import ExtractionError
from splitpay.orders.entities import RECORD_FIELD_KEYS, ExtractedRecord

DEFAULT_PROMPT = (
    "From the provided image of a trade confirmation, extract all the specified "
    "fields. The values should be extracted exactly as they appear. Respond with "
    "a JSON object that adheres to the provided schema. The response must be an "
    "array containing one or more trade objects if multiple are detected."
)

_FIELD_DESCRIPTIONS: dict[str, str] = {
    "orderNumber": "Order Number",
    "type": "Type (e.g., Limit / Buy)",
    "filledQuantity": "Filled / Quantity",
    "icebergValue": "Iceberg Value",
    "averagePrice": "Average / Price",
    "conditions": "Conditions",
    "fee": "Fee",
    "total": "Total",
    "creationDate": "Creation Date",
    "updateDate": "Update Date",
}


class ExtractedRecordPayload(BaseModel):
    """One trade object as returned by the model (camelCase keys)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    order_number: str = ""
    type: str = ""
    filled_quantity: str = ""
    iceberg_value: str = ""
    average_price: str = ""
    conditions: str = ""
    fee: str = ""
    total: str = ""
    creation_date: str = ""
    update_date: str = ""

    def to_record(self) -> ExtractedRecord:
        return ExtractedRecord(**self.model_dump())


_PAYLOAD_LIST = TypeAdapter(list[ExtractedRecordPayload])


def response_schema() -> genai_types.Schema:
    """JSON schema requiring an array of trade objects with every field."""
    keys = list(RECORD_FIELD_KEYS.values())
    return genai_types.Schema(
        type=genai_types.Type.ARRAY,
        items=genai_types.Schema(
            type=genai_types.Type.OBJECT,
            properties={
                key: genai_types.Schema(
                    type=genai_types.Type.STRING,
                    description=_FIELD_DESCRIPTIONS[key],
                )
                for key in keys
            },
            required=keys,
        ),
    )


def parse_extraction_response(text: str) -> list[ExtractedRecord]:
    """Parse the model's JSON text into records.

    A single object is accepted as a one-element array.

    Raises:
        ExtractionError: If the text is not JSON of the expected shape
    """
    try:
        data: Any = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Failed to parse JSON from AI response: {exc}") from exc

    if isinstance(data, dict):
        data = [data]
    try:
        payloads = _PAYLOAD_LIST.validate_python(data)
    except ValidationError as exc:
        raise ExtractionError(f"Failed to parse extracted records: {exc}") from exc
    return [payload.to_record() for payload in payloads]


class TradeConfirmationExtractor:
    """Extracts execution records from trade confirmation images."""

    def __init__(
        self,
        client: genai.Client,
        *,
        model: str = DEFAULT_EXTRACTION_MODEL,
        extraction_logger: ExtractionLogger | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._logger = extraction_logger or ExtractionLogger()

    @classmethod
    def from_config(cls, config: SplitpayConfig) -> TradeConfirmationExtractor:
        """Build a client from ``GOOGLE_API_KEY``.

        Raises:
            ValueError: If ``GOOGLE_API_KEY`` is not set
        """
        client = genai.Client(api_key=require_google_api_key())
        return cls(client, model=config.extraction_model)

    def extract(
        self, image: bytes, mime_type: str, prompt: str = DEFAULT_PROMPT
    ) -> list[ExtractedRecord]:
        """Send one image and return the records found in it.

        Raises:
            ExtractionError: On API failure, an empty response or unparsable JSON
        """
        self._logger.request_sent(self._model, mime_type, len(image))
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=[
                    genai_types.Part.from_bytes(data=image, mime_type=mime_type),
                    prompt,
                ],
                config=genai_types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=response_schema(),
                ),
            )
        except genai_errors.APIError as exc:
            raise ExtractionError(f"Failed to extract data from image: {exc}") from exc

        text = response.text
        if not text:
            self._logger.empty_response(self._model)
            raise ExtractionError("Failed to get a valid response from AI service.")

        try:
            records = parse_extraction_response(text)
        except ExtractionError as exc:
            self._logger.parse_failed(self._model, exc)
            raise
        self._logger.records_extracted(self._model, len(records))
        return records
