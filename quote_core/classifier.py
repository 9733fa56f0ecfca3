from __future__ import annotations

import re
from typing import Any, Mapping

from quote_core.extraction import ExtractedShipment
from quote_core.models import ServiceType


DRAYAGE_KEYWORDS_RE = re.compile(
    r"drayage|pier\s?pass|\blfd\b|last[-\s]free[-\s]day|pre-?pull|terminal|container\s?truck|chassis",
    re.IGNORECASE,
)


def determine_service_type(
    extracted: ExtractedShipment | Mapping[str, Any] | None,
    raw_text: str | None = None,
) -> ServiceType:
    """
    Decide which offering a request is for. Rules are checked in order:
    explicit service type, drayage facts in the extraction, drayage
    keywords in the email text, then transloading.
    """
    shipment = extracted if isinstance(extracted, ExtractedShipment) else ExtractedShipment(extracted)

    explicit = (shipment.service_type or "").casefold()
    if "drayage" in explicit:
        return "drayage"
    if "transload" in explicit:
        return "transloading"

    if (
        shipment.has_drayage_details
        or shipment.container_weight_lbs is not None
        or shipment.miles is not None
    ):
        return "drayage"

    if raw_text and DRAYAGE_KEYWORDS_RE.search(raw_text):
        return "drayage"

    return "transloading"
