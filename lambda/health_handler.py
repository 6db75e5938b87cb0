"""Lambda handler for deployment health — triggered by API Gateway (GET).

Counts stored passages and reports which credentials are configured.
Returns 200 when every check passes, 500 otherwise.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from enghien.config import load_settings
from enghien.health import check_health

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv("LOG_LEVEL", "INFO"))


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    report = check_health(load_settings())
    if not report.healthy:
        logger.warning("Unhealthy: %s", report.to_dict()["checks"])

    return {
        "statusCode": 200 if report.healthy else 500,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(report.to_dict(), ensure_ascii=False),
    }
