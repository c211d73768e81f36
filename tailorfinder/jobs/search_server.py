"""HTTP entrypoint exposing the directory search (Cloud Run friendly)."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from tailorfinder.core.config import ConfigError, get_settings
from tailorfinder.core.screen import DirectoryScreen
from tailorfinder.engine.derive import NOT_PROVIDED_MESSAGE
from tailorfinder.engine.distance import format_distance
from tailorfinder.models import DirectoryResult, LocationSnapshot
from tailorfinder.sources.location import FixedLocationProvider

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

_TRUTHY = {"1", "true", "yes"}


def to_payload(result: DirectoryResult) -> Dict[str, Any]:
    items = []
    for row in result.rows:
        record = row.record
        items.append(
            {
                "id": record.id,
                "name": record.name,
                "description": record.description,
                "phone": record.phone,
                "email": record.email,
                "address_line1": record.address_line1,
                "address_line2": record.address_line2,
                "city": record.city,
                "postcode": record.postcode,
                "country": record.country,
                "has_location": record.has_location,
                "latitude": record.latitude,
                "longitude": record.longitude,
                "distance_km": row.distance_km,
                "distance_label": format_distance(row.distance_km),
            }
        )
    return {
        "status": result.status.value,
        "message": result.message,
        "location_notice": result.location_notice,
        "count": len(items),
        "items": items,
    }


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    return jsonify({"status": "ok", "revision": os.getenv("K_REVISION", "unknown")}), 200


@app.get("/filters")
def list_filters() -> Any:
    settings = get_settings()
    return jsonify(
        {"data": [{"id": f.id, "label": f.label, "radius_km": f.radius_km} for f in settings.spatial_filters]}
    ), 200


@app.get("/search")
def search() -> Any:
    """
    Run one screen activation.
    Optional query args: q, filter, lat + lon (both or neither), deny_location
    """
    args = request.args
    lat_raw = args.get("lat")
    lon_raw = args.get("lon")
    if (lat_raw is None) != (lon_raw is None):
        return jsonify({"error": "lat and lon must be provided together"}), 400

    snapshot: Optional[LocationSnapshot] = None
    if lat_raw is not None:
        try:
            lat = float(lat_raw)
            lon = float(lon_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "lat and lon must be numeric"}), 400
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            return jsonify({"error": "lat/lon out of bounds"}), 400
        snapshot = LocationSnapshot(latitude=lat, longitude=lon)

    deny_location = str(args.get("deny_location", "")).lower() in _TRUTHY
    settings = get_settings()
    screen = DirectoryScreen.from_settings(
        settings,
        FixedLocationProvider(snapshot, granted=snapshot is not None and not deny_location),
        location_denied_message=NOT_PROVIDED_MESSAGE if snapshot is None and not deny_location else None,
    )
    screen.set_query(args.get("q", ""))

    filter_id = args.get("filter")
    if filter_id:
        try:
            screen.select_filter(filter_id)
        except KeyError:
            return jsonify({"error": f"unknown filter: {filter_id}"}), 400

    result = asyncio.run(screen.activate())
    return jsonify({"data": to_payload(result)}), 200


@app.errorhandler(ConfigError)
def handle_config_error(exc: ConfigError) -> Any:
    logger.error("Configuration error: %s", exc)
    return jsonify({"error": "server misconfigured"}), 500


def main() -> None:
    port = get_settings().server_port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
