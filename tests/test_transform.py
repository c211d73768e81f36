from decimal import Decimal

from tailorfinder.etl import transform


def test_to_provider_record_maps_fields():
    row = {
        "id": 7,
        "name": "  Ace Tailors ",
        "description": "Bespoke suits",
        "phone": " ",
        "email": None,
        "addressLine1": "1 Savile Row",
        "address_line2": "",
        "city": "London",
        "postcode": "W1S 3PR",
        "country": "UK",
        "hasLocation": True,
        "latitude": "51.5101",
        "longitude": Decimal("-0.1410"),
    }

    record = transform.to_provider_record(row)

    assert record.id == "7"
    assert record.name == "Ace Tailors"
    assert record.description == "Bespoke suits"
    assert record.phone is None
    assert record.email is None
    assert record.address_line1 == "1 Savile Row"
    assert record.address_line2 is None
    assert record.has_location is True
    assert record.latitude == 51.5101
    assert record.longitude == -0.141


def test_half_or_invalid_coordinates_are_dropped():
    assert transform.parse_coordinates("51.5", None) == (None, None)
    assert transform.parse_coordinates("north", "-0.1") == (None, None)
    assert transform.parse_coordinates(91, 0) == (None, None)
    assert transform.parse_coordinates(0, -181) == (None, None)
    assert transform.parse_coordinates(float("nan"), 0) == (None, None)
    assert transform.parse_coordinates(True, 0) == (None, None)
    assert transform.parse_coordinates(-90, 180) == (-90.0, 180.0)


def test_has_location_true_with_null_coordinates_is_kept():
    record = transform.to_provider_record({"id": "2", "name": "Bee Stitch", "has_location": "true"})
    assert record.has_location is True
    assert record.coordinates is None


def test_safe_bool():
    assert transform._safe_bool("YES") is True
    assert transform._safe_bool(1) is True
    assert transform._safe_bool("0") is False
    assert transform._safe_bool(None) is False


def test_rows_without_id_or_name_are_skipped(caplog):
    rows = [
        {"id": "1", "name": "Ace Tailors"},
        {"id": None, "name": "Ghost"},
        {"id": "3", "name": "   "},
        "not a row",
    ]

    with caplog.at_level("WARNING"):
        records = transform.to_provider_records(rows)

    assert [r.id for r in records] == ["1"]
    assert "without id or name" in " ".join(caplog.messages)


def test_duplicate_ids_keep_first():
    records = transform.to_provider_records(
        [{"id": "1", "name": "First"}, {"id": "1", "name": "Second"}, {"id": "2", "name": "Other"}]
    )
    assert [(r.id, r.name) for r in records] == [("1", "First"), ("2", "Other")]


def test_to_provider_records_handles_none():
    assert transform.to_provider_records(None) == []
