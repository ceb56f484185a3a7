"""Unit tests for BMKG record normalization.

Pure function tests - no mocks needed.
"""

import pytest

from src.core.errors import MalformedRecordError, UpstreamUnavailableError
from src.core.normalizer import (
    BMKG_BASE_URL,
    RecordShape,
    extract_records,
    format_coordinate,
    format_event_time,
    make_earthquake_id,
    normalize_batch,
    normalize_record,
    parse_event_time,
    parse_number,
)


@pytest.fixture
def autogempa_record():
    """A record as served by autogempa.json."""
    return {
        "Tanggal": "01 Jan 2024",
        "Jam": "07:00:00 WIB",
        "DateTime": "2024-01-01T00:00:00+00:00",
        "Coordinates": "-6.2,106.8",
        "Lintang": "6.20 LS",
        "Bujur": "106.80 BT",
        "Magnitude": "5.5",
        "Kedalaman": "10 km",
        "Wilayah": "Pusat gempa berada di darat 5 km Tenggara Jakarta",
        "Potensi": "Tidak berpotensi tsunami",
        "Dirasakan": "III Jakarta",
        "Shakemap": "20240101070000.mmi.jpg",
    }


@pytest.fixture
def gempaterkini_record():
    """A record as served by gempaterkini.json."""
    return {
        "Tanggal": "02 Jan 2024",
        "Jam": "10:15:30 WIB",
        "DateTime": "2024-01-02T03:15:30+00:00",
        "Coordinates": "-8.65,115.22",
        "Lintang": "8.65 LS",
        "Bujur": "115.22 BT",
        "Magnitude": "5.1",
        "Kedalaman": "35 km",
        "Wilayah": "45 km BaratDaya DENPASAR-BALI",
        "Potensi": "Tidak berpotensi tsunami",
    }


@pytest.fixture
def gempadirasakan_record():
    """A record as served by gempadirasakan.json."""
    return {
        "Tanggal": "03 Jan 2024",
        "Jam": "22:01:12 WIB",
        "DateTime": "2024-01-03T15:01:12+00:00",
        "Coordinates": "3.59,98.67",
        "Lintang": "3.59 LU",
        "Bujur": "98.67 BT",
        "Magnitude": "3,4",
        "Kedalaman": "12 km",
        "Wilayah": "Pusat gempa berada di darat 10 km BaratLaut Medan",
        "Dirasakan": "II Medan",
    }


class TestNormalizeRecord:
    """Tests for normalize_record()."""

    def test_basic_scenario(self):
        """A minimal record normalizes to the expected canonical values."""
        record = {
            "Magnitude": "5.5",
            "Kedalaman": "10 km",
            "Coordinates": "-6.2,106.8",
            "DateTime": "2024-01-01T00:00:00",
            "Wilayah": "Jakarta",
        }

        eq = normalize_record(record, RecordShape.RECENT)

        assert eq.magnitude == 5.5
        assert eq.depth_km == 10.0
        assert eq.latitude == -6.2
        assert eq.longitude == 106.8
        assert eq.occurred_at == 1704067200000
        assert eq.id == "2024-01-01T00_00_00_-6.2_106.8"
        assert eq.recorded_at is None
        assert eq.distance_km is None

    def test_latest_shape_keeps_all_metadata(self, autogempa_record):
        eq = normalize_record(autogempa_record, RecordShape.LATEST)

        assert eq.region == "Pusat gempa berada di darat 5 km Tenggara Jakarta"
        assert eq.tsunami_potential == "Tidak berpotensi tsunami"
        assert eq.felt_report == "III Jakarta"
        assert eq.shakemap_url == f"{BMKG_BASE_URL}/20240101070000.mmi.jpg"

    def test_recent_shape_has_potential_only(self, gempaterkini_record):
        eq = normalize_record(gempaterkini_record, RecordShape.RECENT)

        assert eq.tsunami_potential == "Tidak berpotensi tsunami"
        assert eq.felt_report is None
        assert eq.shakemap_url is None
        assert eq.magnitude == 5.1
        assert eq.depth_km == 35.0

    def test_felt_shape_parses_decimal_comma(self, gempadirasakan_record):
        eq = normalize_record(gempadirasakan_record, RecordShape.FELT)

        assert eq.magnitude == 3.4
        assert eq.felt_report == "II Medan"
        assert eq.tsunami_potential is None
        assert eq.latitude == 3.59

    def test_shakemap_uses_given_base_url(self, autogempa_record):
        eq = normalize_record(
            autogempa_record,
            RecordShape.LATEST,
            shakemap_base_url="https://mirror.example.com/",
        )
        assert eq.shakemap_url == "https://mirror.example.com/20240101070000.mmi.jpg"

    def test_falls_back_to_lintang_bujur(self, gempaterkini_record):
        del gempaterkini_record["Coordinates"]

        eq = normalize_record(gempaterkini_record, RecordShape.RECENT)

        assert eq.latitude == -8.65
        assert eq.longitude == 115.22

    def test_northern_latitude_from_lintang(self, gempadirasakan_record):
        del gempadirasakan_record["Coordinates"]

        eq = normalize_record(gempadirasakan_record, RecordShape.FELT)

        assert eq.latitude == 3.59

    def test_western_longitude_is_negative(self, gempaterkini_record):
        del gempaterkini_record["Coordinates"]
        gempaterkini_record["Bujur"] = "10.5 BB"

        eq = normalize_record(gempaterkini_record, RecordShape.RECENT)

        assert eq.longitude == -10.5

    def test_blank_region_gets_placeholder(self, gempaterkini_record):
        gempaterkini_record["Wilayah"] = "   "
        eq = normalize_record(gempaterkini_record, RecordShape.RECENT)
        assert eq.region == "Unknown region"

    def test_same_event_from_two_feeds_shares_id(
        self, autogempa_record, gempaterkini_record
    ):
        gempaterkini_record.update({
            "DateTime": autogempa_record["DateTime"],
            "Coordinates": autogempa_record["Coordinates"],
        })

        latest = normalize_record(autogempa_record, RecordShape.LATEST)
        recent = normalize_record(gempaterkini_record, RecordShape.RECENT)

        assert latest.id == recent.id

    def test_non_dict_record_rejected(self):
        with pytest.raises(MalformedRecordError):
            normalize_record(["not", "a", "dict"], RecordShape.RECENT)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("Magnitude", "lima"),
            ("Magnitude", "11.0"),
            ("Magnitude", "-1"),
            ("Magnitude", None),
            ("Kedalaman", "10 mil"),
            ("Kedalaman", "900 km"),
            ("Kedalaman", "-5 km"),
            ("Coordinates", "-6.2"),
            ("Coordinates", "-6.2,106.8,3"),
            ("Coordinates", "-95.0,106.8"),
            ("Coordinates", "-6.2,190.0"),
            ("DateTime", "kemarin"),
            ("DateTime", None),
        ],
    )
    def test_malformed_fields_rejected(self, gempaterkini_record, field, value):
        gempaterkini_record[field] = value

        with pytest.raises(MalformedRecordError):
            normalize_record(gempaterkini_record, RecordShape.RECENT)

    def test_missing_coordinates_rejected(self, gempaterkini_record):
        for key in ("Coordinates", "Lintang", "Bujur"):
            del gempaterkini_record[key]

        with pytest.raises(MalformedRecordError, match="Coordinates are missing"):
            normalize_record(gempaterkini_record, RecordShape.RECENT)

    def test_missing_datetime_rejected_even_with_tanggal_and_jam(
        self, gempaterkini_record
    ):
        del gempaterkini_record["DateTime"]

        with pytest.raises(MalformedRecordError, match="DateTime"):
            normalize_record(gempaterkini_record, RecordShape.RECENT)


class TestNormalizeBatch:
    """Tests for normalize_batch()."""

    def test_isolates_failures(self, gempaterkini_record):
        bad = dict(gempaterkini_record, Magnitude="n/a")
        other = dict(gempaterkini_record, DateTime="2024-01-05T00:00:00+00:00")

        result = normalize_batch([gempaterkini_record, bad, other], RecordShape.RECENT)

        assert len(result.earthquakes) == 2
        assert [index for index, _ in result.failures] == [1]
        assert "Magnitude" in result.failures[0][1]

    def test_empty_batch(self):
        result = normalize_batch([], RecordShape.FELT)
        assert result.earthquakes == []
        assert result.failures == []

    def test_preserves_input_order(self, gempaterkini_record):
        records = [
            dict(gempaterkini_record, DateTime=f"2024-01-0{day}T00:00:00+00:00")
            for day in (3, 1, 2)
        ]

        result = normalize_batch(records, RecordShape.RECENT)

        assert [e.id[:10] for e in result.earthquakes] == [
            "2024-01-03", "2024-01-01", "2024-01-02"
        ]


class TestExtractRecords:
    """Tests for extract_records()."""

    def test_single_object(self, autogempa_record):
        payload = {"Infogempa": {"gempa": autogempa_record}}
        assert extract_records(payload, RecordShape.LATEST) == [autogempa_record]

    def test_array(self, gempaterkini_record):
        payload = {"Infogempa": {"gempa": [gempaterkini_record, gempaterkini_record]}}
        assert len(extract_records(payload, RecordShape.RECENT)) == 2

    def test_null_gempa_is_empty(self):
        assert extract_records({"Infogempa": {"gempa": None}}, RecordShape.FELT) == []

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            "oops",
            {},
            {"Infogempa": None},
            {"Infogempa": {}},
            {"Infogempa": {"gempa": "text"}},
        ],
    )
    def test_malformed_envelope(self, payload):
        with pytest.raises(UpstreamUnavailableError):
            extract_records(payload, RecordShape.RECENT)


class TestParsing:
    """Tests for the parsing helpers."""

    @pytest.mark.parametrize(
        "value, unit, expected",
        [
            ("5.5", None, 5.5),
            ("5,5", None, 5.5),
            (" 4.9 ", None, 4.9),
            ("10 km", "km", 10.0),
            ("10km", "km", 10.0),
            ("10 KM", "km", 10.0),
            ("10", "km", 10.0),
            (6, None, 6.0),
            (6.25, None, 6.25),
        ],
    )
    def test_parse_number(self, value, unit, expected):
        assert parse_number(value, "field", unit=unit) == expected

    @pytest.mark.parametrize("value", ["", "abc", "1.2.3", "10 km", True, float("nan")])
    def test_parse_number_rejects(self, value):
        with pytest.raises(MalformedRecordError):
            parse_number(value, "field")

    def test_naive_datetime_is_utc(self):
        assert parse_event_time("2024-01-01T00:00:00") == 1704067200000

    def test_offset_datetime(self):
        assert parse_event_time("2024-01-01T07:00:00+07:00") == 1704067200000

    def test_z_suffix_is_utc(self):
        assert parse_event_time("2024-01-01T00:00:00Z") == 1704067200000

    @pytest.mark.parametrize(
        "value, expected",
        [(-6.2, "-6.2"), (106.8, "106.8"), (106.0, "106"), (0.0, "0"), (-0.25, "-0.25")],
    )
    def test_format_coordinate(self, value, expected):
        assert format_coordinate(value) == expected

    def test_format_event_time(self):
        assert format_event_time(1704067200000) == "2024-01-01T00:00:00"
        assert format_event_time(1704067200250) == "2024-01-01T00:00:00.250"

    def test_id_replaces_colons(self):
        assert make_earthquake_id(1704092400000, -6.2, 106.0) == "2024-01-01T07_00_00_-6.2_106"

    def test_id_is_deterministic(self):
        a = make_earthquake_id(1704067200000, -6.2, 106.8)
        b = make_earthquake_id(1704067200000, -6.2, 106.8)
        assert a == b


class TestIdAcrossTimeSpellings:
    """One instant written with different UTC offsets is one event."""

    @pytest.mark.parametrize(
        "date_time",
        [
            "2024-01-01T00:00:00",
            "2024-01-01T00:00:00+00:00",
            "2024-01-01T07:00:00+07:00",
            "2024-01-01T00:00:00Z",
        ],
    )
    def test_same_id(self, gempaterkini_record, date_time):
        record = dict(gempaterkini_record, DateTime=date_time, Coordinates="-6.2,106.8")

        eq = normalize_record(record, RecordShape.RECENT)

        assert eq.id == "2024-01-01T00_00_00_-6.2_106.8"
