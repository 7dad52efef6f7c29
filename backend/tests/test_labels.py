# Overview: Pytest coverage for barcode numbers and label sheets.

from datetime import date

import pytest

from boutique.services import label_service
from boutique.services.label_service import LabelOptions, build_labels, generate_barcode_number
from boutique.validation import ValidationError


class TestBarcodeNumbers:
    def test_prefix_and_sequence_are_padded(self):
        assert generate_barcode_number("8901234", 1) == "890123400001"
        assert generate_barcode_number("12345", 42) == "123450004200"

    def test_default_prefix(self):
        assert generate_barcode_number(None, 7) == "890123400007"

    def test_svg_is_deterministic(self):
        first = label_service.barcode_svg("890123400001")
        assert first == label_service.barcode_svg("890123400001")
        assert first != label_service.barcode_svg("890123400002")
        assert first.startswith("<svg")


class TestBuildLabels:
    def test_stored_barcode_wins(self, stock_doc):
        labels = build_labels([stock_doc], [{"stock_id": 1, "color": "red", "size": "M", "copies": 2}])
        assert len(labels) == 2
        assert {label.barcode for label in labels} == {"885000000011"}
        assert labels[0].color == "Red"

    def test_generated_barcode_uses_sequence(self, stock_doc):
        labels = build_labels(
            [stock_doc],
            [
                {"stock_id": 1, "color": "Red", "size": "L"},
                {"stock_id": 1, "color": "Blue", "size": "M"},
            ],
            gs1_prefix="8901234",
            auto_sequence=10,
        )
        assert [label.barcode for label in labels] == ["885000000011", "890123400011"]

    @pytest.mark.parametrize("selections,message", [
        ([], "at least one variant"),
        ([{"stock_id": 9, "color": "Red"}], "not found"),
        ([{"stock_id": 1, "color": "Green"}], "not found"),
        ([{"stock_id": 1, "color": "Red", "copies": 0}], "copies"),
    ])
    def test_invalid_selections(self, stock_doc, selections, message):
        with pytest.raises(ValidationError, match=message):
            build_labels([stock_doc], selections)


class TestLabelOptions:
    def test_defaults(self):
        options = LabelOptions.from_payload(None)
        assert (options.width_mm, options.height_mm, options.gap_mm) == (50, 90, 10)

    def test_rejects_zero_width(self):
        with pytest.raises(ValidationError):
            LabelOptions.from_payload({"width_mm": 0})


class TestRenderSheet:
    def test_sheet_contains_labels(self, app, stock_doc):
        labels = build_labels([stock_doc], [{"stock_id": 1, "color": "Red", "size": "M"}])
        options = LabelOptions.from_payload({"width_mm": 40, "show_date": False})

        with app.app_context():
            html = label_service.render_label_sheet(labels, options, printed_on=date(2026, 10, 19))

        assert "Linen Shirt" in html
        assert "Red - M" in html
        assert "885000000011" in html
        assert "width: 40mm" in html
        assert "2026-10-19" not in html
