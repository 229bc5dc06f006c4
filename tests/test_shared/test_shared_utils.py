"""Tests for shared helpers: areas, object names, images."""
import io

import pytest
from PIL import Image

from shared.enums import PhotoType
from shared.service_items import DEFAULT_SERVICE_ITEMS, search_service_items, is_painting_item
from shared.utils import (
    parse_decimal, calculate_area, format_area, slugify_item_label,
    build_object_name, parse_object_name, fit_within, decode_image,
    compute_photo_hash, CorruptedImageError
)


class TestAreas:

    def test_comma_decimal_example(self):
        assert calculate_area("3,5", "2,8") == 9.8
        assert format_area(calculate_area("3,5", "2,8")) == "9,80"

    @pytest.mark.parametrize('width,height,expected', [
        ("2", "3", 6.0),
        ("1.005", "1", 1.01),
        (2.5, 4, 10.0),
        ("0,333", "3", 1.0),
    ])
    def test_area_rounds_half_up(self, width, height, expected):
        assert calculate_area(width, height) == expected

    @pytest.mark.parametrize('width,height', [
        ("", "3"), ("abc", "2"), (None, "1"), ("2", "nan"), ("inf", "1"), ("1,2,3", "1"),
    ])
    def test_invalid_input_gives_no_area(self, width, height):
        assert calculate_area(width, height) is None
        assert format_area(calculate_area(width, height)) == "0"

    def test_large_sides_keep_their_product(self):
        assert calculate_area("1e20", "1e20") == 1e40

    def test_parse_decimal(self):
        assert parse_decimal(" 3,5 ") == 3.5
        assert parse_decimal("7") == 7.0
        assert parse_decimal(True) is None
        assert parse_decimal([1]) is None


class TestObjectNames:

    def test_wide_view_layout(self):
        assert build_object_name(12, 34, PhotoType.VISTA_AMPLA, 1700000000000) == \
            "12/34/vista_ampla/1700000000000.jpg"

    def test_service_item_layout_nests_slug(self):
        name = build_object_name(1, 2, "servicos_itens", 5, "19.37 - SUBSTITUIÇÃO DE LÂMPADAS")
        assert name == "1/2/servicos_itens/19_37___substituicao_de_lampadas/5.jpg"

    def test_slug_ignored_for_other_types(self):
        assert build_object_name(1, 2, "detalhes", 5, "17.8 - PINTURA DE PISO") == "1/2/detalhes/5.jpg"

    def test_slugify(self):
        assert slugify_item_label("17.8 - PINTURA DE PISO") == "17_8___pintura_de_piso"

    def test_parse_round_trip(self):
        parsed = parse_object_name("1/2/servicos_itens/17_8___pintura_de_piso/5.jpg")
        assert parsed == {
            'survey_id': 1,
            'environment_id': 2,
            'photo_type': PhotoType.SERVICOS_ITENS,
            'slug': '17_8___pintura_de_piso',
            'timestamp_ms': 5,
        }

    @pytest.mark.parametrize('name', [
        "", None, "1/2/vista_ampla/abc.jpg", "1/2/panorama/5.jpg", "../1/2/detalhes/5.jpg", "1/2/detalhes/5.png",
    ])
    def test_parse_rejects_foreign_names(self, name):
        assert parse_object_name(name) is None


class TestServiceItems:

    def test_search_is_case_insensitive(self):
        assert search_service_items("pintura") == list(DEFAULT_SERVICE_ITEMS[:2])
        assert search_service_items("LÂMP") == [DEFAULT_SERVICE_ITEMS[2]]
        assert search_service_items("  ") == list(DEFAULT_SERVICE_ITEMS)

    def test_painting_detection(self):
        assert is_painting_item("17.11 - PINTURA ACRILICA (COLORIDA)")
        assert not is_painting_item("19.37 - SUBSTITUIÇÃO DE LÂMPADAS")
        assert not is_painting_item(None)


class TestImages:

    def test_fit_within_preserves_aspect(self):
        assert fit_within(4000, 3000, 1920) == (1920, 1440)
        assert fit_within(800, 600, 1920) == (800, 600)
        assert fit_within(3000, 4000, 1000) == (750, 1000)

    def test_decode_image(self):
        buffer = io.BytesIO()
        Image.new('RGB', (10, 8)).save(buffer, format='JPEG')
        assert decode_image(buffer.getvalue()).size == (10, 8)

        with pytest.raises(CorruptedImageError):
            decode_image(b'definitely not a jpeg')

    def test_compute_photo_hash(self):
        assert len(compute_photo_hash(b'abc')) == 64
        with pytest.raises(TypeError):
            compute_photo_hash('abc')
