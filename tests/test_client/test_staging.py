"""Tests for the staging store and dimensions form."""
import dataclasses

import pytest

from shared.enums import PhotoType
from shared.schemas import PaintingDimensions
from shared.validation import ValidationError
from src.survey_client.staging import StagingStore, StagedPhoto, DimensionsForm

PAINTING = "17.11 - PINTURA ACRILICA (COLORIDA)"


def filled_store():
    store = StagingStore()
    store.set_image(b'jpeg-1')
    store.set_classification('servicos_itens')
    store.set_service_item(PAINTING)
    store.set_dimensions(PaintingDimensions(width="2", height="3"))
    store.set_observation("Parede descascando")
    return store


class TestStagingStore:

    def test_new_store_is_empty(self):
        assert StagingStore().is_empty

    def test_clear_empties_every_slot(self):
        store = filled_store()
        store.clear()
        assert store.is_empty
        assert all(value is None for value in store.snapshot().values())

    def test_no_data_leaks_into_next_photo(self):
        store = filled_store()
        store.clear()
        store.set_image(b'jpeg-2')
        store.set_classification(PhotoType.VISTA_AMPLA)

        staged = store.confirm()

        assert staged.service_item is None
        assert staged.dimensions is None
        assert staged.observation is None
        assert staged.image_bytes == b'jpeg-2'

    def test_setters_overwrite(self):
        store = filled_store()
        first_uid = store.client_uid
        store.set_image(b'jpeg-retake')
        store.set_observation('   ')

        assert store.image == b'jpeg-retake'
        assert store.client_uid != first_uid
        assert store.observation is None

    def test_confirm_returns_frozen_bundle(self):
        store = filled_store()
        staged = store.confirm()

        assert isinstance(staged, StagedPhoto)
        assert staged.photo_type is PhotoType.SERVICOS_ITENS
        assert staged.dimensions.area == "6,00"
        assert staged.size_bytes == len(b'jpeg-1')
        assert len(staged.hash_value) == 64
        assert staged.client_uid == store.client_uid
        with pytest.raises(dataclasses.FrozenInstanceError):
            staged.observation = "changed"

    def test_confirm_is_repeatable_with_same_identity(self):
        store = filled_store()
        assert store.confirm().client_uid == store.confirm().client_uid

    @pytest.mark.parametrize('mutate', [
        lambda s: s.discard_image(),
        lambda s: setattr(s, 'photo_type', None),
        lambda s: s.set_dimensions(None),
        lambda s: s.set_service_item(None),
        lambda s: s.set_classification('detalhes'),
        lambda s: s.set_service_item("19.37 - SUBSTITUIÇÃO DE LÂMPADAS"),
    ])
    def test_confirm_rejects_incomplete_or_inconsistent(self, mutate):
        store = filled_store()
        mutate(store)
        with pytest.raises(ValidationError):
            store.confirm()

    def test_empty_image_rejected(self):
        with pytest.raises(ValidationError):
            StagingStore().set_image(b'')


class TestDimensionsForm:

    def test_comma_decimal_area(self):
        form = DimensionsForm("3,5", "2,8")
        assert form.calculate() == "9,80"

    @pytest.mark.parametrize('width,height', [("", ""), ("abc", "2"), ("2", None)])
    def test_invalid_input_does_not_crash(self, width, height):
        form = DimensionsForm(width, height)
        assert form.calculate() is None
        assert form.display_area == "0"

    def test_confirm(self):
        dims = DimensionsForm("2", "3").confirm()
        assert dims.model_dump() == {'width': '2', 'height': '3', 'area': '6,00'}

    @pytest.mark.parametrize('width,height', [("", "3"), ("0", "3"), ("-2", "3"), ("x", "y")])
    def test_confirm_rejects(self, width, height):
        with pytest.raises(ValidationError):
            DimensionsForm(width, height).confirm()
