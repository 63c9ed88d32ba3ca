"""Unit tests for ModelParameters and the model catalog."""

import pytest
from pydantic import ValidationError

from scene_stream.types import AVAILABLE_MODELS, ModelParameters


class TestModelParametersDefaults:
    def test_defaults(self):
        params = ModelParameters()

        assert params.model == "gpt-4"
        assert params.temperature == 0.8
        assert params.max_tokens == 1000
        assert params.presence_penalty == 0.6
        assert params.frequency_penalty == 0.3


class TestModelParametersValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"temperature": -0.1},
            {"temperature": 2.5},
            {"max_tokens": 0},
            {"presence_penalty": 3.0},
            {"frequency_penalty": -2.5},
        ],
    )
    def test_out_of_range_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            ModelParameters(**kwargs)

    def test_frozen(self):
        params = ModelParameters()
        with pytest.raises(ValidationError):
            params.temperature = 0.1


class TestCatalog:
    def test_known_models(self):
        assert set(AVAILABLE_MODELS) == {
            "gpt-4-turbo-preview",
            "gpt-4",
            "gpt-3.5-turbo",
        }

    def test_for_model_copies_preset(self):
        params = ModelParameters.for_model("gpt-3.5-turbo")

        assert params.model == "gpt-3.5-turbo"
        assert params.temperature == 0.7
        assert params.max_tokens == 4096
        assert params.presence_penalty == 0.4
        assert params.frequency_penalty == 0.2

    def test_for_model_unknown(self):
        with pytest.raises(KeyError):
            ModelParameters.for_model("not-a-model")
