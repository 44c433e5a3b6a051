"""
Tests for artifact extraction, redaction and response helpers.
"""

import pytest

from services.onboarding import ConfigurationError
from services.onboarding.responses import (
    MIN_ARTIFACT_LENGTH,
    FoxitResponseAdapter,
    TopLevelResponseAdapter,
    extract_artifact,
    extract_envelope_id,
    get_response_adapter,
    parse_json_body,
    payload_error_marker,
    redact_large_fields,
)

LONG = 'A' * 150
OTHER_LONG = 'B' * 150


class TestExtractArtifact:
    """Ordered extraction rules over top-level fields, then containers."""

    def test_short_value_is_ignored(self):
        assert extract_artifact({'pdfBase64': 'A' * 50}) is None

    def test_long_value_is_returned(self):
        assert extract_artifact({'pdfBase64': LONG}) == LONG

    def test_threshold_is_exclusive(self):
        assert extract_artifact({'pdf': 'A' * MIN_ARTIFACT_LENGTH}) is None
        assert extract_artifact({'pdf': 'A' * (MIN_ARTIFACT_LENGTH + 1)}) is not None

    def test_first_field_in_rule_order_wins(self):
        payload = {'pdfBase64': OTHER_LONG, 'base64FileString': LONG}
        assert extract_artifact(payload) == LONG

    def test_top_level_beats_container(self):
        payload = {'result': {'base64FileString': OTHER_LONG}, 'OutputFile': LONG}
        assert extract_artifact(payload) == LONG

    def test_container_fields(self):
        assert extract_artifact({'result': {'fileBase64': LONG}}) == LONG
        assert extract_artifact({'Result': {'FileContent': LONG}}) == LONG
        assert extract_artifact({'data': {'pdf': LONG}}) == LONG

    def test_container_order(self):
        payload = {'data': {'pdf': OTHER_LONG}, 'output': {'pdf': LONG}}
        assert extract_artifact(payload) == LONG

    def test_non_string_values_are_skipped(self):
        assert extract_artifact({'document': {'id': 1}, 'file': ['x' * 200]}) is None

    def test_non_dict_payload(self):
        assert extract_artifact(None) is None
        assert extract_artifact(['x' * 200]) is None


class TestResponseAdapters:

    def test_top_level_adapter_ignores_containers(self):
        adapter = TopLevelResponseAdapter()
        assert adapter.extract_artifact({'result': {'pdf': LONG}}) is None
        assert adapter.extract_artifact({'pdf': LONG}) == LONG

    def test_lookup_by_name(self):
        assert isinstance(get_response_adapter('foxit'), FoxitResponseAdapter)
        assert isinstance(get_response_adapter(''), FoxitResponseAdapter)
        assert isinstance(get_response_adapter('top-level'), TopLevelResponseAdapter)

    def test_unknown_adapter_raises(self):
        with pytest.raises(ConfigurationError):
            get_response_adapter('nope')


class TestRedactLargeFields:

    def test_long_string_replaced_with_exact_length(self):
        assert redact_large_fields({'message': 'x' * 201}) == {'message': '[string length: 201]'}

    def test_short_strings_and_non_strings_untouched(self):
        value = {'message': 'x' * 200, 'count': 5, 'ok': True, 'none': None}
        assert redact_large_fields(value) == value

    def test_recurses_into_lists_and_dicts(self):
        value = {'items': ['short', 'y' * 250, {'nested': 'z' * 300}]}
        assert redact_large_fields(value) == {
            'items': ['short', '[string length: 250]', {'nested': '[string length: 300]'}]
        }

    def test_large_payload_keys_always_redacted(self):
        assert redact_large_fields({'base64FileString': 'abc'}) == {'base64FileString': '[base64 length: 3]'}

    def test_top_level_string(self):
        assert redact_large_fields('q' * 201) == '[string length: 201]'

    def test_does_not_mutate_input(self):
        value = {'message': 'x' * 300}
        redact_large_fields(value)
        assert value['message'] == 'x' * 300


class TestResponseHelpers:

    def test_parse_json_body(self):
        assert parse_json_body('{"a": 1}') == {'a': 1}
        assert parse_json_body('not json') == {'raw': 'not json'}

    def test_extract_envelope_id(self):
        assert extract_envelope_id({'envelopeId': 'E1'}) == 'E1'
        assert extract_envelope_id({'folderId': 'F1'}) == 'F1'
        assert extract_envelope_id({'result': {'id': 'R1'}}) == 'R1'
        assert extract_envelope_id({'other': 1}) is None

    def test_payload_error_marker(self):
        assert payload_error_marker({'error': 'bad'}) == 'error: bad'
        assert payload_error_marker({'success': False}) == 'success: false'
        assert payload_error_marker({'folderId': 'F1', 'error': None}) is None
