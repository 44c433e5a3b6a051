"""
Step Catalog and Store Tests

Validates the shipped step catalog, template resolution and employee
records on every test run.
"""

import base64

import pytest

from services.onboarding import (
    ConfigurationError,
    EmployeeStore,
    StepCatalog,
    TemplateNotFound,
    TemplateRequestError,
    TemplateStore,
)
from tests.conftest import PROJECT_ROOT

LIVE_STEPS = {
    'confidentiality-agreement': 'Confidentiality_Agreement_Acknowledgment.docx',
    'handbook-ack': 'Employee_Handbook_Acknowledgment.docx',
    'it-security-policy': 'IT_Security_Policy_Acknowledgment.docx',
}


@pytest.fixture
def catalog():
    return StepCatalog.load(PROJECT_ROOT / 'onboarding_steps.yml')


@pytest.fixture
def templates(catalog):
    return TemplateStore(PROJECT_ROOT / 'document_templates', catalog)


class TestShippedCatalog:
    """The catalog in the repository must always load."""

    def test_ten_steps_in_order(self, catalog):
        steps = catalog.all()
        assert [s.id for s in steps] == list(range(1, 11))
        assert len({s.key for s in steps}) == 10

    def test_live_steps(self, catalog):
        assert {s.key: s.template for s in catalog.live_steps()} == LIVE_STEPS

    def test_non_live_steps_are_completed(self, catalog):
        for step in catalog.all():
            if not step.is_live:
                assert step.completed
                assert step.template is None

    def test_every_mapped_template_exists(self, catalog):
        for step in catalog.live_steps():
            assert (PROJECT_ROOT / 'document_templates' / step.template).is_file()

    def test_to_dict_hides_template(self, catalog):
        assert 'template' not in catalog.get('handbook-ack').to_dict()


class TestCatalogValidation:

    def write(self, tmp_path, text):
        path = tmp_path / 'steps.yml'
        path.write_text(text)
        return path

    def test_duplicate_keys(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: 1, key: a, title: A}
  - {id: 2, key: a, title: B}
""")
        with pytest.raises(ConfigurationError, match='duplicate'):
            StepCatalog.load(path)

    def test_live_step_without_template(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: 1, key: a, title: A, demo: true}
""")
        with pytest.raises(ConfigurationError, match="steps/0: 'template' is a required property"):
            StepCatalog.load(path)

    def test_completed_step_needs_no_template(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: 1, key: a, title: A, demo: false, completed: true}
""")
        assert StepCatalog.load(path).get('a').template is None

    def test_missing_field(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: 1, title: A}
""")
        with pytest.raises(ConfigurationError, match="'key' is a required property"):
            StepCatalog.load(path)

    def test_wrong_types(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: one, key: a, title: A, demo: 'yes'}
""")
        with pytest.raises(ConfigurationError) as excinfo:
            StepCatalog.load(path)
        assert 'steps/0/id' in str(excinfo.value)
        assert 'steps/0/demo' in str(excinfo.value)

    def test_unknown_field(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: 1, key: a, title: A, owner: hr}
""")
        with pytest.raises(ConfigurationError, match='owner'):
            StepCatalog.load(path)

    def test_all_errors_reported_together(self, tmp_path):
        path = self.write(tmp_path, """
steps:
  - {id: 1, key: a, title: A, demo: true}
  - {id: 2, key: a, title: B}
  - {id: 3, title: C}
""")
        with pytest.raises(ConfigurationError) as excinfo:
            StepCatalog.load(path)
        message = str(excinfo.value)
        assert "'template' is a required property" in message
        assert "'key' is a required property" in message
        assert 'duplicate step keys' in message

    def test_no_steps_list(self, tmp_path):
        with pytest.raises(ConfigurationError, match="'steps' is a required property"):
            StepCatalog.load(self.write(tmp_path, 'title: nothing'))

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            StepCatalog.load(self.write(tmp_path, ''))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            StepCatalog.load(tmp_path / 'missing.yml')


class TestTemplateResolution:
    """Inline base64, then explicit name, then step mapping."""

    def test_step_mapping(self, templates):
        template = templates.resolve(step_key='handbook-ack')
        expected = (PROJECT_ROOT / 'document_templates' / 'Employee_Handbook_Acknowledgment.docx').read_bytes()
        assert template.filename == 'Employee_Handbook_Acknowledgment.docx'
        assert template.content == expected

    def test_explicit_name_beats_mapping(self, templates):
        template = templates.resolve(step_key='handbook-ack',
                                     template_name='IT_Security_Policy_Acknowledgment.docx')
        assert template.filename == 'IT_Security_Policy_Acknowledgment.docx'

    def test_inline_base64_beats_everything(self, templates):
        encoded = base64.b64encode(b'inline-docx').decode('ascii')
        template = templates.resolve(step_key='handbook-ack', base64_file=encoded)
        assert template.content == b'inline-docx'
        assert template.filename == 'template.docx'

    def test_unmapped_step_is_a_request_error(self, templates):
        with pytest.raises(TemplateRequestError) as excinfo:
            templates.resolve(step_key='personal-info')
        assert excinfo.value.http_status == 400

    def test_nothing_given(self, templates):
        with pytest.raises(TemplateRequestError):
            templates.resolve()

    def test_invalid_base64(self, templates):
        with pytest.raises(TemplateRequestError):
            templates.resolve(base64_file='abc')

    def test_missing_named_template(self, templates):
        with pytest.raises(TemplateNotFound):
            templates.resolve(template_name='Nope.docx')

    def test_path_traversal_rejected(self, templates):
        with pytest.raises(TemplateNotFound):
            templates.resolve(template_name='../onboarding_steps.yml')


class TestEmployeeStore:

    @pytest.fixture
    def employees(self):
        return EmployeeStore(PROJECT_ROOT / 'employee_data')

    def test_list(self, employees):
        assert employees.list() == [
            {'key': 'jane_doe', 'name': 'Jane Doe'},
            {'key': 'john_smith', 'name': 'John Smith'},
        ]

    def test_get(self, employees):
        employee = employees.get('jane_doe')
        assert employee.name == 'Jane Doe'
        assert employee.email == 'jane.doe@example.com'
        assert employee.document_values()['company.address.city'] == 'San Francisco'

    def test_unknown_or_unsafe_keys(self, employees):
        assert employees.get('nobody') is None
        assert employees.get('../config') is None
        assert employees.get(None) is None

    def test_missing_directory(self, tmp_path):
        assert EmployeeStore(tmp_path / 'missing').list() == []

    def test_unreadable_record(self, tmp_path):
        (tmp_path / 'broken.json').write_text('{not json')
        assert EmployeeStore(tmp_path).get('broken') is None
