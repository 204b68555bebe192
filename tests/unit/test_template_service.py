"""
Unit tests for TemplateRepository.

Run: pytest tests/unit/test_template_service.py -v
"""

import pytest

from exceptions import TemplateValidationError
from models.template import TemplateFieldPayload, TemplateUpdateRequest
from parsers.csv_parser import split_csv_lines, tokenize_csv_line
from parsers.sheet_parser import unzip_entries, extract_sheet_rows
from services.template_service import TemplateRepository, STANDARD_TEMPLATE_ID
from tests.factories import STANDARD_HEADER


def _payload(key: str, label: str = "", order: int = 0, **kwargs) -> TemplateFieldPayload:
    return TemplateFieldPayload(key=key, label=label or key, order=order, **kwargs)


class TestReadOperations:
    """Tests for get_templates() and get_template_by_id()"""

    def test_standard_template_is_available(self, template_repository):
        templates = template_repository.get_templates()
        assert [t.id for t in templates] == [STANDARD_TEMPLATE_ID]

    def test_standard_layout(self, template_repository):
        template = template_repository.get_template_by_id(STANDARD_TEMPLATE_ID)

        assert [f.label for f in template.ordered_fields()] == STANDARD_HEADER
        assert [f.order for f in template.ordered_fields()] == list(range(1, 11))
        assert template.required_labels() == ["Recipe Name", "Material Name", "Weight"]

    def test_unknown_id(self, template_repository):
        assert template_repository.get_template_by_id("nope") is None


class TestUpdateTemplate:
    """Tests for update_template()"""

    def test_keys_are_sanitized_and_fields_renumbered(self, template_repository):
        request = TemplateUpdateRequest(fields=[
            _payload("Material Weight (g)", "Weight", order=5),
            _payload("recipe-name", "Name", order=2),
        ])

        updated = template_repository.update_template(STANDARD_TEMPLATE_ID, request)

        assert [(f.key, f.label, f.order) for f in updated.fields] == [
            ("recipe_name", "Name", 1),
            ("material_weight_g", "Weight", 2),
        ]

    def test_duplicate_keys_get_suffixes(self, template_repository):
        request = TemplateUpdateRequest(fields=[
            _payload("notes"), _payload("Notes"), _payload("NOTES"),
        ])

        updated = template_repository.update_template(STANDARD_TEMPLATE_ID, request)

        assert [f.key for f in updated.fields] == ["notes", "notes_1", "notes_2"]

    def test_missing_order_uses_submission_position(self, template_repository):
        request = TemplateUpdateRequest(fields=[_payload("b"), _payload("a")])
        updated = template_repository.update_template(STANDARD_TEMPLATE_ID, request)
        assert [f.key for f in updated.fields] == ["b", "a"]

    def test_version_bumped_and_stored(self, template_repository):
        before = template_repository.get_template_by_id(STANDARD_TEMPLATE_ID).version

        template_repository.update_template(
            STANDARD_TEMPLATE_ID,
            TemplateUpdateRequest(name="Short", fields=[_payload("recipe_name")]),
        )

        stored = template_repository.get_template_by_id(STANDARD_TEMPLATE_ID)
        assert stored.version == before + 1
        assert stored.name == "Short"
        assert len(stored.fields) == 1

    def test_empty_fields_rejected(self, template_repository):
        with pytest.raises(TemplateValidationError) as exc_info:
            template_repository.update_template(STANDARD_TEMPLATE_ID, TemplateUpdateRequest(fields=[]))
        assert exc_info.value.code == "TEMPLATE_INVALID"

    def test_unknown_id_returns_none(self, template_repository):
        request = TemplateUpdateRequest(fields=[_payload("a")])
        assert template_repository.update_template("nope", request) is None

    def test_reset_restores_default(self, template_repository):
        template_repository.update_template(
            STANDARD_TEMPLATE_ID, TemplateUpdateRequest(fields=[_payload("a")])
        )

        reset = template_repository.reset_template(STANDARD_TEMPLATE_ID)

        assert [f.label for f in reset.ordered_fields()] == STANDARD_HEADER
        assert reset.version == 1

    def test_repositories_do_not_share_state(self):
        first = TemplateRepository()
        first.update_template(STANDARD_TEMPLATE_ID, TemplateUpdateRequest(fields=[_payload("a")]))
        second = TemplateRepository()
        assert len(second.get_template_by_id(STANDARD_TEMPLATE_ID).fields) == 10


class TestDownloads:
    """Tests for generate_csv_template() and generate_excel_template()"""

    def test_csv_template(self, template_repository):
        file_name, content = template_repository.generate_csv_template(STANDARD_TEMPLATE_ID)

        assert file_name.endswith("_template.csv")
        lines = split_csv_lines(content.decode("utf-8"))
        assert tokenize_csv_line(lines[0]) == STANDARD_HEADER
        assert len(lines) == 4
        assert tokenize_csv_line(lines[1])[5:7] == ["Strawberry Flavor", "50"]

    def test_excel_template(self, template_repository):
        file_name, content = template_repository.generate_excel_template(STANDARD_TEMPLATE_ID)

        assert file_name.endswith("_template.xlsx")
        rows = extract_sheet_rows(unzip_entries(content)["xl/worksheets/sheet1.xml"])
        assert rows[0] == STANDARD_HEADER
        assert len(rows) == 4

    def test_downloads_follow_updated_fields(self, template_repository):
        template_repository.update_template(STANDARD_TEMPLATE_ID, TemplateUpdateRequest(fields=[
            _payload("material_name", "Material", order=1),
            _payload("recipe_name", "Recipe", order=2),
        ]))

        _, content = template_repository.generate_csv_template(STANDARD_TEMPLATE_ID)

        lines = split_csv_lines(content.decode("utf-8"))
        assert tokenize_csv_line(lines[0]) == ["Material", "Recipe"]
        assert tokenize_csv_line(lines[1])[0] == "Strawberry Flavor"

    def test_unknown_id_returns_none(self, template_repository):
        assert template_repository.generate_csv_template("nope") is None
        assert template_repository.generate_excel_template("nope") is None

    @pytest.mark.parametrize("generate", ["generate_csv_template", "generate_excel_template"])
    def test_downloaded_template_imports_cleanly(self, generate, import_service, recipe_store, template_repository):
        """The sample rows form one recipe with three materials."""
        file_name, content = getattr(template_repository, generate)(STANDARD_TEMPLATE_ID)

        summary = import_service.import_upload(content, file_name)

        assert (summary.total, summary.success, summary.failed) == (1, 1, 0)
        assert [m.name for m in recipe_store.requests[0].materials] == [
            "Strawberry Flavor", "Propylene Glycol", "Citric Acid",
        ]
