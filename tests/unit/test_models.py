"""Unit tests for portfolio, provenance and block models."""

import pytest

from folioscribe.models.block import Block, Document, Section
from folioscribe.models.portfolio import (
    PortfolioData,
    Project,
    SkillCategory,
    is_blank,
)
from folioscribe.models.provenance import FieldProvenance, FieldRef, ProvenanceMap


class TestIsBlank:
    """Test missing-value detection."""

    @pytest.mark.parametrize("value", [None, "", "   ", "null", "undefined", "None", [], {}])
    def test_blank_values(self, value):
        """Test values that count as missing."""
        assert is_blank(value)

    @pytest.mark.parametrize("value", ["Jane", "0", 0, ["x"], "nullable"])
    def test_present_values(self, value):
        """Test values that count as present."""
        assert not is_blank(value)


class TestPortfolioData:
    """Test lenient PortfolioData validation."""

    def test_camel_case_aliases(self, portfolio_dict):
        """Test skillCategories/experiences aliases map onto canonical fields."""
        data = PortfolioData.model_validate(portfolio_dict)

        assert data.skill_categories[0].category == "Languages"
        assert data.experience[0].company == "Acme"

    def test_none_values_use_defaults(self):
        """Test None becomes the empty value instead of failing."""
        data = PortfolioData.model_validate({"name": None, "projects": None, "skills": None})

        assert data.name == ""
        assert data.projects == []
        assert data.skills == []

    def test_non_list_lists_become_empty(self):
        """Test list fields given as non-lists degrade to empty lists."""
        data = PortfolioData.model_validate({"projects": "oops", "experience": 42})

        assert data.projects == []
        assert data.experience == []

    def test_non_mapping_entries_dropped(self):
        """Test junk items inside an entry list are skipped."""
        data = PortfolioData.model_validate({"projects": ["null", {"name": "Real"}, 3]})

        assert [p.name for p in data.projects] == ["Real"]

    def test_string_lists_cleaned(self):
        """Test blank markers are removed from string lists."""
        data = PortfolioData.model_validate({"skills": ["Python", "null", "", "Go"]})

        assert data.skills == ["Python", "Go"]

    def test_single_string_becomes_list(self):
        """Test a lone string in a list field is wrapped."""
        project = Project.model_validate({"tech": "Rust"})

        assert project.tech == ["Rust"]

    def test_entries_get_durable_ids(self, portfolio_data):
        """Test every entry receives an id with its kind as prefix."""
        assert portfolio_data.projects[0].entry_id.startswith("project_")
        assert portfolio_data.experience[0].entry_id.startswith("experience_")

    def test_given_entry_id_kept(self):
        """Test an entry id supplied by the caller is preserved."""
        project = Project.model_validate({"entry_id": "project_fixed", "name": "X"})

        assert project.entry_id == "project_fixed"

    def test_numbers_coerced_to_strings(self):
        """Test scalar numbers arrive as strings."""
        data = PortfolioData.model_validate({"phone": 1012345678})

        assert data.phone == "1012345678"

    def test_find_entry(self, portfolio_data):
        """Test locating an entry by id."""
        project = portfolio_data.projects[0]

        assert portfolio_data.find_entry(project.entry_id) == ("project", project)
        assert portfolio_data.find_entry("missing") is None

    def test_transport_includes_entry_ids(self, portfolio_data):
        """Test the transport form keeps entry ids for the collaborator."""
        transport = portfolio_data.to_transport()

        assert transport["projects"][0]["entry_id"] == portfolio_data.projects[0].entry_id

    def test_skill_category_fields(self):
        """Test SkillCategory content field names exclude the id."""
        assert SkillCategory().field_names() == ["category", "icon", "skills"]


class TestProvenance:
    """Test FieldRef and ProvenanceMap."""

    def test_field_ref_key_round_trip(self):
        """Test FieldRef keys parse back into the same ref."""
        ref = FieldRef(entry_id="project_abc", field="description")

        assert ref.key == "project_abc/description"
        assert FieldRef.from_key(ref.key) == ref

    def test_profile_ref(self):
        """Test scalar fields use the profile pseudo-entry."""
        assert FieldRef.profile("about").entry_id == "profile"

    def test_origin_defaults_to_user_provided(self):
        """Test an unknown ref reports user_provided."""
        provenance = ProvenanceMap()

        assert provenance.origin_of(FieldRef.profile("name")) == "user_provided"

    def test_drop_entry(self):
        """Test dropping an entry removes only its fields."""
        provenance = ProvenanceMap()
        provenance.set(FieldRef(entry_id="p1", field="name"), FieldProvenance(origin="user_provided"))
        provenance.set(FieldRef(entry_id="p1", field="tech"), FieldProvenance(origin="ai_generated"))
        provenance.set(FieldRef(entry_id="p10", field="name"), FieldProvenance(origin="user_provided"))

        assert provenance.drop_entry("p1") == 2
        assert [ref.key for ref in provenance.refs()] == ["p10/name"]

    def test_ai_generated_refs(self):
        """Test filtering refs by ai_generated origin."""
        provenance = ProvenanceMap()
        provenance.set(FieldRef.profile("about"), FieldProvenance(origin="ai_generated", confidence=0.6))
        provenance.set(FieldRef.profile("name"), FieldProvenance(origin="user_edited"))

        assert provenance.ai_generated_refs() == [FieldRef.profile("about")]

    def test_legacy_key_follows_position(self, portfolio_data):
        """Test the positional display key uses the entry's current index."""
        first = Project(name="First")
        portfolio_data.projects.insert(0, first)
        ref = FieldRef(entry_id=portfolio_data.projects[1].entry_id, field="description")

        assert ProvenanceMap().legacy_key(ref, portfolio_data) == "project_1_description"
        assert ProvenanceMap().legacy_key(FieldRef.profile("about"), portfolio_data) == "about"

    def test_confidence_bounds(self):
        """Test confidence outside [0, 1] is rejected."""
        with pytest.raises(Exception):
            FieldProvenance(origin="ai_generated", confidence=1.5)


class TestBlockModels:
    """Test Block and Document models."""

    def test_block_defaults(self):
        """Test a new block has no history and full confidence."""
        block = Block(block_id="b1", section_id="about", origin="user_provided")

        assert block.edit_history == []
        assert block.confidence == 1.0
        assert block.binding is None

    def test_document_find_helpers(self):
        """Test finding blocks and sections in a document."""
        block = Block(block_id="b1", section_id="about", origin="user_provided")
        document = Document(doc_id="d1", user_id="u1")
        document.sections.append(Section(section_id="about", blocks=[block]))

        assert document.find_block("b1") is block
        assert document.find_block("nope") is None
        assert document.find_section("about").blocks == [block]
