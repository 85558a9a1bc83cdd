"""Tests for registry.py — section registry invariants."""

from __future__ import annotations

import pytest

from spec_composer.errors import DuplicateIdError, LastSectionError, RegistryInvariantError, UnknownSectionError
from spec_composer.models import NEW_SECTION_PROMPT, Section
from spec_composer.registry import SectionRegistry, _letter_suffix


class TestConstruction:
    def test_defaults(self):
        reg = SectionRegistry()
        assert reg.ids == ["description", "acceptance", "assumptions", "technical"]
        assert reg.first.id == "description"

    def test_empty_rejected(self):
        with pytest.raises(LastSectionError):
            SectionRegistry([])

    def test_duplicate_rejected(self):
        with pytest.raises(DuplicateIdError):
            SectionRegistry([Section(id="a", label="A"), Section(id="a", label="B")])


class TestAdd:
    def test_add_default_section(self):
        reg = SectionRegistry()
        section = reg.add()
        assert section.id == "newsection"
        assert section.label == "New Section 5"
        assert section.guidance_prompt == NEW_SECTION_PROMPT
        assert reg.ids[-1] == "newsection"

    def test_generated_ids_are_unique(self):
        reg = SectionRegistry()
        ids = [reg.add().id for _ in range(3)]
        assert ids == ["newsection", "newsectionb", "newsectionc"]
        assert len(set(reg.ids)) == len(reg)

    def test_add_explicit(self):
        reg = SectionRegistry()
        reg.add(Section(id="risks", label="Risks"))
        assert "risks" in reg

    def test_add_duplicate_raises(self):
        reg = SectionRegistry()
        with pytest.raises(DuplicateIdError):
            reg.add(Section(id="description", label="Again"))
        assert len(reg) == 4

    def test_new_section_id_from_label(self):
        reg = SectionRegistry()
        assert reg.new_section_id("Open Questions 2") == "openquestions"
        assert reg.new_section_id("Description") == "descriptionb"
        assert reg.new_section_id("123") == "section"


class TestLetterSuffix:
    def test_sequence(self):
        assert [_letter_suffix(n) for n in (0, 1, 2, 25, 26, 27)] == ["", "b", "c", "z", "ba", "bb"]


class TestRemove:
    def test_remove(self):
        reg = SectionRegistry()
        removed = reg.remove("assumptions")
        assert removed.id == "assumptions"
        assert reg.ids == ["description", "acceptance", "technical"]

    def test_remove_last_raises(self):
        reg = SectionRegistry([Section(id="only", label="Only")])
        with pytest.raises(LastSectionError):
            reg.remove("only")
        assert reg.ids == ["only"]

    def test_remove_unknown_raises(self):
        reg = SectionRegistry()
        with pytest.raises(UnknownSectionError):
            reg.remove("nope")

    def test_last_section_error_is_registry_invariant(self):
        assert issubclass(LastSectionError, RegistryInvariantError)
        assert issubclass(DuplicateIdError, RegistryInvariantError)


class TestEdit:
    def test_partial_update(self):
        reg = SectionRegistry()
        updated = reg.edit("acceptance", label="Done When")
        assert updated.label == "Done When"
        assert updated.placeholder == "Type your acceptance criteria here..."
        assert reg.get("acceptance").label == "Done When"
        assert reg.ids[1] == "acceptance"

    def test_id_not_editable(self):
        reg = SectionRegistry()
        with pytest.raises(ValueError):
            reg.edit("acceptance", id="other")
        assert "acceptance" in reg

    def test_guidance_editable(self):
        reg = SectionRegistry()
        assert reg.edit("technical", guidance_prompt="Focus on APIs").guidance_prompt == "Focus on APIs"


class TestCommit:
    def test_replace_all(self):
        reg = SectionRegistry()
        reg.commit([Section(id="technical", label="Tech"), Section(id="goal", label="Goal")])
        assert reg.ids == ["technical", "goal"]

    def test_empty_commit_rejected_atomically(self):
        reg = SectionRegistry()
        with pytest.raises(LastSectionError):
            reg.commit([])
        assert len(reg) == 4

    def test_duplicate_commit_rejected_atomically(self):
        reg = SectionRegistry()
        with pytest.raises(DuplicateIdError):
            reg.commit([Section(id="x", label="X"), Section(id="x", label="Y")])
        assert reg.ids == ["description", "acceptance", "assumptions", "technical"]


class TestListeners:
    def test_notified_on_every_change(self):
        reg = SectionRegistry()
        calls = []
        reg.subscribe(lambda r: calls.append(list(r.ids)))
        reg.add()
        reg.edit("description", label="Desc")
        reg.remove("newsection")
        reg.commit([Section(id="a", label="A")])
        assert len(calls) == 4
        assert calls[-1] == ["a"]

    def test_not_notified_on_rejected_commit(self):
        reg = SectionRegistry()
        calls = []
        reg.subscribe(lambda r: calls.append(r))
        with pytest.raises(LastSectionError):
            reg.commit([])
        assert calls == []

    def test_unsubscribe(self):
        reg = SectionRegistry()
        calls = []
        unsubscribe = reg.subscribe(lambda r: calls.append(r))
        unsubscribe()
        reg.add()
        assert calls == []
