# ABOUTME: Unit tests for category splitting, aliasing, ignoring, and merge suggestions.
# ABOUTME: Covers canonicalization idempotence, cycle rejection, and protected categories.

import pytest

from bookbridge.core.categories import (
    CategoryNormalizer,
    CategorySelection,
    CategorySettings,
    SplitPolicy,
    are_similar,
    explain_similarity,
    format_category,
    is_geographic,
    is_temporal,
    process_categories,
    split_categories,
)


@pytest.fixture
def category_settings() -> CategorySettings:
    return CategorySettings()


@pytest.fixture
def normalizer(category_settings: CategorySettings) -> CategoryNormalizer:
    return CategoryNormalizer(category_settings)


class TestSplitCategories:
    """Tests for split_categories."""

    def test_splits_on_all_separators(self) -> None:
        result = split_categories(
            ["Fiction, Crime & Thrillers", "Science / Nature", "Love and War"], SplitPolicy()
        )
        assert result == ["Fiction", "Crime", "Thrillers", "Science", "Nature", "Love", "War"]

    def test_policy_flags_disable_splitting(self) -> None:
        policy = SplitPolicy(commas=False, ampersands=False, slashes=False, conjunctions=False)
        assert split_categories(["A, B & C / D"], policy) == ["A, B & C / D"]

    def test_preserved_names_are_kept_whole(self) -> None:
        result = split_categories(
            ["Crime & Thrillers, Poetry"], SplitPolicy(), preserved=["crime & thrillers"]
        )
        assert result == ["Crime & Thrillers", "Poetry"]

    def test_compound_genres_are_kept_whole(self) -> None:
        assert split_categories(["Health & Fitness"], SplitPolicy()) == ["Health & Fitness"]

    def test_empties_are_dropped(self) -> None:
        assert split_categories(["", "Poetry,, ", " , Drama"], SplitPolicy()) == [
            "Poetry",
            "Drama",
        ]


class TestProcessCategories:
    """Tests for process_categories."""

    def test_aliases_canonicalize(self, category_settings: CategorySettings) -> None:
        result = process_categories(["sci-fi", "Poetry"], category_settings, [])
        assert result.processed == ["Poetry", "Science Fiction"]
        assert result.mapped == {"sci-fi": "Science Fiction"}

    def test_unaliased_names_are_title_cased(self, category_settings: CategorySettings) -> None:
        result = process_categories(["GOTHIC horror"], category_settings, [])
        assert result.processed == ["Gothic Horror"]

    def test_alias_keys_containing_separators_are_not_split(
        self, category_settings: CategorySettings
    ) -> None:
        """"Mystery & Detective" is an alias key, so it maps rather than splits."""
        result = process_categories(["Mystery & Detective"], category_settings, [])
        assert result.processed == ["Mystery"]

    def test_ampersands_kept_while_audiobook_status_unknown(
        self, category_settings: CategorySettings
    ) -> None:
        result = process_categories(["Crime & Thrillers"], category_settings, None)
        assert result.processed == ["Crime & Thrillers"]

    def test_ampersands_split_once_audiobook_checked(
        self, category_settings: CategorySettings
    ) -> None:
        result = process_categories(["Crime & Thrillers"], category_settings, [])
        assert result.processed == ["Crime", "Thrillers"]

    def test_audiobook_genres_are_kept_whole(self, category_settings: CategorySettings) -> None:
        result = process_categories(
            ["Crime & Thrillers"], category_settings, ["Crime & Thrillers"]
        )
        assert result.processed == ["Crime & Thrillers"]

    def test_ignored_categories_are_reported_not_selectable(
        self, category_settings: CategorySettings
    ) -> None:
        category_settings.ignored.add("fiction")
        result = process_categories(["Fiction", "Poetry"], category_settings, [])
        assert result.processed == ["Poetry"]
        assert result.ignored == ["Fiction"]
        assert [e.ignored for e in result.entries] == [True, False]

    def test_ignoring_the_canonical_name_hides_its_aliases(
        self, category_settings: CategorySettings
    ) -> None:
        category_settings.ignored.add("science fiction")
        result = process_categories(["scifi"], category_settings, [])
        assert result.processed == []
        assert result.ignored == ["scifi"]

    def test_duplicates_collapse(self, category_settings: CategorySettings) -> None:
        result = process_categories(["sci-fi", "SF", "Science Fiction"], category_settings, [])
        assert result.processed == ["Science Fiction"]

    @pytest.mark.parametrize(
        "raw",
        [
            ["Fiction, Mystery & Detective", "Historical Fiction"],
            ["sci-fi / fantasy fiction", "Love and War"],
            ["Biography & Autobiography", "Health & Fitness", "cooking"],
        ],
    )
    def test_processing_is_idempotent(
        self, category_settings: CategorySettings, raw: list[str]
    ) -> None:
        """Processing the canonical output again returns it unchanged."""
        first = process_categories(raw, category_settings, [])
        second = process_categories(first.processed, category_settings, [])
        assert second.processed == first.processed


class TestCategoryNormalizer:
    """Tests for the normalizer's explicit edit operations."""

    def test_ignore_and_unignore(self, normalizer: CategoryNormalizer) -> None:
        assert normalizer.ignore("Fiction")
        assert not normalizer.ignore("fiction")
        assert normalizer.process(["Fiction"], []).processed == []

        assert normalizer.unignore("FICTION")
        assert not normalizer.unignore("Fiction")
        assert normalizer.process(["Fiction"], []).processed == ["Fiction"]

    def test_merge_creates_alias(self, normalizer: CategoryNormalizer) -> None:
        canonical = normalizer.merge("Whodunit", "Mystery")

        assert canonical == "Mystery"
        result = normalizer.process(["Whodunit"], [])
        assert result.processed == ["Mystery"]
        assert result.mapped == {"Whodunit": "Mystery"}

    def test_merge_into_aliased_target_resolves_chain(
        self, normalizer: CategoryNormalizer
    ) -> None:
        """Merging into a name that is itself aliased lands on its canonical."""
        assert normalizer.merge("Space Opera", "sci-fi") == "Science Fiction"
        assert normalizer.settings.aliases["space opera"] == "Science Fiction"

    def test_merge_rewrites_existing_aliases(self, normalizer: CategoryNormalizer) -> None:
        """Aliases that pointed at the merged source follow it to the new target."""
        normalizer.merge("Whodunit", "Mystery")
        normalizer.merge("Mystery", "Crime")

        assert normalizer.settings.aliases["whodunit"] == "Crime"
        assert normalizer.process(["Whodunit", "Mystery"], []).processed == ["Crime"]

    def test_merge_rejects_cycles(self, normalizer: CategoryNormalizer) -> None:
        normalizer.merge("Whodunit", "Mystery")
        with pytest.raises(ValueError, match="cycle"):
            normalizer.merge("Mystery", "Whodunit")

    def test_merge_rejects_self_and_empty(self, normalizer: CategoryNormalizer) -> None:
        with pytest.raises(ValueError):
            normalizer.merge("Poetry", "poetry")
        with pytest.raises(ValueError):
            normalizer.merge("  ", "Poetry")

    def test_alias_map_has_no_cycles_after_merges(self, normalizer: CategoryNormalizer) -> None:
        """Every alias target is canonical: following it never leads elsewhere."""
        normalizer.merge("A", "B")
        normalizer.merge("B", "C")
        normalizer.merge("D", "A")

        aliases = normalizer.settings.aliases
        for target in aliases.values():
            assert normalizer.resolve(target) == target

    def test_mapped_from_lists_children(self, normalizer: CategoryNormalizer) -> None:
        normalizer.merge("Whodunit", "Cozy Mystery")
        normalizer.merge("Village Mystery", "Cozy Mystery")
        assert sorted(normalizer.mapped_from("Cozy Mystery")) == ["village mystery", "whodunit"]

    def test_unmap_alias_key(self, normalizer: CategoryNormalizer) -> None:
        normalizer.merge("Whodunit", "Mystery")
        assert normalizer.unmap("Whodunit") == ["whodunit"]
        assert normalizer.process(["Whodunit"], []).processed == ["Whodunit"]

    def test_unmap_canonical_removes_all_children(self, normalizer: CategoryNormalizer) -> None:
        normalizer.merge("Whodunit", "Cozy Mystery")
        normalizer.merge("Village Mystery", "Cozy Mystery")
        assert sorted(normalizer.unmap("Cozy Mystery")) == ["village mystery", "whodunit"]

    def test_unmap_single_child(self, normalizer: CategoryNormalizer) -> None:
        normalizer.merge("Whodunit", "Cozy Mystery")
        normalizer.merge("Village Mystery", "Cozy Mystery")
        assert normalizer.unmap("Cozy Mystery", mapped_from="Whodunit") == ["whodunit"]
        assert normalizer.mapped_from("Cozy Mystery") == ["village mystery"]

    def test_on_change_called_after_each_edit(self, category_settings: CategorySettings) -> None:
        changes: list[CategorySettings] = []
        normalizer = CategoryNormalizer(category_settings, on_change=changes.append)

        normalizer.ignore("Fiction")
        normalizer.merge("Whodunit", "Mystery")
        normalizer.ignore("Fiction")

        assert len(changes) == 2

    def test_edits_visible_to_next_process(self, normalizer: CategoryNormalizer) -> None:
        """Settings are shared; an edit shows up on the very next process() call."""
        before = normalizer.process(["Whodunit"], [])
        normalizer.merge("Whodunit", "Mystery")
        after = normalizer.process(["Whodunit"], [])
        assert before.processed == ["Whodunit"]
        assert after.processed == ["Mystery"]

    def test_suggest_similar(self, normalizer: CategoryNormalizer) -> None:
        suggestions = normalizer.suggest_similar(["Thriller", "Thrillers", "Poetry"])
        assert [(s.first, s.second) for s in suggestions] == [("Thriller", "Thrillers")]


class TestSimilarity:
    """Tests for merge-suggestion similarity rules."""

    def test_abbreviations_are_similar(self) -> None:
        assert are_similar("Science Fiction", "Sci-Fi")
        assert are_similar("Mystery", "Detective")

    def test_places_are_never_similar(self) -> None:
        assert is_geographic("France")
        assert not are_similar("France", "French")

    def test_eras_are_never_similar(self) -> None:
        assert is_temporal("19th century")
        assert is_temporal("1920s")
        assert not are_similar("19th Century", "18th Century")

    def test_distinct_subjects_only_pair_within_group(self) -> None:
        assert are_similar("Biography", "Autobiography")
        assert not are_similar("Cats", "Dogs")

    def test_length_ratio_gate(self) -> None:
        assert not are_similar("Noir", "Noir Detective Procedurals")

    def test_explain_similarity(self) -> None:
        assert "place" in explain_similarity("France", "French")
        assert explain_similarity("Thriller", "Thrillers") == "Categories look like the same subject"


class TestCategorySelection:
    """Tests for the user's category selection."""

    def test_reset_selects_everything(self, category_settings: CategorySettings) -> None:
        selection = CategorySelection()
        result = process_categories(["Poetry", "Drama"], category_settings, [])
        assert selection.refresh(result, reset=True) == ["Drama", "Poetry"]

    def test_refresh_keeps_choices_that_survive(self, category_settings: CategorySettings) -> None:
        selection = CategorySelection()
        selection.refresh(process_categories(["Poetry", "Drama"], category_settings, []), reset=True)
        selection.toggle("Drama")

        category_settings.ignored.add("poetry")
        refreshed = process_categories(["Poetry", "Drama"], category_settings, [])

        assert selection.refresh(refreshed, reset=False) == []

    def test_toggle_unknown_category_is_noop(self) -> None:
        selection = CategorySelection()
        assert not selection.toggle("Nope")
        assert selection.selected == []


def test_format_category() -> None:
    assert format_category("historical FICTION") == "Historical Fiction"
