"""Tests for newsapp.dedup module."""

from newsapp.dedup import deduplicate, title_key


class TestTitleKey:
    def test_case_and_whitespace_insensitive(self, make_article, at) -> None:
        a = make_article("  Breaking News ", at(2024, 1, 1))
        b = make_article("breaking news", at(2024, 1, 1))
        assert title_key(a) == title_key(b)


class TestDeduplicate:
    def test_first_occurrence_wins(self, make_article, at) -> None:
        first = make_article("Same Headline", at(2024, 1, 2), link="https://a.example/1")
        second = make_article("same headline  ", at(2024, 1, 1), link="https://b.example/1")
        result = deduplicate([first, second])
        assert result == [first]

    def test_preserves_order_of_unique_items(self, make_article, at) -> None:
        items = [
            make_article("C", at(2024, 1, 3)),
            make_article("A", at(2024, 1, 2)),
            make_article("B", at(2024, 1, 1)),
        ]
        assert deduplicate(items) == items

    def test_different_links_same_title_collapse(self, make_article, at) -> None:
        items = [
            make_article("Wahl", at(2024, 1, 1), link="https://x.example/wahl"),
            make_article("Wahl", at(2024, 1, 1), link="https://y.example/wahl"),
        ]
        assert len(deduplicate(items)) == 1

    def test_empty(self) -> None:
        assert deduplicate([]) == []
