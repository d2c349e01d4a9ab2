"""
Ordered-list numbering tests

Tests the source scan, re-indentation, and renumbering of rendered items.
"""

from bs4 import BeautifulSoup

from blockdown.lib.lists import entries_collect, indentation_normalize, items_collect, items_renumber
from blockdown.models.document import OrderedListEntry


class TestEntries:
    """Test capture of source numbers"""

    def test_numbers_and_indents(self):
        assert entries_collect("1. a\n2. b\n   5. c\n") == [
            OrderedListEntry(number=1, indent=0),
            OrderedListEntry(number=2, indent=0),
            OrderedListEntry(number=5, indent=3),
        ]

    def test_tab_counts_as_four(self):
        assert entries_collect("1. a\n\t3. x") == [
            OrderedListEntry(number=1, indent=0),
            OrderedListEntry(number=3, indent=4),
        ]

    def test_non_list_lines_ignored(self):
        assert entries_collect("- bullet\n1) paren\n1.no space\ntext") == []

    def test_placeholder_lines_ignored(self):
        """Code is masked before scanning, so its numbered lines never count"""
        assert entries_collect("1. a\n\x00SPAN_0\x00\n2. b") == [
            OrderedListEntry(number=1, indent=0),
            OrderedListEntry(number=2, indent=0),
        ]

    def test_nested_example(self):
        assert entries_collect("1. a\n2. b\n    1. c\n    2. d\n3. e") == [
            OrderedListEntry(1, 0),
            OrderedListEntry(2, 0),
            OrderedListEntry(1, 4),
            OrderedListEntry(2, 4),
            OrderedListEntry(3, 0),
        ]

    def test_blockquote_items_counted_in_order(self):
        assert entries_collect("1. a\n2. b\n\n> 7. quoted\n\n9. c\n") == [
            OrderedListEntry(1, 0),
            OrderedListEntry(2, 0),
            OrderedListEntry(7, 0),
            OrderedListEntry(9, 0),
        ]

    def test_indented_code_is_not_a_list(self):
        assert entries_collect("Para\n\n        1. not a list, code\n") == []

    def test_numbers_inside_a_paragraph_are_text(self):
        assert entries_collect("The year\n1984. was a book\n") == []


class TestIndentation:
    """Test re-indentation of nested ordered lists"""

    def test_two_space_nesting(self):
        source = "1. a\n  1. b\n  2. c\n2. d"
        assert indentation_normalize(source) == "1. a\n    1. b\n    2. c\n2. d"

    def test_three_levels(self):
        source = "1. a\n  1. b\n    1. c"
        assert indentation_normalize(source) == "1. a\n    1. b\n        1. c"

    def test_already_normalized(self):
        source = "1. a\n    1. b\n        1. c\n2. d"
        assert indentation_normalize(source) == source

    def test_idempotent(self):
        source = "3. a\n   7. b\n     9. c\n   8. d\n4. e"
        once = indentation_normalize(source)
        assert indentation_normalize(once) == once

    def test_paragraph_closes_lists(self):
        source = "1. a\n  2. b\n\npara\n  3. c"
        assert indentation_normalize(source) == "1. a\n    2. b\n\npara\n  3. c"

    def test_custom_width(self):
        assert indentation_normalize("1. a\n  1. b", width=2) == "1. a\n  1. b"

    def test_never_moves_lines_left(self):
        source = "- bullet\n    1. sub\n    2. sub2\n"
        assert indentation_normalize(source) == source

    def test_indented_code_untouched(self):
        source = "Para\n\n        1. not a list, code\n"
        assert indentation_normalize(source) == source

    def test_nested_items_inside_blockquote(self):
        source = "> 1. a\n>   1. b\n> 2. c"
        assert indentation_normalize(source) == "> 1. a\n>     1. b\n> 2. c"

    def test_ordered_under_bullet_raised(self):
        assert indentation_normalize("- a\n  1. b") == "- a\n    1. b"


class TestRenumber:
    """Test writing source numbers onto rendered items"""

    def test_depth_first_order(self):
        soup = BeautifulSoup("<ol><li>a</li><li>b<ol><li>c</li></ol></li><li>d</li></ol>", "html.parser")
        items = items_collect(soup)

        assert [item.contents[0] for item in items] == ["a", "b", "c", "d"]

    def test_unordered_items_excluded(self):
        soup = BeautifulSoup("<ul><li>x</li></ul><ol><li>y</li></ol>", "html.parser")
        assert len(items_collect(soup)) == 1

    def test_numbers_written(self):
        soup = BeautifulSoup("<ol><li>a</li><li>b<ol><li>c</li></ol></li></ol>", "html.parser")
        entries = [OrderedListEntry(3, 0), OrderedListEntry(4, 0), OrderedListEntry(7, 4)]

        count = items_renumber([(items_collect(soup), entries)])

        assert count == 3
        assert [item["value"] for item in soup.find_all("li")] == ["3", "4", "7"]
        assert all("has-list-number" in item["class"] for item in soup.find_all("li"))

    def test_sequential_fallback(self):
        soup = BeautifulSoup("<ol><li>a</li><li>b</li><li>c</li></ol>", "html.parser")

        items_renumber([(items_collect(soup), [OrderedListEntry(5, 0)])])

        assert [item["value"] for item in soup.find_all("li")] == ["5", "2", "3"]

    def test_batch_of_jobs(self):
        first = BeautifulSoup("<ol><li>a</li></ol>", "html.parser")
        second = BeautifulSoup("<ol><li>b</li></ol>", "html.parser")

        items_renumber([
            (items_collect(first), [OrderedListEntry(9, 0)]),
            (items_collect(second), [OrderedListEntry(2, 0)]),
        ])

        assert first.li["value"] == "9"
        assert second.li["value"] == "2"

    def test_renumber_twice_is_stable(self):
        soup = BeautifulSoup('<ol><li class="x">a</li></ol>', "html.parser")
        job = (items_collect(soup), [OrderedListEntry(4, 0)])

        items_renumber([job])
        items_renumber([job])

        assert soup.li["class"] == ["x", "has-list-number"]
