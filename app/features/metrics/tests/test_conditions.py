"""Tests for WHERE clause construction."""

from datetime import date

from app.features.metrics.conditions import ConditionBuilder, placeholder


class TestConditionBuilder:
    """Tests for ConditionBuilder."""

    def test_empty_builder_renders_nothing(self) -> None:
        where = ConditionBuilder().build()

        assert where.text == ""
        assert where.values == ()
        assert where.next_index == 1

    def test_fragments_are_numbered_in_order(self) -> None:
        where = (
            ConditionBuilder()
            .add("s.user_id = {}", 42)
            .add("s.date >= {}", date(2021, 1, 1))
            .build()
        )

        assert where.text == "WHERE s.user_id = $1 AND s.date >= $2"
        assert where.values == (42, date(2021, 1, 1))

    def test_static_values_come_first(self) -> None:
        builder = ConditionBuilder(static_values=("week",))
        builder.add("ug.group_id = {}", 3).add("u.role = {}", "manager")

        where = builder.build()

        assert where.text == "WHERE ug.group_id = $2 AND u.role = $3"
        assert where.values == ("week", 3, "manager")
        assert where.next_index == 4

    def test_static_values_without_fragments(self) -> None:
        where = ConditionBuilder(static_values=("month",)).build()

        assert where.text == ""
        assert where.values == ("month",)

    def test_values_never_rendered_into_text(self) -> None:
        where = ConditionBuilder().add("u.role = {}", "x' OR '1'='1").build()

        assert "OR" not in where.text
        assert where.values == ("x' OR '1'='1",)

    def test_len_counts_fragments(self) -> None:
        builder = ConditionBuilder(static_values=("day",)).add("s.id = {}", 1)

        assert len(builder) == 1
        assert builder.next_index() == 3

    def test_and_keyword_continues_a_join_condition(self) -> None:
        where = ConditionBuilder().add("s.date >= {}::date", date(2021, 1, 1)).build("AND")

        assert where.text == "AND s.date >= $1::date"
        assert where.values == (date(2021, 1, 1),)

    def test_and_keyword_without_fragments_renders_nothing(self) -> None:
        assert ConditionBuilder().build("AND").text == ""


def test_placeholder() -> None:
    assert placeholder(1) == "$1"
    assert placeholder(12) == "$12"
