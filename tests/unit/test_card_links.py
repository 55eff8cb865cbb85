import re

from prflow.card_links import find_card_links, infer_card_link
from prflow.config import PrflowConfig

CONFIG = PrflowConfig(
    card_link_infer_pattern=re.compile(r"^\w+/(\d+)-.*$"),
    card_link_infer_replacement=r"https://tracker.example.com/cards/\1",
    card_link_website_pattern=re.compile(r"https://tracker\.example\.com/cards/\d+"),
)


class TestInferCardLink:
    def test_card_number_in_branch_name(self) -> None:
        assert infer_card_link("feat/1234-add-login", CONFIG) == (
            "https://tracker.example.com/cards/1234"
        )

    def test_branch_without_card_number(self) -> None:
        assert infer_card_link("feat/add-login", CONFIG) is None

    def test_dated_branches_carry_no_card(self) -> None:
        assert infer_card_link("release/2024-03-01", CONFIG) is None

    def test_invalid_dates_are_not_dated_branches(self) -> None:
        assert infer_card_link("feat/2024-13-45-thing", CONFIG) == (
            "https://tracker.example.com/cards/2024"
        )

    def test_no_pattern_configured(self) -> None:
        assert infer_card_link("feat/1234-add-login", PrflowConfig()) is None

    def test_no_branch(self) -> None:
        assert infer_card_link(None, CONFIG) is None


class TestFindCardLinks:
    def test_unique_links_in_order(self) -> None:
        text = (
            "Implements https://tracker.example.com/cards/7 and "
            "https://tracker.example.com/cards/3 (see https://tracker.example.com/cards/7)"
        )

        assert find_card_links(text, CONFIG) == [
            "https://tracker.example.com/cards/7",
            "https://tracker.example.com/cards/3",
        ]

    def test_no_pattern_configured(self) -> None:
        assert find_card_links("https://tracker.example.com/cards/7", PrflowConfig()) == []
