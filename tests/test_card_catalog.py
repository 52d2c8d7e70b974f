import json
from pathlib import Path

import pytest

from cardledger.config import settings
from cardledger.models.card import Rarity
from cardledger.services.card_catalog import (
    CardCatalog,
    CardCatalogError,
    get_card_catalog,
    load_card_catalog,
    parse_card_master,
)


@pytest.fixture
def sample_cards() -> list[dict]:
    """Sample card master entries."""
    return [
        {"id": "1", "name": "Ember Drake", "rarity": "Rare", "image": "cards/001.png"},
        {"number": 2, "name": "Field Medic", "rarity": "common"},
        {"id": "003", "name": "The Warden", "rarity": "Legendary Foil"},
        {"id": "004", "name": "Unknown Thing", "rarity": "mythic"},
        {"id": "001", "name": "Duplicate Drake", "rarity": "Common"},
        {"name": "No Id"},
        {"id": "x9", "name": "Bad Id"},
        "not a card",
    ]


@pytest.fixture
def card_master_file(tmp_path: Path, sample_cards: list[dict]) -> Path:
    """Write sample card master to temp file."""
    path = tmp_path / "CoreMasterReference.json"
    path.write_text(json.dumps({"cards": sample_cards}))
    return path


class TestParseCardMaster:
    def test_parses_list(self, sample_cards: list[dict]) -> None:
        records = parse_card_master(sample_cards)

        assert sorted(records) == ["001", "002", "003", "004"]
        assert records["001"].rarity == Rarity.RARE
        assert records["001"].asset_ref == "cards/001.png"
        assert records["002"].name == "Field Medic"
        assert records["003"].rarity == Rarity.LEGENDARY
        assert records["004"].rarity is None

    def test_first_entry_wins(self, sample_cards: list[dict]) -> None:
        records = parse_card_master(sample_cards)

        assert records["001"].name == "Ember Drake"

    def test_accepts_cards_object(self, sample_cards: list[dict]) -> None:
        assert len(parse_card_master({"cards": sample_cards})) == 4

    def test_rejects_other_shapes(self) -> None:
        with pytest.raises(CardCatalogError):
            parse_card_master("cards")


class TestLoadCardCatalog:
    def test_load_from_file(self, card_master_file: Path) -> None:
        catalog = load_card_catalog(card_master_file)

        assert len(catalog) == 4
        assert catalog.lookup("1").name == "Ember Drake"
        assert catalog.lookup("003").name == "The Warden"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CardCatalogError, match="not found"):
            load_card_catalog(tmp_path / "missing.json")

    def test_malformed_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{oops")

        with pytest.raises(CardCatalogError, match="unreadable"):
            load_card_catalog(path)

    def test_lookup_unknown_and_invalid(self, card_master_file: Path) -> None:
        catalog = load_card_catalog(card_master_file)

        assert catalog.lookup("999") is None
        assert catalog.lookup("abc") is None


class TestGetCardCatalog:
    @pytest.fixture(autouse=True)
    def clear_cache(self):
        get_card_catalog.cache_clear()
        yield
        get_card_catalog.cache_clear()

    def test_falls_back_to_empty_catalog(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "card_master_path", str(tmp_path / "missing.json"))

        catalog = get_card_catalog()

        assert catalog == CardCatalog()
        assert len(catalog) == 0

    def test_loads_configured_path_once(
        self, card_master_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "card_master_path", str(card_master_file))

        first = get_card_catalog()
        card_master_file.unlink()
        second = get_card_catalog()

        assert first is second
        assert len(second) == 4
