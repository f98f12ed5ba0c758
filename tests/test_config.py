import logging

import pytest

from zertz import config
from zertz.errors import ConfigurationError


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_parse_bool_truthy(raw):
    assert config.parse_bool("FLAG", raw, default=False) is True


@pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
def test_parse_bool_falsy(raw):
    assert config.parse_bool("FLAG", raw, default=True) is False


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_parse_bool_unset_uses_default(raw):
    assert config.parse_bool("FLAG", raw, default=True) is True


def test_parse_bool_rejects_garbage():
    with pytest.raises(ConfigurationError) as excinfo:
        config.parse_bool("ZERTZ_ENFORCE_FULL_CAPTURE", "maybe", default=True)
    assert excinfo.value.context["setting"] == "ZERTZ_ENFORCE_FULL_CAPTURE"
    assert excinfo.value.to_dict()["code"] == "CONFIGURATION_ERROR"


def test_parse_board_size():
    assert config.parse_board_size("SIZE", None) == 37
    assert config.parse_board_size("SIZE", "61") == 61
    for raw in ("40", "big"):
        with pytest.raises(ConfigurationError):
            config.parse_board_size("SIZE", raw)


def test_parse_log_level():
    assert config.parse_log_level("LEVEL", None) == logging.INFO
    assert config.parse_log_level("LEVEL", "debug") == logging.DEBUG
    with pytest.raises(ConfigurationError):
        config.parse_log_level("LEVEL", "chatty")


def test_enforce_full_capture_can_be_switched_off(monkeypatch, state_factory):
    from zertz.game_engine import GameEngine
    from zertz.models import Move

    state = state_factory(marbles={"-3,3": "white", "-2,3": "gray", "0,3": "black"})
    partial = GameEngine.get_capture_chains(state, "-3,3")[0][:1]

    monkeypatch.setattr(config, "ENFORCE_FULL_CAPTURE", False)
    assert GameEngine.apply_move(state, Move.for_capture(partial)).success

    monkeypatch.setattr(config, "ENFORCE_FULL_CAPTURE", True)
    assert not GameEngine.apply_move(state, Move.for_capture(partial)).success


def test_default_board_size_drives_new_games(monkeypatch):
    from zertz.game_engine import GameEngine

    monkeypatch.setattr(config, "DEFAULT_BOARD_SIZE", 48)
    assert len(GameEngine.create_initial_state().rings) == 48
