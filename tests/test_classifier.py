import pytest

from voice_relay.core.classifier import NO_MATCH, Command, NoMatch, classify, first_integer, normalize
from voice_relay.core.commands import CommandSpec


@pytest.mark.parametrize("text", [
    "stop",
    "STOP",
    "  Stop!  ",
    "robot stop maintenant",
    "tourne à droite de 45 degrés et stop",
    "gauche stop",
])
def test_stop_wins_wherever_it_appears(text):
    assert classify(text) == Command("stop")


def test_rotate_right_with_angle():
    assert classify("tourne à droite de 45 degrés") == Command("rotate-right", {"angle": 45})


def test_rotate_left_without_angle_uses_default():
    result = classify("gauche")
    assert result == Command("rotate-left", {"angle": 90}, ("angle",))
    assert result.parameter_missing


def test_angle_in_french_words():
    assert classify("tourne à gauche de quarante-cinq degrés").parameters == {"angle": 45}
    assert classify("droite quatre vingt dix").parameters == {"angle": 90}
    assert classify("droite cent quatre-vingts").parameters == {"angle": 180}
    assert classify("droite soixante et onze").parameters == {"angle": 71}


def test_angle_before_keyword_is_ignored():
    assert classify("45 à droite") == Command("rotate-right", {"angle": 90}, ("angle",))


def test_angle_out_of_range_falls_back_to_default():
    assert classify("droite 720") == Command("rotate-right", {"angle": 90}, ("angle",))


@pytest.mark.parametrize("text,expected", [
    ("donne ta position", "report-position"),
    ("scanne la pièce", "scan"),
    ("active l'autopilot", "autopilot"),
    ("passe en pilote automatique", "autopilot"),
    ("arrête tout", "stop"),
])
def test_vocabulary(text, expected):
    assert classify(text).id == expected


@pytest.mark.parametrize("text", ["quelle heure est-il", "", "   ", "?!", None, 42])
def test_no_match(text):
    assert classify(text) is NO_MATCH
    assert isinstance(classify(text), NoMatch)


def test_classify_is_repeatable():
    for text in ["droite 30", "bonjour", "scan position", "stop"]:
        assert classify(text) == classify(text)


def test_priority_follows_table_order():
    # droite comes before position in the default table
    assert classify("position puis droite 10").id == "rotate-right"
    table = (
        CommandSpec("first", (("alpha",),)),
        CommandSpec("second", (("alpha", "beta"),)),
    )
    for _ in range(5):
        assert classify("beta alpha", table) == Command("first")


def test_all_keywords_of_a_group_are_required():
    assert classify("pilote manuel") is NO_MATCH


def test_normalize():
    assert normalize("  Tourne   à\tDROITE...  ") == "tourne à droite"
    assert normalize("«Stop»") == "stop"


@pytest.mark.parametrize("text,value", [
    ("de 45 degrés", 45),
    ("de 45° svp", 45),
    ("dix-sept", 17),
    ("vingt et un", 21),
    ("deux cents", 200),
    ("d'un quart", None),
    ("un peu", None),
    ("rien", None),
])
def test_first_integer(text, value):
    assert first_integer(text) == value


def test_overlong_digit_run_falls_back_to_default():
    assert classify("droite " + "1" * 5000) == Command("rotate-right", {"angle": 90}, ("angle",))
    assert first_integer("1" * 10) is None
    assert first_integer("123456789") == 123456789
