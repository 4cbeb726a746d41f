import pytest
from spotjack.common.card import Card, Suit, Rank, parse_card


def test_card_initialization():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert card.suit == Suit.HEARTS
    assert card.rank == Rank.EIGHT
    assert card.face_up is True


def test_card_repr():
    card = Card(Suit.HEARTS, Rank.EIGHT)
    assert repr(card) == "Card(Suit.HEARTS, Rank.EIGHT, face_up=True)"


def test_card_str():
    assert str(Card(Suit.HEARTS, Rank.EIGHT)) == "8 of ♥"
    assert str(Card(Suit.SPADES, Rank.TEN)) == "10 of ♠"


def test_invalid_suit():
    with pytest.raises(TypeError):
        Card("Z", Rank.EIGHT)


def test_invalid_rank():
    with pytest.raises(TypeError):
        Card(Suit.HEARTS, "invalid")


def test_card_is_immutable():
    card = Card(Suit.CLUBS, Rank.ACE)
    with pytest.raises(AttributeError):
        card.face_up = False


def test_turned_returns_new_card():
    card = Card(Suit.CLUBS, Rank.ACE)
    hidden = card.turned(False)
    assert hidden.face_up is False
    assert card.face_up is True
    assert card.turned(True) is card


def test_face_cards_are_distinct_ranks():
    assert Rank.JACK is not Rank.TEN
    assert Rank.KING is not Rank.QUEEN
    assert Rank.JACK.blackjack_value == Rank.KING.blackjack_value == 10


def test_blackjack_values():
    assert Rank.ACE.blackjack_value == 11
    assert Rank.TWO.blackjack_value == 2
    assert Rank.TEN.blackjack_value == 10
    assert Rank.QUEEN.blackjack_value == 10


def test_straight_values():
    assert Rank.ACE.straight_value == 14
    assert Rank.KING.straight_value == 13
    assert Rank.TWO.straight_value == 2


def test_suit_colours():
    assert Suit.HEARTS.is_red and Suit.DIAMONDS.is_red
    assert not Suit.CLUBS.is_red and not Suit.SPADES.is_red


@pytest.mark.parametrize(
    "code,rank,suit",
    [
        ("AS", Rank.ACE, Suit.SPADES),
        ("10H", Rank.TEN, Suit.HEARTS),
        ("kd", Rank.KING, Suit.DIAMONDS),
        ("7C", Rank.SEVEN, Suit.CLUBS),
    ],
)
def test_parse_card(code, rank, suit):
    card = parse_card(code)
    assert card.rank is rank
    assert card.suit is suit


def test_parse_card_face_down():
    assert parse_card("QS", face_up=False).face_up is False


def test_code_round_trips_through_parse():
    card = Card(Suit.HEARTS, Rank.TEN)
    assert card.code == "10H"
    assert parse_card(card.code) == card


@pytest.mark.parametrize("code", ["", "A", "1S", "AX", "11H"])
def test_parse_card_rejects_bad_codes(code):
    with pytest.raises(ValueError):
        parse_card(code)
