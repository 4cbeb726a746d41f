import random
from collections import Counter

import pytest

from spotjack.common.card import Card, Rank, Suit
from spotjack.common.shoe import (
    EmptyShoeError,
    create_deck,
    create_shoe,
    deal_card,
    should_reshuffle,
    shuffle,
)


def test_create_deck():
    deck = create_deck()
    assert len(deck) == 52
    assert len(set(deck)) == 52


def test_create_shoe_size():
    assert len(create_shoe()) == 312
    assert len(create_shoe(deck_count=1)) == 52


def test_create_shoe_contains_each_card_once_per_deck():
    counts = Counter(create_shoe(deck_count=6, rng=random.Random(7)))
    assert len(counts) == 52
    assert set(counts.values()) == {6}


def test_create_shoe_all_face_up():
    assert all(card.face_up for card in create_shoe(deck_count=2))


def test_create_shoe_rejects_zero_decks():
    with pytest.raises(ValueError):
        create_shoe(deck_count=0)


def test_seeded_shuffle_is_reproducible():
    assert create_shoe(rng=random.Random(42)) == create_shoe(rng=random.Random(42))
    assert create_shoe(rng=random.Random(42)) != create_shoe(rng=random.Random(43))


def test_shuffle_does_not_modify_input():
    deck = list(create_deck())
    original = list(deck)
    shuffled = shuffle(deck, random.Random(1))
    assert deck == original
    assert sorted(shuffled, key=repr) == sorted(original, key=repr)


def test_deal_card_from_front():
    shoe = (Card(Suit.SPADES, Rank.ACE), Card(Suit.HEARTS, Rank.TWO))
    card, remaining = deal_card(shoe)
    assert card == Card(Suit.SPADES, Rank.ACE)
    assert remaining == (Card(Suit.HEARTS, Rank.TWO),)
    # The original shoe is untouched
    assert len(shoe) == 2


def test_deal_card_face_down():
    card, _ = deal_card((Card(Suit.SPADES, Rank.ACE),), face_up=False)
    assert card.face_up is False


def test_deal_from_empty_shoe():
    with pytest.raises(EmptyShoeError):
        deal_card(())


def test_empty_shoe_error_is_runtime_error():
    assert issubclass(EmptyShoeError, RuntimeError)


def test_should_reshuffle_threshold():
    shoe = create_shoe()
    assert not should_reshuffle(shoe)
    assert not should_reshuffle(shoe[:78])
    assert should_reshuffle(shoe[:77])
    assert should_reshuffle(())


def test_should_reshuffle_custom_deck_count():
    assert not should_reshuffle(create_shoe(deck_count=1)[:13], deck_count=1)
    assert should_reshuffle(create_shoe(deck_count=1)[:12], deck_count=1)


@pytest.mark.parametrize("threshold", [0, -0.1, 1.5])
def test_should_reshuffle_rejects_bad_threshold(threshold):
    with pytest.raises(ValueError):
        should_reshuffle(create_deck(), threshold=threshold)
