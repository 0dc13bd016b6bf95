from datetime import datetime, timezone

from app.services.card_codes import (
    CODE_ALPHABET,
    generate_activation_code,
    generate_card_code,
    generate_order_number,
    normalize_code,
    validate_activation_code,
    validate_card_code,
)


def test_alphabet_has_no_lookalikes():
    assert not set("IO01") & set(CODE_ALPHABET)
    assert len(set(CODE_ALPHABET)) == len(CODE_ALPHABET)


def test_generated_codes_validate():
    for _ in range(1000):
        activation = generate_activation_code()
        card = generate_card_code()
        assert validate_activation_code(activation), activation
        assert validate_card_code(card), card
        assert set(activation.replace("-", "")) <= set(CODE_ALPHABET)


def test_code_shapes():
    assert len(generate_activation_code()) == 9
    card = generate_card_code()
    assert card.startswith("OBSI-")
    assert len(card) == 19


def test_validation_is_case_insensitive():
    assert validate_activation_code("ab3d-7xq2")
    assert validate_card_code("obsi-ab3d-7xq2-k9zl")


def test_validation_rejects_bad_shapes():
    assert not validate_activation_code("AB3D7XQ2")
    assert not validate_activation_code("AB3D-7XQ2-K9ZL")
    assert not validate_activation_code("AB3D-7XQ2\n")
    assert not validate_card_code("CARD-AB3D-7XQ2-K9ZL")


def test_normalize_code():
    assert normalize_code("  ab3d-7xq2 ") == "AB3D-7XQ2"


def test_order_number_format():
    number = generate_order_number(datetime(2026, 3, 9, 23, 59, tzinfo=timezone.utc))
    assert number.startswith("ORD-20260309-")
    suffix = number.rsplit("-", 1)[1]
    assert len(suffix) == 4 and suffix.isdigit()
