import pytest

from qriscodec.errors import ExcessiveNesting, InvalidLength, TruncatedTag, TruncatedValue, ValueTooLong
from qriscodec.tlv import Node, Payload, decode, encode

from samples import STATIC_BODY, STATIC_QRIS


def test_minimal_payload_round_trip():
    payload = decode("000201")

    assert payload.nodes == (Node(tag="00", value="01", length=2),)
    assert encode(payload) == "000201"


def test_trailing_bytes_after_minimal_payload_are_rejected():
    with pytest.raises(InvalidLength) as excinfo:
        decode("00020101")

    assert excinfo.value.offset == 8


def test_empty_input_decodes_to_empty_payload():
    payload = decode("")

    assert len(payload) == 0
    assert encode(payload) == ""


def test_untouched_payload_reencodes_byte_for_byte():
    payload = decode(STATIC_QRIS)

    assert encode(payload) == STATIC_QRIS
    assert decode(encode(payload)) == payload
    assert payload.raw == STATIC_QRIS


def test_composite_tags_are_decoded_recursively():
    payload = decode(STATIC_QRIS)
    merchant = payload[2]

    assert merchant.tag == "26"
    assert merchant.is_composite
    assert merchant.length == 42
    assert [child.tag for child in merchant.children] == ["00", "02", "03"]
    assert merchant.children[0].value == "ID.CO.QRIS.WWW"
    assert merchant.children[1].value == "ID10200012345"
    assert merchant.raw == STATIC_BODY[16:58]


def test_top_level_order_is_preserved():
    payload = decode(STATIC_QRIS)

    assert payload.tags == ("00", "01", "26", "51", "52", "53", "58", "59", "60", "61", "62", "63")


def test_leaf_values_are_kept_verbatim():
    payload = decode("5909 Toko  A 540505000")

    assert payload[0].value == " Toko  A "
    assert payload[1].value == "05000"


def test_duplicate_tags_are_kept_in_order():
    payload = decode("0002010002AB")

    assert payload.tags == ("00", "00")
    assert [node.value for node in payload] == ["01", "AB"]
    assert encode(payload) == "0002010002AB"


def test_unknown_tag_decodes_as_leaf():
    payload = decode("00020199050123403040000")

    assert payload[1] == Node(tag="99", value="01234", length=5)
    assert payload[2].tag == "03"
    assert payload[2].is_composite


def test_zero_length_values_are_valid():
    payload = decode("00006200")

    assert payload[0].value == ""
    assert payload[1].children == ()
    assert encode(payload) == "00006200"


@pytest.mark.parametrize(
    "text, error",
    [
        ("0", TruncatedTag),
        ("0002010", TruncatedTag),
        ("00", InvalidLength),
        ("000", InvalidLength),
        ("00AB01", InvalidLength),
        ("00-101", InvalidLength),
        ("0002", TruncatedValue),
        ("00020", TruncatedValue),
    ],
)
def test_truncated_or_malformed_input_is_rejected(text, error):
    with pytest.raises(error):
        decode(text)


def test_truncation_of_a_real_payload_never_parses_partially():
    for cut in range(1, len(STATIC_QRIS)):
        try:
            decode(STATIC_QRIS[:cut])
        except (TruncatedTag, TruncatedValue, InvalidLength):
            continue
        # Only cuts on a top-level node boundary are still well formed.
        assert encode(decode(STATIC_QRIS[:cut])) == STATIC_QRIS[:cut]


def test_nested_errors_carry_enclosing_tag_and_offset():
    with pytest.raises(TruncatedValue) as excinfo:
        decode("26060009AB")

    assert excinfo.value.path == ("26",)
    assert excinfo.value.offset == 8
    assert "26" in str(excinfo.value)


def test_invalid_length_offset_points_at_length_field():
    with pytest.raises(InvalidLength) as excinfo:
        decode("000201" + "01x1")

    assert excinfo.value.offset == 8
    assert excinfo.value.path == ()


def test_payment_system_templates_inside_tag_62_nest_again():
    payload = decode("620850040000")

    template = payload[0].children[0]
    assert template.tag == "50"
    assert template.children == (Node(tag="00", value="", length=0),)


def test_depth_limit_raises_excessive_nesting():
    with pytest.raises(ExcessiveNesting) as excinfo:
        decode("620850040000", max_depth=1)

    assert excinfo.value.path == ("62", "50")

    with pytest.raises(ExcessiveNesting):
        decode("62070703A01", max_depth=0)


def test_node_constructors_compute_lengths():
    child = Node.leaf("01", "ABC")
    parent = Node.composite("62", [child])

    assert child.length == 3
    assert parent.length == 7
    assert parent.serialize() == "62070103ABC"


def test_values_longer_than_99_characters_are_refused():
    with pytest.raises(ValueTooLong):
        Node.leaf("59", "x" * 100)

    oversized = Payload(nodes=(Node(tag="59", value="x" * 100, length=0),))
    with pytest.raises(ValueTooLong):
        encode(oversized)
