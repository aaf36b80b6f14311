"""Tests for payload decoding, dispatch, and history recording."""

import io

import pytest

from windtunnel_cm.models.history import HistoryRing
from windtunnel_cm.models.parameters import ParameterError, ParameterPair
from windtunnel_cm.protocol.parser import (
    HistoryResponse,
    RunNumberResponse,
    UserFieldsResponse,
    decode_float,
    decode_integer,
    decode_user_fields,
    parse_command,
    split_parameter_tokens,
)


@pytest.fixture
def history():
    return HistoryRing()


def run(text, history):
    """Parse one message and return what was written to the sink."""
    sink = io.StringIO()
    parse_command(text, history, sink)
    return sink.getvalue()


# ─── DECODERS ────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "payload, expected",
    [
        ("123", 123),
        ("+7", 7),
        ("-42", -42),
        ("007", 7),
        ("2147483647", 2147483647),
        ("-2147483648", -2147483648),
    ],
)
def test_decode_integer_valid(payload, expected):
    """Signed decimal integers within 32 bits decode."""
    assert decode_integer(payload) == expected


@pytest.mark.parametrize(
    "payload",
    ["", "ABC", "12a", " 12", "12 ", "1_000", "+", "2147483648", "-2147483649", "1.5", "١٢"],
)
def test_decode_integer_invalid(payload):
    """Anything but a full in-range decimal integer is rejected."""
    assert decode_integer(payload) is None


@pytest.mark.parametrize(
    "token, expected",
    [
        ("0.004947", 0.004947),
        ("-1", -1.0),
        (".5", 0.5),
        ("5.", 5.0),
        ("1e3", 1000.0),
        ("+2.5E-2", 0.025),
    ],
)
def test_decode_float_valid(token, expected):
    """Decimal numbers decode."""
    assert decode_float(token) == expected


@pytest.mark.parametrize("token", ["abc", "1.2.3", "inf", "nan", "1e999", " 1", "1_0", "0x10", "."])
def test_decode_float_invalid(token):
    """Non-decimal or non-finite tokens are rejected."""
    assert decode_float(token) is None


def test_split_tokens_drops_empty():
    """Empty tokens, including the trailing one, are dropped."""
    assert split_parameter_tokens("a,1,,b,2,") == ["a", "1", "b", "2"]
    assert split_parameter_tokens("") == []


def test_split_tokens_odd_count():
    """An unpaired token makes the list malformed."""
    assert split_parameter_tokens("a,1,b,") is None


def test_decode_user_fields_keeps_order():
    """Pairs and errors keep wire order."""
    response = decode_user_fields("A,1,SixteenCharsName,2,B,x,")
    assert isinstance(response, UserFieldsResponse)
    assert response.entries == [
        ParameterPair("A", 1.0),
        ParameterError("SixteenCharsName", "name_too_long"),
        ParameterError("B", "invalid_value"),
    ]
    assert [p.name for p in response.parameters] == ["A"]
    assert len(response.errors) == 2


# ─── SCENARIOS ───────────────────────────────────────────────────────

def test_run_number(history):
    """RUN_NO____ prints the run number and is recorded."""
    assert run("RUN_NO____123#", history) == "Run number: 123\n"
    assert list(history) == ["RUN_NO____"]


def test_polar_number_after_run(history):
    """History is newest first."""
    run("RUN_NO____123#", history)
    assert run("POLAR_NO__2#", history) == "Polar number: 2\n"
    assert list(history) == ["POLAR_NO__", "RUN_NO____"]


def test_user_message(history):
    """USR_MSG___ echoes its payload."""
    assert run("USR_MSG___Start Tunnel#", history) == "Start Tunnel\n"
    assert list(history) == ["USR_MSG___"]


def test_user_message_empty(history):
    """An empty user message prints an empty line."""
    assert run("USR_MSG___#", history) == "\n"
    assert list(history) == ["USR_MSG___"]


def test_user_fields(history):
    """D_USR_FLD_ prints a header and one line per pair."""
    output = run("D_USR_FLD_Parameter1,0.004947,Parameter2,0.203044,#", history)
    assert output == (
        "Parameters:\n"
        "Parameter1 = 0.004947\n"
        "Parameter2 = 0.203044\n"
    )
    assert list(history) == ["D_USR_FLD_"]


def test_history_keeps_five_most_recent(history):
    """Only the five newest data opcodes are listed; the oldest falls off."""
    for message in (
        "USR_MSG___first#",
        "RUN_NO____1#",
        "POLAR_NO__2#",
        "D_USR_FLD_a,1,#",
        "RUN_NO____3#",
        "POLAR_NO__4#",
    ):
        run(message, history)
    assert run("HISTORY___#", history) == (
        "POLAR_NO__\n"
        "RUN_NO____\n"
        "D_USR_FLD_\n"
        "POLAR_NO__\n"
        "RUN_NO____\n"
    )
    assert "USR_MSG___" not in list(history)


def test_unknown_opcode(history):
    """Unknown opcodes produce nothing and are not recorded."""
    assert run("UNKNOWN___test#", history) == ""
    assert len(history) == 0


def test_invalid_run_number_is_recorded(history):
    """A bad integer payload still records the opcode."""
    assert run("RUN_NO____ABC#", history) == "Invalid Run number: ABC\n"
    assert list(history) == ["RUN_NO____"]


def test_invalid_polar_number_is_recorded(history):
    """Same for POLAR_NO__, including an empty payload."""
    assert run("POLAR_NO__#", history) == "Invalid Polar number: \n"
    assert list(history) == ["POLAR_NO__"]


def test_unterminated_message(history):
    """A message without '#' is dropped."""
    assert run("RUN_NO____123", history) == ""
    assert len(history) == 0


# ─── EDGE CASES ──────────────────────────────────────────────────────

def test_double_sentinel_leaves_hash_in_payload(history):
    """Only one '#' is stripped, so the integer decoder sees '12#'."""
    assert run("RUN_NO____12##", history) == "Invalid Run number: 12#\n"
    assert list(history) == ["RUN_NO____"]


def test_run_number_overflow(history):
    """Values beyond 32 bits are invalid."""
    assert run("RUN_NO____99999999999#", history) == "Invalid Run number: 99999999999\n"


def test_run_number_trailing_garbage(history):
    """Integer decoding is strict about trailing characters."""
    assert run("RUN_NO____12abc#", history) == "Invalid Run number: 12abc\n"


def test_user_fields_odd_count_is_dropped(history):
    """An unpaired parameter list prints nothing and is not recorded."""
    assert run("D_USR_FLD_Parameter1,0.5,Parameter2,#", history) == ""
    assert len(history) == 0


def test_user_fields_name_too_long(history):
    """An overlong name skips its pair and continues."""
    output = run("D_USR_FLD_AVeryLongParameterName,1.0,Short,2.5,#", history)
    assert output == (
        "Parameters:\n"
        "Parameter name too long: AVeryLongParameterName\n"
        "Short = 2.5\n"
    )
    assert list(history) == ["D_USR_FLD_"]


def test_user_fields_name_at_limit(history):
    """A 15-character name is allowed."""
    assert run("D_USR_FLD_FifteenCharName,3,#", history) == "Parameters:\nFifteenCharName = 3\n"


def test_user_fields_invalid_value(history):
    """A non-numeric value reports the parameter name."""
    output = run("D_USR_FLD_Alpha,abc,Beta,0.1,#", history)
    assert output == (
        "Parameters:\n"
        "Invalid parameter value for parameter: Alpha\n"
        "Beta = 0.1\n"
    )


def test_user_fields_all_pairs_skipped(history):
    """Only the header is printed, but the opcode is still recorded."""
    output = run("D_USR_FLD_Alpha,x,Beta,y,#", history)
    assert output == (
        "Parameters:\n"
        "Invalid parameter value for parameter: Alpha\n"
        "Invalid parameter value for parameter: Beta\n"
    )
    assert run("D_USR_FLD_#", history) == "Parameters:\n"
    assert list(history) == ["D_USR_FLD_", "D_USR_FLD_"]


def test_history_is_not_recorded(history):
    """Querying history leaves it unchanged and is idempotent."""
    run("RUN_NO____1#", history)
    first = run("HISTORY___#", history)
    second = run("HISTORY___#", history)
    assert first == second == "RUN_NO____\n"
    assert list(history) == ["RUN_NO____"]


def test_history_ignores_payload(history):
    """Any HISTORY___ payload is ignored."""
    run("USR_MSG___hi#", history)
    assert run("HISTORY___whatever#", history) == "USR_MSG___\n"


def test_history_empty(history):
    """An empty ring prints nothing."""
    assert run("HISTORY___#", history) == ""


@pytest.mark.parametrize("text", ["", "#", "RUN_NO___#", "RUN_NO____5", "run_no____5#", "RUN_NO___5#"])
def test_rejected_input_is_a_no_op(history, text):
    """Rejected input writes nothing and leaves history untouched."""
    run("POLAR_NO__9#", history)
    before = history.to_list()
    assert run(text, history) == ""
    assert history.to_list() == before


@pytest.mark.parametrize("number", [0, 1, -1, 2147483647, -2147483648, 40000])
def test_integer_round_trip(history, number):
    """Any 32-bit integer is echoed back."""
    assert run(f"RUN_NO____{number}#", history) == f"Run number: {number}\n"


def test_history_invariants_hold_over_mixed_sequence(history):
    """The ring never exceeds five entries or holds non-data opcodes."""
    messages = [
        "RUN_NO____1#", "HISTORY___#", "UNKNOWN___x#", "POLAR_NO__x#",
        "D_USR_FLD_a,#", "USR_MSG___m#", "D_USR_FLD_a,1,#", "RUN_NO____2",
        "HISTORY___#", "RUN_NO____3#", "POLAR_NO__4#", "USR_MSG___n#",
    ]
    data = {"RUN_NO____", "POLAR_NO__", "USR_MSG___", "D_USR_FLD_"}
    for message in messages:
        run(message, history)
        assert len(history) <= 5
        assert set(history) <= data


def test_parse_command_returns_response(history):
    """The decoded response is returned to library callers."""
    response = parse_command("RUN_NO____5#", history, io.StringIO())
    assert response == RunNumberResponse(number=5, raw="5")
    response = parse_command("HISTORY___#", history, io.StringIO())
    assert response == HistoryResponse(entries=["RUN_NO____"])
    assert parse_command("UNKNOWN___#", history, io.StringIO()) is None


def test_default_sink_is_stdout(history, capsys):
    """Without a sink, output goes to stdout."""
    parse_command("USR_MSG___hello#", history)
    assert capsys.readouterr().out == "hello\n"


def test_run_number_huge_digit_string(history):
    """Thousands of digits are an invalid payload, not an exception."""
    digits = "9" * 5000
    assert run(f"RUN_NO____{digits}#", history) == f"Invalid Run number: {digits}\n"
    assert list(history) == ["RUN_NO____"]


def test_decode_integer_leading_zeros_beyond_ten_digits():
    """Leading zeros do not count toward the digit limit."""
    assert decode_integer("000000000042") == 42
    assert decode_integer("-0002147483648") == -2147483648


@pytest.mark.parametrize("token", ["1e-400", "0.1e-330", "-5E-999"])
def test_decode_float_underflow(token):
    """Nonzero literals that underflow to zero are rejected."""
    assert decode_float(token) is None


def test_decode_float_zero_literals():
    """Genuine zeros are still accepted."""
    assert decode_float("0") == 0.0
    assert decode_float("-0.000e-400") == 0.0


def test_user_fields_underflow_value(history):
    """An underflowing value reports the parameter as invalid."""
    assert run("D_USR_FLD_Tiny,1e-400,#", history) == (
        "Parameters:\n"
        "Invalid parameter value for parameter: Tiny\n"
    )


def test_user_fields_six_significant_digits(history):
    """Values print rounded to six significant digits."""
    assert run("D_USR_FLD_Parameter4,0.12343044,#", history) == (
        "Parameters:\n"
        "Parameter4 = 0.12343\n"
    )
