"""
Property-Based Tests for Result Envelopes

Each outcome constructor maps to a fixed HTTP status and span status, and
attributes never carry None values.
"""
from hypothesis import given, strategies as st, settings
from opentelemetry.trace import StatusCode

from models.result_envelope import (
    OutcomeKind,
    continue_,
    respond,
    server_error,
    user_error,
)

attribute_values = st.one_of(st.none(), st.booleans(), st.integers(), st.text(max_size=20))
attributes_strategy = st.dictionaries(st.text(min_size=1, max_size=20), attribute_values, max_size=6)


@given(attributes=attributes_strategy, message=st.text(max_size=40))
@settings(max_examples=100)
def test_constructors_set_status_and_tracing(attributes, message):
    """
    Property: success constructors produce 204/200 with an OK span status,
    error constructors produce 400/500 with an ERROR span status.
    """
    body = {"ok": True}
    cases = [
        (continue_(attributes, message), OutcomeKind.success, 204, StatusCode.OK),
        (respond(body, attributes, message), OutcomeKind.success, 200, StatusCode.OK),
        (user_error(body, attributes, message), OutcomeKind.user_error, 400, StatusCode.ERROR),
        (server_error(body, attributes, message), OutcomeKind.server_error, 500, StatusCode.ERROR),
    ]

    for envelope, kind, status, code in cases:
        assert envelope.kind == kind
        assert envelope.status == status
        assert envelope.tracing.code == code
        assert envelope.tracing.message == message
        assert None not in envelope.attributes.values()
        assert envelope.attributes == {k: v for k, v in attributes.items() if v is not None}


def test_continue_has_no_body():
    envelope = continue_({"routed": True}, "skipped")

    assert envelope.body is None
    assert envelope.tracing.is_ok


def test_respond_keeps_body():
    envelope = respond({"ndcRequest": {}}, message="Routed")

    assert envelope.body == {"ndcRequest": {}}
    assert envelope.attributes == {}
