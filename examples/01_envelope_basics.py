"""Example 01: Envelope Basics

Demonstrates encoding and decoding of request and response envelopes.

This example shows:
- Encoding a call with encode_request() and decoding it on the server side
- Encoding success and failure responses with encode_response()
- Discriminating success from failure after decode_response()

Tier: 1 (Sync, codec-only)
"""

import json

from postrpc import decode_request, decode_response, encode_request, encode_response


def main() -> None:
    """Demonstrate request and response envelopes."""

    # Client side: encode a call
    body = encode_request("math.add", [1, 2], request_id="1700000000000")
    assert json.loads(body) == {
        "id": "1700000000000",
        "method": "math.add",
        "params": [1, 2],
    }

    # Server side: decode and validate it
    request = decode_request(body)
    assert request.method == "math.add"
    assert request.params == [1, 2]

    # Success response carries a null error
    success = decode_response(encode_response(request.id, 3, None))
    assert success.succeeded
    assert success.result == 3

    # Failure response carries a null result
    failure = decode_response(encode_response(request.id, None, "Unspecified Failure"))
    assert not failure.succeeded
    assert failure.error == "Unspecified Failure"

    print("✓ Envelope basics verified")


if __name__ == "__main__":
    main()
