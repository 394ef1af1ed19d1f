"""JSON calldata codec for contract-to-contract calls"""

import json
from typing import Any, List, Tuple

from .errors import MalformedCalldata


def _to_json(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    if isinstance(value, bytes):
        return {'__bytes__': value.hex()}
    return value


def _from_json(value: Any) -> Any:
    if isinstance(value, list):
        return [_from_json(v) for v in value]
    if isinstance(value, dict):
        if set(value) == {'__bytes__'}:
            return bytes.fromhex(value['__bytes__'])
        return {k: _from_json(v) for k, v in value.items()}
    return value


def encode_call(method: str, *args: Any) -> bytes:
    """Encode a method call; points and tuples become JSON arrays"""
    return json.dumps({'method': method, 'args': _to_json(list(args))}, sort_keys=True).encode()


def decode_call(data: bytes) -> Tuple[str, List[Any]]:
    try:
        payload = json.loads(data.decode())
        method = payload['method']
        args = _from_json(payload.get('args', []))
    except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
        raise MalformedCalldata(f"Cannot decode calldata: {e}") from e

    if not isinstance(method, str) or not isinstance(args, list):
        raise MalformedCalldata("Calldata must name a method and carry an argument list")
    return method, args
