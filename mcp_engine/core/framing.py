import json
from typing import Any, Dict, Iterator, Optional


class FramingError(ValueError):
    pass


class ReadBuffer:
    """Accumulates raw bytes and yields complete newline-terminated lines."""

    def __init__(self):
        self._buffer = bytearray()

    def append(self, chunk: bytes) -> None:
        self._buffer.extend(chunk)

    def read_message(self) -> Optional[str]:
        while True:
            index = self._buffer.find(b"\n")
            if index == -1:
                return None

            line = bytes(self._buffer[:index])
            del self._buffer[:index + 1]
            if line.endswith(b"\r"):
                line = line[:-1]
            if not line.strip():
                continue
            try:
                return line.decode("utf-8")
            except UnicodeDecodeError as e:
                raise FramingError(f"Line is not valid UTF-8: {e.reason}") from e

    def messages(self) -> Iterator[str]:
        while True:
            line = self.read_message()
            if line is None:
                return
            yield line

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)


def deserialize_message(line: str) -> Dict[str, Any]:
    try:
        message = json.loads(line)
    except json.JSONDecodeError as e:
        raise FramingError(f"Malformed JSON: {e.msg}") from e
    if not isinstance(message, dict):
        raise FramingError("Message must be a JSON object")
    return message


def serialize_message(message: Dict[str, Any]) -> bytes:
    return (json.dumps(message, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")
