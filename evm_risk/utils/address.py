import re

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def is_evm_address(addr: str | None) -> bool:
    return bool(addr) and bool(_ADDRESS_RE.match(addr.strip()))


def is_tx_hash(value: str | None) -> bool:
    return bool(value) and bool(_TX_HASH_RE.match(value.strip()))


def normalize_address(addr: str) -> str:
    addr = (addr or "").strip()
    if not _ADDRESS_RE.match(addr):
        raise ValueError(f"Dirección EVM inválida: {addr!r}")
    return addr.lower()


def pad_topic(addr: str) -> str:
    # dirección de 20 bytes -> topic de 32 bytes (zero-pad a la izquierda)
    body = normalize_address(addr)[2:]
    return "0x" + body.rjust(64, "0")


def topic_to_address(topic: str) -> str:
    return "0x" + topic[-40:].lower()


def shorten(addr: str | None) -> str:
    if not addr:
        return "Unknown"
    return f"{addr[:8]}...{addr[-6:]}"


def hex_to_int(value, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    value = str(value).strip()
    if value in ("", "0x"):
        return default
    return int(value, 16) if value.startswith("0x") else int(value)
