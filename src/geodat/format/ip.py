"""Deterministic text rendering of address bytes and CIDR records."""

from __future__ import annotations

from geodat.types import CidrRecord


def _format_ipv4(address: bytes) -> str:
    return ".".join(str(octet) for octet in address)


def _longest_zero_run(groups: list[int]) -> tuple[int, int]:
    """Return (start, length) of the leftmost longest run of zero groups."""

    best_start, best_len = -1, 0
    curr_start, curr_len = -1, 0
    for index, group in enumerate(groups):
        if group == 0:
            if curr_start == -1:
                curr_start, curr_len = index, 1
            else:
                curr_len += 1
        elif curr_start != -1:
            if curr_len > best_len:
                best_start, best_len = curr_start, curr_len
            curr_start, curr_len = -1, 0

    if curr_start != -1 and curr_len > best_len:
        best_start, best_len = curr_start, curr_len
    return best_start, best_len


def _format_ipv6(address: bytes) -> str:
    groups = [(address[i] << 8) | address[i + 1] for i in range(0, 16, 2)]
    best_start, best_len = _longest_zero_run(groups)
    if best_len < 2:
        best_start = -1

    tokens: list[str] = []
    index = 0
    while index < len(groups):
        if index == best_start:
            tokens.append("")
            index += best_len
            if index == len(groups):
                tokens.append("")
            continue
        tokens.append(format(groups[index], "x"))
        index += 1

    text = ":".join(tokens)
    if text.startswith(":") and not text.startswith("::"):
        text = ":" + text
    if text.endswith(":") and not text.endswith("::"):
        text += ":"
    return text


def format_address(address: bytes | None) -> str:
    """Render 4 bytes as dotted IPv4, 16 bytes as compressed IPv6, anything else as hex."""

    if not address:
        return ""
    if len(address) == 4:
        return _format_ipv4(address)
    if len(address) == 16:
        return _format_ipv6(address)
    return address.hex()


def format_cidr(record: CidrRecord) -> str:
    return f"{format_address(record.address)}/{record.prefix_length}"
